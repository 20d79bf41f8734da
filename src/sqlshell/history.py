# sqlshell — Interactive SQL and Host Command Shell
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Command history: a bounded, ordered list of submitted lines with a recall
cursor, persisted to a plain text file (one command per line, newest last).
"""

from __future__ import annotations

from pathlib import Path

from .config import DEFAULT_HISTORY_LIMIT
from .errors import StorageError
from .interfaces import LineStore


class FileLineStore:
    """Plain-text LineStore; every write replaces the file contents."""

    def __init__(self, path: Path):
        self.path = path

    def read_all(self) -> list[str]:
        if not self.path.exists():
            return []
        try:
            with self.path.open("r", encoding="utf-8") as f:
                return [line.rstrip("\n") for line in f]
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"unable to read history {self.path}: {e}") from e

    def write_all(self, lines: list[str]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("w", encoding="utf-8") as f:
                for line in lines:
                    f.write(line + "\n")
        except OSError as e:
            raise StorageError(f"unable to write history {self.path}: {e}") from e


class HistoryStore:
    """Ordered history entries plus the recall cursor ``hpos``.

    ``hpos == len(self)`` means "not browsing".
    """

    def __init__(self, store: LineStore, limit: int = DEFAULT_HISTORY_LIMIT):
        self.store = store
        self.limit = limit
        self.entries: list[str] = []
        self.hpos = 0

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def load(self) -> list[str]:
        """Read the backing store; a missing store yields no entries."""
        self.entries = self.truncate_to_limit(self.store.read_all())
        self.reset_cursor()
        return list(self.entries)

    def truncate_to_limit(self, entries: list[str] | None = None) -> list[str]:
        """Keep only the most recent ``limit`` entries."""
        if entries is None:
            entries = self.entries
        if self.limit > 0 and len(entries) > self.limit:
            return entries[len(entries) - self.limit:]
        return list(entries)

    def append(self, entry: str) -> None:
        self.entries.append(entry)
        self.reset_cursor()

    def persist(self) -> None:
        """Overwrite the backing store with the non-blank recent entries."""
        lines = [e for e in self.truncate_to_limit() if e.strip()]
        self.store.write_all(lines)

    def get(self, index: int) -> str | None:
        if 0 <= index < len(self.entries):
            return self.entries[index]
        return None

    def reset_cursor(self) -> None:
        self.hpos = len(self.entries)

    def up(self) -> str | None:
        """Step back one entry; None when already at the oldest."""
        if self.hpos <= 0:
            return None
        self.hpos -= 1
        return self.entries[self.hpos]

    def down(self) -> str | None:
        """Step forward one entry.

        Returns None when not browsing, or when stepping past the newest
        entry (the cursor still moves to "not browsing" in that case).
        """
        if self.hpos >= len(self.entries):
            return None
        self.hpos += 1
        if self.hpos < len(self.entries):
            return self.entries[self.hpos]
        return None

    def numbered(self) -> list[tuple[int, str]]:
        return list(enumerate(self.entries))
