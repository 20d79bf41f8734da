# sqlshell — Interactive SQL and Host Command Shell
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Protocol definitions for dependency injection.

These interfaces keep the editor, dispatcher and engine independent of
the terminal, the filesystem, host processes and the database driver.
"""

from __future__ import annotations

from typing import Any, Protocol


class LineStore(Protocol):
    """Protocol for history persistence."""

    def read_all(self) -> list[str]:
        """Return every stored line, oldest first; [] if nothing stored."""
        ...

    def write_all(self, lines: list[str]) -> None:
        """Replace the stored contents with ``lines``."""
        ...


class ProcessRunner(Protocol):
    """Protocol for host command execution."""

    def run(self, argv: list[str], cwd: str | None = None) -> Any:
        """Run argv with inherited stdio.

        Returns:
            object with ``exit_code`` and ``error`` attributes
        """
        ...


class Transaction(Protocol):
    """Protocol for an open database transaction."""

    def execute(self, statement: str, params: tuple = ()) -> Any:
        """Execute a statement and return a DB-API cursor."""
        ...

    def commit(self) -> None:
        ...

    def rollback(self) -> None:
        ...


class Database(Protocol):
    """Protocol for an open, ready-to-query data source."""

    uri: str

    def begin(self) -> Transaction:
        """Open a new transaction."""
        ...

    def close(self) -> None:
        ...
