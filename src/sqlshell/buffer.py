# sqlshell — Interactive SQL and Host Command Shell
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""Editable line contents with a cursor. No I/O."""

from __future__ import annotations


class LineBuffer:
    """A sequence of single-width characters plus a cursor in [0, len]."""

    def __init__(self, text: str = ""):
        self._chars: list[str] = list(text)
        self.cursor = len(self._chars)

    def __len__(self) -> int:
        return len(self._chars)

    @property
    def text(self) -> str:
        return "".join(self._chars)

    def insert(self, ch: str) -> None:
        """Insert at the cursor; characters after it shift right."""
        self._chars[self.cursor:self.cursor] = list(ch)
        self.cursor += len(ch)

    def backspace(self) -> bool:
        """Remove the character before the cursor. False at line start."""
        if self.cursor == 0:
            return False
        del self._chars[self.cursor - 1]
        self.cursor -= 1
        return True

    def left(self) -> None:
        if self.cursor > 0:
            self.cursor -= 1

    def right(self) -> None:
        if self.cursor < len(self._chars):
            self.cursor += 1

    def home(self) -> None:
        self.cursor = 0

    def end(self) -> None:
        self.cursor = len(self._chars)

    def replace(self, text: str) -> None:
        """Swap the whole contents; cursor goes to the end."""
        self._chars = list(text)
        self.cursor = len(self._chars)

    def clear(self) -> None:
        self._chars = []
        self.cursor = 0

    def freeze(self) -> str:
        """Return the contents as a command string and reset the buffer."""
        text = self.text
        self.clear()
        return text
