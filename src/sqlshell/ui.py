# sqlshell — Interactive SQL and Host Command Shell
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Terminal side of sqlshell: raw keystrokes in, text out.

The key source uses prompt_toolkit's input layer (raw mode + VT100 key
parser) but none of its editing machinery; editing is KeyInputEngine's job.
Raw mode is only active while waiting for keys, so host commands and query
output run on a normally configured terminal.
"""

from __future__ import annotations

import select
import sys
import threading
from collections.abc import Iterator

from prompt_toolkit.input import Input, create_input
from prompt_toolkit.key_binding import KeyPress
from prompt_toolkit.keys import Keys

from .errors import KeyDecodeError


def strip_meta_prefixes(keys: list[KeyPress]) -> list[KeyPress]:
    """Drop Alt/Meta combinations (ESC followed by a key in one read).

    A lone ESC is only reported by flush_keys(), so it survives as a key
    of its own.
    """
    out: list[KeyPress] = []
    skip = False
    for i, key in enumerate(keys):
        if skip:
            skip = False
            continue
        if key.key == Keys.Escape and i + 1 < len(keys):
            skip = True
            continue
        out.append(key)
    return out


class TerminalKeySource:
    """Iterable of decoded KeyPress events from the controlling terminal."""

    def __init__(self, inp: Input | None = None, poll_interval: float = 0.05):
        self._input = inp
        self.poll_interval = poll_interval
        self._closed = threading.Event()

    @property
    def input(self) -> Input:
        if self._input is None:
            self._input = create_input(always_prefer_tty=True)
        return self._input

    @property
    def closed(self) -> bool:
        return self._closed.is_set() or self.input.closed

    def close(self) -> None:
        """Stop iteration at the next poll (safe from signal handlers)."""
        self._closed.set()

    def _wait_for_keys(self) -> list[KeyPress]:
        inp = self.input
        while not self.closed:
            try:
                ready, _, _ = select.select(
                    [inp.fileno()], [], [], self.poll_interval
                )
            except InterruptedError:
                continue
            except (OSError, ValueError) as e:
                raise KeyDecodeError(f"terminal input failed: {e}") from e

            try:
                if ready:
                    keys = strip_meta_prefixes(inp.read_keys())
                else:
                    # A lone ESC is only reported once no sequence follows
                    keys = inp.flush_keys()
            except (OSError, UnicodeDecodeError) as e:
                raise KeyDecodeError(f"unable to decode key input: {e}") from e

            if keys:
                return keys
        return []

    def __iter__(self) -> Iterator[KeyPress]:
        while not self.closed:
            with self.input.raw_mode():
                keys = self._wait_for_keys()
            yield from keys


class TerminalWriter:
    """Writes exactly what it receives to stdout or stderr and flushes."""

    def __init__(self, out=None, err=None):
        self.out = out or sys.stdout
        self.err = err or sys.stderr
        self._lock = threading.Lock()

    def write(self, text: str) -> None:
        if not text:
            return
        with self._lock:
            self.out.write(text)
            self.out.flush()

    def error(self, text: str) -> None:
        if not text:
            return
        with self._lock:
            self.out.flush()
            self.err.write(text)
            self.err.flush()
