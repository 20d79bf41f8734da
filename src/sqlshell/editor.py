# sqlshell — Interactive SQL and Host Command Shell
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Raw-keystroke line editor.

KeyInputEngine turns decoded key events (prompt_toolkit KeyPress objects or
bare characters) into buffer edits, history recall and completed command
lines. It never writes to the terminal itself: handle() returns the exact
text to write, listen() hands it to an injected writer.

Design:
- Every key re-renders the whole line (start of line, clear, prompt +
  buffer, cursor moved back from the end), so the visible line always
  matches the buffer.
- Completed lines go to the command queue; listen() waits for the
  dispatcher to finish each one before reading the next key.
"""

from __future__ import annotations

import queue
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from prompt_toolkit.key_binding import KeyPress
from prompt_toolkit.keys import Keys

from .buffer import LineBuffer
from .config import (
    CLEAR_LINE,
    DEFAULT_PROMPT,
    NOOP,
    SHUTDOWN,
    START_OF_LINE,
    cursor_left,
)
from .errors import KeyDecodeError, StorageError, write_crash_log
from .history import HistoryStore

BANG_RECALL = re.compile(r"^!(\d+)$")

SUBMIT_KEYS = {Keys.ControlM, Keys.ControlJ}
QUIT_KEYS = {Keys.ControlC, Keys.Escape}


@dataclass(frozen=True)
class KeyResult:
    """Outcome of one key event.

    render: terminal text to write ("" for nothing)
    command: completed line to dispatch (NOOP for an empty line)
    stop: the operator asked to leave
    """

    render: str = ""
    command: str | None = None
    stop: bool = False


class KeyInputEngine:
    """Line editor state machine over a LineBuffer and a HistoryStore."""

    def __init__(self, history: HistoryStore, prompt: str = DEFAULT_PROMPT):
        self.history = history
        self.prompt = prompt
        self.buffer = LineBuffer()

    @property
    def browsing(self) -> bool:
        return self.history.hpos < len(self.history)

    def redraw(self) -> str:
        """Terminal text that repaints prompt + buffer and places the cursor."""
        return (
            START_OF_LINE
            + CLEAR_LINE
            + self.prompt
            + self.buffer.text
            + cursor_left(len(self.buffer) - self.buffer.cursor)
        )

    # -----------------------
    # Key handling
    # -----------------------

    def handle(self, key: KeyPress | str) -> KeyResult:
        """Apply one key event."""
        if isinstance(key, KeyPress):
            code, data = key.key, key.data
        else:
            code, data = key, key

        if not isinstance(code, Keys):
            if code.isprintable():
                self._leave_history()
                self.buffer.insert(code)
                return KeyResult(render=self.redraw())
            return KeyResult()

        if code == Keys.BracketedPaste:
            text = "".join(ch for ch in data if ch.isprintable())
            if not text:
                return KeyResult()
            self._leave_history()
            self.buffer.insert(text)
            return KeyResult(render=self.redraw())

        if code in SUBMIT_KEYS:
            return self._submit()

        if code in QUIT_KEYS:
            return KeyResult(render="\n", stop=True)

        if code == Keys.ControlD:
            if len(self.buffer) == 0:
                return KeyResult(render="\n", stop=True)
            return KeyResult()

        if code == Keys.Left:
            self.buffer.left()
        elif code == Keys.Right:
            self.buffer.right()
        elif code in (Keys.ControlA, Keys.Home):
            self.buffer.home()
        elif code in (Keys.ControlE, Keys.End):
            self.buffer.end()
        elif code == Keys.ControlH:
            if self.buffer.backspace():
                self._leave_history()
        elif code == Keys.Up:
            entry = self.history.up()
            if entry is not None:
                self.buffer.replace(entry)
        elif code == Keys.Down:
            entry = self.history.down()
            if entry is not None:
                self.buffer.replace(entry)
        else:
            return KeyResult()

        return KeyResult(render=self.redraw())

    def _leave_history(self) -> None:
        # Any edit turns the recalled text into a new line being composed
        if self.browsing:
            self.history.reset_cursor()

    def _submit(self) -> KeyResult:
        command = self.buffer.freeze()

        if not command.strip():
            self.history.reset_cursor()
            return KeyResult(command=NOOP)

        match = BANG_RECALL.match(command.strip())
        if match:
            recalled = self.history.get(int(match.group(1)))
            if recalled is None:
                self.history.reset_cursor()
                return KeyResult(render=self.redraw())
            command = recalled

        self.history.append(command)
        return KeyResult(command=command)

    # -----------------------
    # Listen loop
    # -----------------------

    def listen(
        self,
        keys: Iterable[KeyPress | str],
        commands: queue.Queue,
        done: queue.Queue,
        write: Callable[[str], None],
    ) -> None:
        """Feed keys until quit, end of input, or the dispatcher finishing.

        The prompt is written once up front; afterwards the dispatcher
        re-prompts after each command.
        """
        write(self.prompt)
        try:
            for key in keys:
                result = self.handle(key)
                if result.render:
                    write(result.render)
                if result.stop:
                    break
                if result.command is None:
                    continue

                commands.put(result.command)
                # Next key is read only after the command has been handled
                commands.join()
                if not done.empty():
                    return
        except KeyDecodeError as e:
            write_crash_log(e, command=self.buffer.text, source="keyboard")
            try:
                self.history.persist()
            except StorageError as flush_error:
                write_crash_log(flush_error, source="history")
            commands.put(SHUTDOWN)
            return
        except KeyboardInterrupt:
            # Interrupted while a command runs: flush before leaving
            self.shutdown(commands)
            raise

        self.shutdown(commands)

    def shutdown(self, commands: queue.Queue) -> None:
        """Persist history and tell the dispatcher loop to stop."""
        try:
            self.history.persist()
        finally:
            commands.put(SHUTDOWN)
