# sqlshell — Interactive SQL and Host Command Shell
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
sqlshell command dispatcher.

Routes a completed line to one of:
- builtins: history, help, set, exit/quit, cd
- the SQL engine (statements starting with a known SQL keyword)
- a host process (everything else)

Important boundary:
- The dispatcher never reads keys; it only consumes the command queue.
- It owns the SessionConfig and the SQL engine; the editor never touches
  either.
"""

from __future__ import annotations

import os
import queue
import sys
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum, auto

from .config import (
    ANSI_COLORS,
    DEFAULT_PROMPT,
    NOOP,
    SHUTDOWN,
    TAG_COLORS,
    SessionConfig,
)
from .engine import SQLExecutionEngine, statement_keyword
from .errors import CommandError, ShellError, StorageError, write_crash_log
from .formatter import OutputFormatter
from .history import HistoryStore
from .interfaces import Database, ProcessRunner

DEFAULT_HELP = "sqlshell: type SQL statements, builtins or host commands."


class CommandKind(Enum):
    BUILTIN = auto()
    SQL = auto()
    SHELL = auto()


@dataclass(frozen=True)
class Command:
    kind: CommandKind
    name: str
    line: str
    args: tuple[str, ...] = ()


def classify(line: str) -> Command:
    """Classify a command line; first matching rule wins."""
    stripped = line.strip()

    if stripped == "history":
        return Command(CommandKind.BUILTIN, "history", stripped)

    if stripped.startswith("!"):
        # Bang references are resolved by the editor before dispatch
        return Command(CommandKind.BUILTIN, "bang", stripped)

    keyword = statement_keyword(stripped)
    if keyword is not None:
        return Command(CommandKind.SQL, keyword, stripped)

    if _is_word(stripped, "help"):
        return Command(CommandKind.BUILTIN, "help", stripped)

    if _is_word(stripped, "set"):
        return Command(
            CommandKind.BUILTIN, "set", stripped, tuple(stripped.split()[1:])
        )

    if stripped in ("exit", "quit"):
        return Command(CommandKind.BUILTIN, "exit", stripped)

    parts = stripped.split()
    if parts and parts[0] == "cd":
        return Command(CommandKind.BUILTIN, "cd", stripped, tuple(parts[1:]))

    return Command(
        CommandKind.SHELL, parts[0] if parts else "", stripped, tuple(parts[1:])
    )


def _is_word(line: str, word: str) -> bool:
    return line == word or line.startswith(word + " ")


def expand_home(arg: str) -> str:
    """Replace a leading ``~`` with the home directory."""
    if arg.startswith("~"):
        return os.path.expanduser(arg)
    return arg


def _write_stdout(text: str) -> None:
    sys.stdout.write(text)
    sys.stdout.flush()


def _write_stderr(text: str) -> None:
    sys.stderr.write(text)
    sys.stderr.flush()


@dataclass
class CommandDispatcher:
    """sqlshell session engine on the dispatcher side."""

    engine: SQLExecutionEngine
    history: HistoryStore
    settings: SessionConfig
    executor: ProcessRunner

    # Connection provider used by "set connect=<uri>"
    connector: Callable[[str], Database] | None = None

    prompt: str = DEFAULT_PROMPT
    help_text: str = DEFAULT_HELP
    running: bool = True

    # Set when a StorageError ended the session
    fatal: Exception | None = None

    output_fn: Callable[[str], None] = _write_stdout
    error_fn: Callable[[str], None] = _write_stderr

    def __post_init__(self) -> None:
        self.formatter = OutputFormatter(
            self.settings, lambda text: self.output_fn(text)
        )
        self.history.limit = self.settings.history_limit

    # -----------------------
    # Dispatcher loop
    # -----------------------

    def serve(
        self,
        commands: queue.Queue,
        done: queue.Queue,
        poll_interval: float = 0.01,
    ) -> None:
        """Drain the command queue until exit/quit or the shutdown pill."""
        while self.running:
            try:
                line = commands.get(timeout=poll_interval)
            except queue.Empty:
                continue

            try:
                if line == SHUTDOWN:
                    self.running = False
                else:
                    self.output_fn("\n")
                    if line != NOOP:
                        self.handle_command(line)
                    if self.running:
                        self.output_fn(self.prompt)
            except StorageError as e:
                self.fatal = e
                self.running = False
                self.report(f"fatal: {e}")
            finally:
                if not self.running:
                    done.put(True)
                commands.task_done()

        self.engine.close()

    def handle_command(self, line: str) -> None:
        """Handle a single command line, reporting non-fatal errors."""
        try:
            self.dispatch(classify(line))
        except StorageError:
            raise
        except (ShellError, OSError) as e:
            self.report(str(e))
        except Exception as e:
            write_crash_log(e, command=line, uri=self.settings.uri, source="dispatcher")
            self.report(f"Unhandled exception: {type(e).__name__}: {e}")

    def report(self, message: str) -> None:
        if self.settings.color:
            red = ANSI_COLORS[TAG_COLORS["ERR"]]
            message = f"{red}{message}{ANSI_COLORS['reset']}"
        self.error_fn(message.rstrip("\n") + "\n")

    def dispatch(self, command: Command) -> None:
        if command.kind is CommandKind.SQL:
            self._handle_sql(command.line)
        elif command.kind is CommandKind.SHELL:
            self._handle_shell(command)
        elif command.name == "history":
            self._handle_history()
        elif command.name == "bang":
            raise CommandError(f"{command.line}: event not found")
        elif command.name == "help":
            self.output_fn(self.help_text.rstrip("\n") + "\n")
        elif command.name == "set":
            self._handle_set(command.line)
        elif command.name == "exit":
            self._handle_exit()
        elif command.name == "cd":
            self._handle_cd(command.args)

    # -----------------------
    # SQL
    # -----------------------

    def _handle_sql(self, statement: str) -> None:
        with self.engine.execute(statement) as result:
            self.formatter.render(result, result.columns)

    # -----------------------
    # Host commands
    # -----------------------

    def _handle_shell(self, command: Command) -> None:
        if not command.name:
            return
        argv = [command.name] + [expand_home(a) for a in command.args]
        result = self.executor.run(argv)
        if result.error:
            raise CommandError(result.error)
        if result.exit_code != 0:
            raise CommandError(f"exit status {result.exit_code}")

    def _handle_cd(self, args: tuple[str, ...]) -> None:
        if not args:
            raise CommandError("path required")
        os.chdir(expand_home(args[0]))

    # -----------------------
    # History
    # -----------------------

    def _handle_history(self) -> None:
        width = len(str(max(len(self.history) - 1, 0)))
        lines = []
        for index, entry in self.history.numbered():
            label = str(index).rjust(width)
            if self.settings.color:
                color = ANSI_COLORS[TAG_COLORS["HISTORY"]]
                label = f"{color}{label}{ANSI_COLORS['reset']}"
            lines.append(f"{label}  {entry}")
        if lines:
            self.output_fn("\n".join(lines) + "\n")

    # -----------------------
    # Settings
    # -----------------------

    def _handle_set(self, line: str) -> None:
        body = line[len("set"):].strip()
        if not body:
            lines = ["Current settings:"]
            for name, value in self.settings.describe():
                lines.append(f"  {name}: {value}")
            self.output_fn("\n".join(lines) + "\n")
            return

        key, sep, value = body.partition("=")
        key = key.strip().lower()
        raw_value = value.strip() if sep else None

        if key == "connect":
            self._connect(raw_value)
            return

        if self.settings.apply_setting(key, raw_value) and key == "history":
            self.history.limit = self.settings.history_limit

    def _connect(self, uri: str | None) -> None:
        if not uri:
            return
        if self.connector is None:
            raise CommandError("connect: no connection provider configured")
        database = self.connector(uri)
        self.engine.use(database)
        self.settings.apply_setting("connect", uri)

    # -----------------------
    # Exit
    # -----------------------

    def _handle_exit(self) -> None:
        self.history.persist()
        self.running = False
        self.output_fn("Bye!\n")
