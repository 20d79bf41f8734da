# sqlshell — Interactive SQL and Host Command Shell
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
sqlshell CLI entry point.

Design:
- CLI owns process startup, DB resolution and shutdown.
- The key listener runs on the main thread, the dispatcher loop on a
  worker thread; they only talk through the command and done queues.
"""

from __future__ import annotations

import queue
import signal
import sys
import threading
from collections.abc import Callable, Iterable

from . import config
from .db import open_database
from .dispatcher import DEFAULT_HELP, CommandDispatcher
from .editor import KeyInputEngine
from .engine import SQLExecutionEngine
from .errors import DBError, StorageError, write_crash_log
from .executor import SubprocessExecutor
from .history import FileLineStore, HistoryStore
from .ui import TerminalKeySource, TerminalWriter

USAGE = "Usage: sqlshell <dburi | dbconfig.json>\n"


def run_session(
    editor: KeyInputEngine,
    dispatcher: CommandDispatcher,
    keys: Iterable,
    write: Callable[[str], None],
    poll_interval: float = 0.01,
) -> None:
    """Run one shell session until quit, exit, or end of key input."""
    commands: queue.Queue = queue.Queue()
    done: queue.Queue = queue.Queue()

    worker = threading.Thread(
        target=dispatcher.serve,
        args=(commands, done, poll_interval),
        name="sqlshell-dispatcher",
        daemon=True,
    )
    worker.start()
    try:
        editor.listen(keys, commands, done, write)
    finally:
        worker.join()


def main(argv: list[str] | None = None) -> int:
    """Main entry point for sqlshell."""
    args = sys.argv[1:] if argv is None else argv
    if not args:
        sys.stderr.write(USAGE)
        return 2

    cfg = config.load_system_config()
    settings = config.SessionConfig.from_config(cfg)

    uri = "".join(args)
    try:
        database = open_database(uri)
    except DBError as e:
        sys.stderr.write(f"{e}\n")
        return 1
    settings.uri = database.uri

    try:
        history = HistoryStore(
            FileLineStore(config.history_file(cfg)),
            limit=settings.history_limit,
        )
        history.load()
    except StorageError as e:
        sys.stderr.write(f"fatal: {e}\n")
        return 1

    writer = TerminalWriter()
    prompt = str(cfg.get_path("system.prompt", config.DEFAULT_PROMPT))
    poll_ms = int(cfg.get_path("system.poll_interval_ms", 10))

    editor = KeyInputEngine(history, prompt=prompt)
    dispatcher = CommandDispatcher(
        engine=SQLExecutionEngine(database),
        history=history,
        settings=settings,
        executor=SubprocessExecutor(),
        connector=open_database,
        prompt=prompt,
        help_text=cfg.help or DEFAULT_HELP,
        output_fn=writer.write,
        error_fn=writer.error,
    )

    source = TerminalKeySource()
    signal.signal(signal.SIGTERM, lambda _signum, _frame: source.close())

    try:
        run_session(editor, dispatcher, source, writer.write, poll_ms / 1000)
    except KeyboardInterrupt:
        writer.write("\n")
        return 130
    except StorageError as e:
        writer.error(f"fatal: {e}\n")
        return 1
    except Exception as e:
        write_crash_log(e, uri=settings.uri, source="cli")
        writer.error(f"Unhandled exception: {type(e).__name__}: {e}\n")
        return 1

    if dispatcher.fatal is not None:
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
