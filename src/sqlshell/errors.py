# sqlshell — Interactive SQL and Host Command Shell
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Error types and crash logging for sqlshell.

Non-fatal errors derive from ShellError: the dispatcher reports them on the
error stream and re-prompts. KeyDecodeError ends the input session and
StorageError (history file, home directory) is fatal to the process.
"""

from __future__ import annotations

import traceback
from datetime import datetime

# Database error codes (1xx range)
GENERIC_ERROR = 100
DATABASE_ERROR = 101
TRANSACTION_ERROR = 102
QUERY_ERROR = 103
ROWS_SCAN_ERROR = 104
SESSION_ERROR = 105
COMMIT_ERROR = 106
PARSE_ERROR = 107
INSERT_ERROR = 110
UPDATE_ERROR = 111
VALIDATE_ERROR = 113
DECODE_ERROR = 115
ENCODE_ERROR = 116
NOT_IMPLEMENTED_ERROR = 119

_EXPLANATIONS: dict[int, str] = {
    GENERIC_ERROR: "Generic DB error",
    DATABASE_ERROR: "DB error, e.g. unable to open or reach the database",
    TRANSACTION_ERROR: "DB transaction error",
    QUERY_ERROR: "DB query error, e.g. malformed SQL statement",
    ROWS_SCAN_ERROR: "DB row scan error, e.g. fail to get DB record from a database",
    SESSION_ERROR: "DB session error",
    COMMIT_ERROR: "DB transaction commit error",
    PARSE_ERROR: "parser error, e.g. malformed connection URI or config",
    INSERT_ERROR: "DB insert record error",
    UPDATE_ERROR: "DB update record error",
    VALIDATE_ERROR: "validation error",
    DECODE_ERROR: "decode record failure, e.g. malformed JSON",
    ENCODE_ERROR: "encode record failure, e.g. unable to convert record to JSON",
    NOT_IMPLEMENTED_ERROR: "Not implemented error, e.g. unsupported DB driver",
}


class ShellError(Exception):
    """Base class for errors reported to the user without ending the session."""


class CommandError(ShellError):
    """Dispatch failure: bad builtin arguments, failed process spawn, etc."""


class DBError(ShellError):
    """Database failure carrying a numeric code and the failing function."""

    def __init__(
        self,
        reason: object = None,
        code: int = GENERIC_ERROR,
        message: str = "",
        function: str = "",
    ):
        self.reason = "nil" if reason is None else str(reason)
        self.code = code
        self.message = message
        self.function = function
        super().__init__(str(self))

    def explain(self) -> str:
        return _EXPLANATIONS.get(self.code, "Not defined")

    def __str__(self) -> str:
        sep = ": "
        if "DBError" in self.reason:
            sep += "nested "
        return (
            f"DBError Code:{self.code} Description:{self.explain()} "
            f"Function:{self.function} Message:{self.message} "
            f"Error{sep}{self.reason}"
        )


class KeyDecodeError(Exception):
    """The keystroke source could not decode terminal input."""


class StorageError(Exception):
    """History storage or home directory failure; unrecoverable."""


def write_crash_log(
    error: BaseException,
    command: str = "",
    uri: str = "",
    source: str = "",
) -> None:
    """Write an entry to the crash log.

    Logs unhandled exceptions and session-ending input failures.
    Only creates the log directory when actually needed.
    Appends to crash.log (never overwrites).
    """
    try:
        from .config import get_data_root

        logs_dir = get_data_root() / "sqlshell" / "logs"
        logs_dir.mkdir(parents=True, exist_ok=True)
        crash_log_path = logs_dir / "crash.log"

        lines = [datetime.now().isoformat()]
        if source:
            lines.append(f"source={source}")
        if command:
            lines.append(f"command={command}")
        if uri:
            lines.append(f"uri={uri}")

        lines.append(f"error={type(error).__name__}: {error}")
        lines.append("traceback:")
        lines.append(
            "".join(
                traceback.format_exception(
                    type(error), error, error.__traceback__
                )
            )
        )
        lines.append("----")

        with crash_log_path.open("a", encoding="utf-8") as f:
            f.write("\n".join(lines) + "\n")

    except Exception:
        # Already in an error state; nothing left to report to
        pass
