# sqlshell — Interactive SQL and Host Command Shell
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Record rendering.

Formats (SessionConfig.format):
- pairs: "key: value" per column, keys padded to the longest key,
  blank line before each record
- json: one JSON object per line
- rows: aligned columns with a single header line

Only rows inside the window (SessionConfig.in_window) are rendered. Rows
before the start index are read and dropped; reading stops once the limit
is passed.
"""

from __future__ import annotations

import base64
import json
from collections.abc import Callable, Iterable
from typing import Any

from .config import ANSI_COLORS, TAG_COLORS, SessionConfig
from .errors import ENCODE_ERROR, DBError

Record = dict[str, Any]


def display_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, bytes):
        return value.hex()
    return str(value)


def _json_default(value: Any) -> Any:
    if isinstance(value, bytes):
        return base64.b64encode(value).decode("ascii")
    return str(value)


class OutputFormatter:
    """Writes records through ``write`` according to the session settings."""

    def __init__(self, settings: SessionConfig, write: Callable[[str], None]):
        self.settings = settings
        self.write = write

    def _color(self, tag: str, text: str) -> str:
        if not self.settings.color:
            return text
        color = ANSI_COLORS[TAG_COLORS[tag]]
        return f"{color}{text}{ANSI_COLORS['reset']}"

    def render(
        self, records: Iterable[Record], columns: list[str] | None = None
    ) -> int:
        """Render a record stream; returns how many records were shown."""
        shown = 0
        limit = self.settings.limit
        for index, record in enumerate(records):
            if limit > 0 and index > limit:
                break
            if not self.settings.in_window(index):
                continue
            if self.settings.format == "rows" and index == self.settings.start_index:
                self.write(self.header(columns or list(record)))
            self.write(self.format_record(record, columns))
            shown += 1
        return shown

    def format_record(
        self, record: Record, columns: list[str] | None = None
    ) -> str:
        fmt = self.settings.format
        if fmt == "json":
            return self.format_json(record)
        if fmt == "rows":
            return self.format_row(record, columns or list(record))
        return self.format_pairs(record)

    # -----------------------
    # pairs
    # -----------------------

    def format_pairs(self, record: Record) -> str:
        if not record:
            return "\n"
        width = max(len(key) for key in record)
        lines = [""]
        for key, value in record.items():
            lines.append(
                f"{self._color('KEY', key.rjust(width))}: {display_value(value)}"
            )
        return "\n".join(lines) + "\n"

    # -----------------------
    # json
    # -----------------------

    def format_json(self, record: Record) -> str:
        try:
            return json.dumps(record, default=_json_default) + "\n"
        except (TypeError, ValueError) as e:
            raise DBError(e, ENCODE_ERROR, "", "formatter.json") from e

    # -----------------------
    # rows
    # -----------------------

    def column_width(self, name: str) -> int:
        s = self.settings
        width = max(s.min_width, len(name) + s.padding)
        if s.tab_width > 0 and width % s.tab_width:
            width += s.tab_width - width % s.tab_width
        return width

    def _cells(self, columns: list[str], texts: list[str]) -> str:
        parts: list[str] = []
        last = len(columns) - 1
        for i, (name, text) in enumerate(zip(columns, texts)):
            if i == last:
                parts.append(text)
                continue
            width = self.column_width(name)
            if len(text) < width:
                parts.append(text.ljust(width))
            else:
                parts.append(text + " " * max(self.settings.padding, 1))
        return "".join(parts)

    def header(self, columns: list[str]) -> str:
        line = self._cells(columns, list(columns))
        return self._color("HEADER", line) + "\n"

    def format_row(self, record: Record, columns: list[str]) -> str:
        texts = [
            display_value(record[c]) if c in record else ""
            for c in columns
        ]
        return self._cells(columns, texts).rstrip() + "\n"
