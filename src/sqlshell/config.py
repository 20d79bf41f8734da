# sqlshell — Interactive SQL and Host Command Shell
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Configuration, defaults and session settings for sqlshell.

Handles:
- Data root resolution (SQLSHELL_DATA_HOME, ~/.local/share)
- History file location (SQLSHELL_HISTORY, ~/.sqlshell_history)
- Packaged YAML defaults loading (sqlshell.defaults/system.yaml)
- SessionConfig: the mutable per-session settings object
- ANSI coloring constants, terminal escapes and queue sentinels
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from importlib import resources as importlib_resources
from pathlib import Path
from typing import Any

import yaml

from .errors import StorageError


# -----------------------
# UI + terminal constants
# -----------------------

ANSI_COLORS: dict[str, str] = {
    "cyan": "\033[38;5;69;1m",
    "pink": "\033[38;5;169;1m",
    "magenta": "\033[38;5;126;1m",
    "yellow": "\033[38;5;226;1m",
    "reset": "\033[0m",
    "dim": "\033[2m",
    "green": "\033[32m",
    "red": "\033[31m",
}

# Which color a rendered element uses when color output is enabled
TAG_COLORS: dict[str, str] = {
    "KEY": "cyan",
    "HEADER": "cyan",
    "HISTORY": "magenta",
    "ERR": "red",
}

START_OF_LINE = "\r"
CLEAR_LINE = "\033[2K"


def cursor_left(n: int) -> str:
    return f"\033[{n}D" if n > 0 else ""


# Semantic queue sentinels shared by the editor and the dispatcher loop
NOOP = "__NOOP__"
SHUTDOWN = "__SHUTDOWN__"

DEFAULT_PROMPT = "> "
DEFAULT_HISTORY_LIMIT = 1000
HISTORY_FILENAME = ".sqlshell_history"

OUTPUT_FORMATS = ("pairs", "rows", "json")


# -----------------------
# Config model wrapper
# -----------------------


class YAMLConfig:
    """Simple config wrapper over the loaded system.yaml mapping."""

    def __init__(self, config_dict: dict[str, Any]):
        self._config = config_dict

    @property
    def system(self) -> dict[str, Any]:
        return self._config.get("system", {})

    @property
    def session(self) -> dict[str, Any]:
        session_cfg = self._config.get("session", {})
        return session_cfg if isinstance(session_cfg, dict) else {}

    @property
    def help(self) -> str:
        text = self._config.get("help", "")
        return text if isinstance(text, str) else ""

    def get(self, key: str, default: Any = None) -> Any:
        return self._config.get(key, default)

    def get_path(self, path: str, default: Any = None) -> Any:
        """
        Nested lookup using dot-separated path.
        Example: get_path("session.rows.padding", 1)
        """
        if not path:
            return default

        cur: Any = self._config
        for part in path.split("."):
            if not isinstance(cur, dict):
                return default
            if part not in cur:
                return default
            cur = cur[part]
        return cur


# -----------------------
# Filesystem locations
# -----------------------


def home_dir() -> Path:
    """Resolve the user's home directory or fail with StorageError."""
    try:
        return Path.home()
    except (RuntimeError, KeyError) as e:
        raise StorageError(f"unable to resolve home directory: {e}") from e


def get_data_root() -> Path:
    """Get the data root directory for sqlshell.

    Resolution order:
    1. SQLSHELL_DATA_HOME environment variable (if set)
    2. ~/.local/share
    """
    data_home = os.getenv("SQLSHELL_DATA_HOME")
    if data_home:
        root = Path(data_home)
    else:
        root = home_dir() / ".local" / "share"

    root.mkdir(parents=True, exist_ok=True)
    return root


def history_file(cfg: YAMLConfig | None = None) -> Path:
    """Path of the persisted command history.

    SQLSHELL_HISTORY wins; otherwise the configured file name (default
    .sqlshell_history) inside the home directory.
    """
    override = os.getenv("SQLSHELL_HISTORY")
    if override:
        return Path(override).expanduser()

    name = HISTORY_FILENAME
    if cfg is not None:
        name = str(cfg.get_path("system.history_file", HISTORY_FILENAME))
    return home_dir() / name


# -----------------------
# Packaged defaults loading
# -----------------------


def _defaults_dir() -> Path:
    """Return the installed path to the packaged defaults directory."""
    return Path(
        importlib_resources.files("sqlshell.defaults")
    )  # type: ignore[arg-type]


def load_defaults_yaml(filename: str) -> dict[str, Any]:
    """
    Load a YAML file from sqlshell/defaults/.
    """
    defaults_dir = _defaults_dir()
    path = defaults_dir / filename
    if not path.exists():
        raise FileNotFoundError(
            f"Missing defaults YAML: {filename} "
            f"(looked in {defaults_dir})"
        )

    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(
            f"Defaults YAML {filename} must load to a mapping/dict."
        )
    return data


def load_system_config() -> YAMLConfig:
    """
    Load system.yaml from packaged defaults and return a YAMLConfig wrapper.
    """
    return YAMLConfig(load_defaults_yaml("system.yaml"))


# -----------------------
# Session settings
# -----------------------


def _parse_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def _parse_bool(value: str | None) -> bool | None:
    if value is None:
        return None
    v = value.strip().lower()
    if v in ("true", "1", "yes", "on"):
        return True
    if v in ("false", "0", "no", "off"):
        return False
    return None


@dataclass
class SessionConfig:
    """Per-session output and history settings.

    Only ``apply_setting`` mutates an instance after construction; the
    dispatcher routes every ``set`` builtin through it.
    """

    format: str = "pairs"
    min_width: int = 0
    tab_width: int = 8
    padding: int = 1
    start_index: int = 0
    limit: int = 0
    color: bool = False
    history_limit: int = DEFAULT_HISTORY_LIMIT
    uri: str = ""

    @classmethod
    def from_config(cls, cfg: YAMLConfig) -> SessionConfig:
        settings = cls()
        session = cfg.session
        fmt = session.get("format")
        if fmt in OUTPUT_FORMATS:
            settings.format = fmt
        rows_cfg = session.get("rows", {})
        if isinstance(rows_cfg, dict):
            settings.min_width = int(rows_cfg.get("min_width", settings.min_width))
            settings.tab_width = int(rows_cfg.get("tab_width", settings.tab_width))
            settings.padding = int(rows_cfg.get("padding", settings.padding))
        settings.start_index = int(session.get("index", settings.start_index))
        settings.limit = int(session.get("limit", settings.limit))
        settings.color = bool(session.get("color", settings.color))
        settings.history_limit = int(
            cfg.get_path("system.history_limit", settings.history_limit)
        )
        return settings

    def in_window(self, index: int) -> bool:
        """Whether the row at raw position ``index`` should be rendered."""
        if index < self.start_index:
            return False
        return self.limit <= 0 or index <= self.limit

    def apply_setting(self, key: str, value: str | None) -> bool:
        """Apply one ``set key=value`` pair.

        Returns True if the setting changed. Unknown keys and unparseable
        values leave the current settings untouched.
        """
        key = key.strip().lower()

        if key == "format":
            return self._apply_format(value)

        if key == "connect":
            if not value or not value.strip():
                return False
            self.uri = value.strip()
            return True

        if key == "history":
            n = _parse_int(value)
            if n is None or n < 1:
                return False
            self.history_limit = n
            return True

        if key == "index":
            n = _parse_int(value)
            if n is None or n < 0:
                return False
            self.start_index = n
            return True

        if key == "limit":
            n = _parse_int(value)
            if n is None:
                return False
            self.limit = n
            return True

        if key == "pager":
            if value is None or ":" not in value:
                return False
            start_raw, limit_raw = value.split(":", 1)
            start = _parse_int(start_raw)
            limit = _parse_int(limit_raw)
            if start is None or start < 0 or limit is None:
                return False
            self.start_index = start
            self.limit = limit
            return True

        if key == "color":
            if value is None:
                self.color = not self.color
                return True
            flag = _parse_bool(value)
            if flag is None:
                return False
            self.color = flag
            return True

        return False

    def _apply_format(self, value: str | None) -> bool:
        if not value:
            return False
        parts = value.strip().lower().split(":")
        fmt = parts[0]
        if fmt not in OUTPUT_FORMATS:
            return False

        if fmt == "rows" and len(parts) > 1:
            # rows:minwidth:tabwidth:padding, every part required
            if len(parts) != 4:
                return False
            widths = [_parse_int(p) for p in parts[1:]]
            if any(w is None or w < 0 for w in widths):
                return False
            self.min_width, self.tab_width, self.padding = widths  # type: ignore[assignment]
        elif len(parts) > 1:
            return False

        self.format = fmt
        return True

    def describe(self) -> list[tuple[str, Any]]:
        """Current settings as (name, value) pairs, in declaration order."""
        return [(f.name, getattr(self, f.name)) for f in fields(self)]
