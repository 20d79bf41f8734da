# sqlshell — Interactive SQL and Host Command Shell
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Database handles and value decoding for sqlshell.

Handles:
- Connection provider: DB URI / JSON config file -> Database handle
- Database + DBTransaction: DB-API 2.0 connection per transaction
- Value: closed tagged variant decoded once at the query boundary
"""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path
from typing import Any

from .errors import (
    COMMIT_ERROR,
    DATABASE_ERROR,
    NOT_IMPLEMENTED_ERROR,
    PARSE_ERROR,
    QUERY_ERROR,
    TRANSACTION_ERROR,
    DBError,
)

SQLITE_SCHEMES = ("sqlite://", "sqlite3://")


# -----------------------
# Values
# -----------------------


class ValueKind(Enum):
    """Scalar kinds a column value is decoded into."""
    NULL = auto()
    TEXT = auto()
    INTEGER = auto()
    FLOAT = auto()
    BOOLEAN = auto()
    RAW = auto()


@dataclass(frozen=True)
class Value:
    kind: ValueKind
    data: Any = None

    @property
    def is_null(self) -> bool:
        return self.kind is ValueKind.NULL


NULL = Value(ValueKind.NULL)


def decode_value(raw: Any) -> Value:
    """Map a driver-returned value onto a Value.

    bool is tested before int since it is an int subclass; bytes-like and
    every other driver type (Decimal, datetime, ...) stay RAW.
    """
    if raw is None:
        return NULL
    if isinstance(raw, bool):
        return Value(ValueKind.BOOLEAN, raw)
    if isinstance(raw, int):
        return Value(ValueKind.INTEGER, raw)
    if isinstance(raw, float):
        return Value(ValueKind.FLOAT, raw)
    if isinstance(raw, str):
        return Value(ValueKind.TEXT, raw)
    if isinstance(raw, (bytearray, memoryview)):
        return Value(ValueKind.RAW, bytes(raw))
    return Value(ValueKind.RAW, raw)


# -----------------------
# Handles
# -----------------------


class DBTransaction:
    """One open transaction on its own DB-API connection."""

    def __init__(self, conn: Any, begin_statement: str | None = None):
        self._conn = conn
        self.closed = False
        if begin_statement:
            try:
                conn.execute(begin_statement)
            except Exception as e:
                conn.close()
                raise DBError(e, TRANSACTION_ERROR, "", "db.begin") from e

    def execute(self, statement: str, params: tuple = ()) -> Any:
        if self.closed:
            raise DBError(
                None, TRANSACTION_ERROR, "transaction already closed",
                "db.execute"
            )
        cur = self._conn.cursor()
        cur.execute(statement, params)
        return cur

    def commit(self) -> None:
        if self.closed:
            return
        try:
            self._conn.commit()
        except Exception as e:
            raise DBError(e, COMMIT_ERROR, "", "db.commit") from e
        finally:
            self._close()

    def rollback(self) -> None:
        if self.closed:
            return
        try:
            self._conn.rollback()
        finally:
            self._close()

    def _close(self) -> None:
        self.closed = True
        self._conn.close()


class Database:
    """A ready-to-query data source.

    Each begin() opens a fresh connection from ``connect`` so concurrent
    transactions (the explicit one and one-shot reads) never share state.
    """

    def __init__(
        self,
        connect: Callable[[], Any],
        uri: str = "",
        begin_statement: str | None = None,
    ):
        self._connect = connect
        self.uri = uri
        self.begin_statement = begin_statement

    def begin(self) -> DBTransaction:
        try:
            conn = self._connect()
        except Exception as e:
            raise DBError(e, DATABASE_ERROR, "", "db.begin") from e
        return DBTransaction(conn, self.begin_statement)

    def ping(self) -> None:
        """Open a connection and run a trivial query."""
        tx = self.begin()
        try:
            tx.execute("SELECT 1").fetchall()
        except DBError:
            raise
        except Exception as e:
            raise DBError(e, QUERY_ERROR, "ping failed", "db.ping") from e
        finally:
            tx.rollback()

    def close(self) -> None:
        # Connections are per transaction; nothing is held open here
        pass


# -----------------------
# Connection provider
# -----------------------


@dataclass
class DBConfig:
    """JSON database description, e.g. {"type": "sqlite", "file": "/tmp/x.db"}."""

    type: str = ""
    user: str = ""
    password: str = ""
    name: str = ""
    file: str = ""
    host: str = ""
    port: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DBConfig:
        return cls(
            type=str(data.get("type", "")),
            user=str(data.get("user", "")),
            password=str(data.get("password", "")),
            name=str(data.get("name", "")),
            file=str(data.get("file") or data.get("path") or ""),
            host=str(data.get("host", "")),
            port=int(data.get("port") or 0),
        )

    def uri(self) -> str:
        """Generic <dbtype>://<dburi> form for this config."""
        if self.type in ("sqlite", "sqlite3"):
            return f"sqlite://{self.file}"
        if self.type == "mysql":
            return (
                f"mysql://{self.user}:{self.password}"
                f"@tcp({self.host}:{self.port})/{self.name}"
            )
        if self.type == "oracle":
            return f"oracle://{self.user}/{self.password}@{self.name}"
        if self.type == "postgres":
            return (
                f"postgres://{self.user}:{self.password}"
                f"@{self.name}:{self.host}:{self.port}"
            )
        raise DBError(
            f"unsupported DB type {self.type!r}", PARSE_ERROR, "",
            "db.DBConfig.uri"
        )


def read_config(path: Path) -> str:
    """Read a JSON DB config file and return its URI."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise DBError(e, PARSE_ERROR, f"bad DB config {path}", "db.read_config") from e
    if not isinstance(data, dict):
        raise DBError(
            "config must be a JSON object", PARSE_ERROR, str(path),
            "db.read_config"
        )
    return DBConfig.from_dict(data).uri()


def _sqlite_path(uri: str) -> str:
    for scheme in SQLITE_SCHEMES:
        if uri.startswith(scheme):
            return uri[len(scheme):]
    return uri


def open_sqlite(path: str, uri: str = "") -> Database:
    """Database over the standard library sqlite3 driver.

    Autocommit mode plus an explicit BEGIN gives real transactions for DDL
    as well as DML.
    """

    def _connect() -> sqlite3.Connection:
        return sqlite3.connect(path, isolation_level=None)

    return Database(_connect, uri=uri or f"sqlite://{path}", begin_statement="BEGIN")


def open_database(uri: str) -> Database:
    """Resolve a DB URI (or JSON config file) into a validated Database."""
    uri = uri.strip()
    if not uri:
        raise DBError("empty DB URI", PARSE_ERROR, "", "db.open_database")

    if uri.endswith(".json") and Path(uri).is_file():
        uri = read_config(Path(uri))

    scheme, sep, _rest = uri.partition("://")
    if sep and f"{scheme}://" not in SQLITE_SCHEMES:
        raise DBError(
            f"unsupported DB driver {scheme!r}", NOT_IMPLEMENTED_ERROR, uri,
            "db.open_database"
        )

    path = _sqlite_path(uri)
    if not path:
        raise DBError("missing database file", PARSE_ERROR, uri, "db.open_database")

    database = open_sqlite(path, uri)
    database.ping()
    return database
