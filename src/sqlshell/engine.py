# sqlshell — Interactive SQL and Host Command Shell
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
SQL execution engine.

Transaction state machine:
- Idle --begin--> InTransaction --commit/rollback--> Idle
- insert/delete run only inside the open transaction (dropped otherwise)
- every other statement runs in a one-shot transaction that is always
  rolled back after its rows have been read

Rows of unknown schema become Records: lower-cased column name -> decoded
scalar, NULL columns omitted.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from typing import Any

from .db import decode_value
from .errors import (
    QUERY_ERROR,
    ROWS_SCAN_ERROR,
    TRANSACTION_ERROR,
    DBError,
)
from .interfaces import Database, Transaction

Record = dict[str, Any]

SQL_KEYWORDS = (
    "select", "insert", "update", "delete", "begin",
    "commit", "rollback", "alter", "create",
)
TRANSACTIONAL = ("insert", "delete")

_KEYWORD_RE = re.compile(
    r"^\s*(" + "|".join(SQL_KEYWORDS) + r")\b", re.IGNORECASE
)


def statement_keyword(statement: str) -> str | None:
    """Leading SQL keyword (lower-case) or None if the line is not SQL."""
    match = _KEYWORD_RE.match(statement)
    return match.group(1).lower() if match else None


def clean_statement(statement: str) -> str:
    """Drop blank lines from a statement."""
    return "\n".join(
        line for line in statement.split("\n") if line.strip()
    )


def make_record(columns: list[str], row: Any) -> Record:
    record: Record = {}
    for name, raw in zip(columns, row):
        value = decode_value(raw)
        if value.is_null:
            continue
        record[name] = value.data
    return record


class ResultSet:
    """Columns of a query plus its lazily decoded records.

    Iterating (or closing) releases the cursor and ends the one-shot
    transaction the rows were read from.
    """

    def __init__(
        self,
        columns: list[str] | None = None,
        cursor: Any = None,
        transaction: Transaction | None = None,
    ):
        self.columns = columns or []
        self._cursor = cursor
        self._transaction = transaction

    def __iter__(self) -> Iterator[Record]:
        if self._cursor is None:
            return
        try:
            while True:
                try:
                    row = self._cursor.fetchone()
                except Exception as e:
                    raise DBError(e, ROWS_SCAN_ERROR, "", "engine.rows") from e
                if row is None:
                    break
                yield make_record(self.columns, row)
        finally:
            self.close()

    def __enter__(self) -> ResultSet:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def close(self) -> None:
        cursor, self._cursor = self._cursor, None
        transaction, self._transaction = self._transaction, None
        if cursor is not None:
            try:
                cursor.close()
            except Exception:
                pass
        if transaction is not None:
            transaction.rollback()


class SQLExecutionEngine:
    """Executes SQL against the session database."""

    def __init__(self, database: Database):
        self.database = database
        self.transaction: Transaction | None = None

    @property
    def in_transaction(self) -> bool:
        return self.transaction is not None

    def execute(self, statement: str) -> ResultSet:
        """Run one statement; only queries yield rows."""
        statement = clean_statement(statement)
        keyword = statement_keyword(statement)

        if keyword == "begin":
            self.begin()
            return ResultSet()
        if keyword == "commit":
            self.commit()
            return ResultSet()
        if keyword == "rollback":
            self.rollback()
            return ResultSet()
        if keyword in TRANSACTIONAL:
            self._execute_in_transaction(statement)
            return ResultSet()
        return self.query(statement)

    def begin(self) -> None:
        # A second begin would orphan the open transaction
        if self.transaction is not None:
            raise DBError(
                None, TRANSACTION_ERROR, "transaction already started",
                "engine.begin"
            )
        self.transaction = self.database.begin()

    def commit(self) -> None:
        if self.transaction is None:
            raise DBError(
                None, TRANSACTION_ERROR, "transaction not started",
                "engine.commit"
            )
        transaction, self.transaction = self.transaction, None
        transaction.commit()

    def rollback(self) -> None:
        if self.transaction is None:
            return
        transaction, self.transaction = self.transaction, None
        transaction.rollback()

    def _execute_in_transaction(self, statement: str) -> None:
        if self.transaction is None:
            return
        try:
            cursor = self.transaction.execute(statement)
        except DBError:
            raise
        except Exception as e:
            raise DBError(
                e, QUERY_ERROR, f"unable to execute statement: {statement}",
                "engine.execute"
            ) from e
        cursor.close()

    def query(self, statement: str) -> ResultSet:
        """Run a statement in a fresh transaction that is never committed."""
        transaction = self.database.begin()
        try:
            cursor = transaction.execute(statement)
        except Exception as e:
            transaction.rollback()
            if isinstance(e, DBError):
                raise
            raise DBError(
                e, QUERY_ERROR, f"unable to query statement: {statement}",
                "engine.query"
            ) from e

        description = cursor.description or []
        columns = [str(col[0]).lower() for col in description]
        return ResultSet(columns, cursor, transaction)

    def use(self, database: Database) -> None:
        """Switch databases, abandoning any open transaction."""
        self.rollback()
        old, self.database = self.database, database
        if old is not database:
            old.close()

    def close(self) -> None:
        self.rollback()
        self.database.close()
