"""SQLite persistence adapter."""

import sqlite3
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any

from tablerest.engine.types import EntityRecord, SqlStatement
from tablerest.errors import ValidationError
from tablerest.persistence.adapter import quote_identifier


class SQLiteAdapter:
    """Simple SQLite persistence adapter.

    Differences from PostgreSQL the engine cares about:
      - ``:name`` placeholders
      - ``DATE(expr)`` to truncate timestamps stored as ISO text
      - no stored procedures
      - Decimal and date/time values are bound as text
    """

    dialect = "sqlite"

    def __init__(self, db_path: Path | str = ":memory:"):
        self.db_path = str(db_path)

    @property
    def errors(self) -> tuple[type[Exception], ...]:
        return (sqlite3.Error,)

    def connect(self) -> sqlite3.Connection:
        """Open a new connection; the caller closes it."""
        conn = sqlite3.connect(self.db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def catalog_columns(self, conn: sqlite3.Connection, table: str) -> list[tuple[str, str]]:
        """Return (column name, declared type) pairs in table order."""
        cursor = conn.execute(
            "SELECT name, type FROM pragma_table_info(?) ORDER BY cid",
            [table],
        )
        return [(row["name"], row["type"] or "") for row in cursor.fetchall()]

    def execute(self, conn: sqlite3.Connection, statement: SqlStatement) -> sqlite3.Cursor:
        params = {name: self.adapt(value) for name, value in statement.params.items()}
        return conn.execute(statement.sql, params)

    def fetch_records(self, cursor: sqlite3.Cursor) -> list[EntityRecord]:
        if cursor.description is None:
            return []
        return [dict(row) for row in cursor.fetchall()]

    # ------------------------------------------------------------------
    # SQL rendering hooks
    # ------------------------------------------------------------------

    def quote(self, identifier: str) -> str:
        return quote_identifier(identifier)

    def placeholder(self, name: str) -> str:
        return f":{name}"

    def escape_literal(self, text: str) -> str:
        return text

    def text_cast(self, expression: str) -> str:
        return f"CAST({expression} AS TEXT)"

    def date_truncate(self, expression: str) -> str:
        return f"DATE({expression})"

    def returning(self, column: str) -> str:
        return f" RETURNING {self.quote(column)}"

    def procedure_call(self, name: str, arg_names: list[str]) -> str:
        raise ValidationError("Stored procedures are not supported by SQLite databases.")

    def adapt(self, value: Any) -> Any:
        """Convert values sqlite3 cannot bind natively."""
        if isinstance(value, Decimal):
            return str(value)
        if isinstance(value, datetime):
            return value.isoformat(sep=" ")
        if isinstance(value, date):
            return value.isoformat()
        return value
