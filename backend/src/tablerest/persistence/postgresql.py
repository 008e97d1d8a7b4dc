"""PostgreSQL persistence adapter.

Uses psycopg v3 (psycopg[binary]>=3.1.0) for database access.
Mirrors SQLiteAdapter method-for-method with PostgreSQL-specific SQL:
  - %(name)s placeholders instead of :name
  - CAST(expr AS DATE) to truncate timestamps
  - information_schema.columns for catalog lookups
  - CALL with named arguments for stored procedures
  - dict_row cursor factory for dict-based row access

Identifier quoting strategy
----------------------------
PostgreSQL folds unquoted identifiers to lowercase. Table and column names
come straight from the catalog, so they are always double-quoted to keep
their exact casing and to survive reserved words such as ``user`` or
``order``.
"""

from __future__ import annotations

import re
from typing import Any

from tablerest.engine.types import EntityRecord, SqlStatement
from tablerest.errors import ValidationError
from tablerest.persistence.adapter import quote_identifier

_ROUTINE_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")

_CATALOG_SQL = (
    "SELECT column_name, data_type"
    " FROM information_schema.columns"
    " WHERE table_name = %s"
    " AND table_schema = ANY(current_schemas(false))"
    " ORDER BY ordinal_position"
)


class PostgreSQLAdapter:
    """PostgreSQL persistence adapter using psycopg v3."""

    dialect = "postgresql"

    def __init__(self, url: str):
        # libpq rejects driver-qualified schemes such as postgresql+psycopg://
        self.url = re.sub(r"^(postgres(?:ql)?)\+\w+://", r"\1://", url)

    @property
    def errors(self) -> tuple[type[Exception], ...]:
        import psycopg

        return (psycopg.Error,)

    def connect(self) -> Any:
        """Open a new connection; the caller closes it."""
        import psycopg
        from psycopg.rows import dict_row

        conn = psycopg.connect(self.url, row_factory=dict_row)
        conn.autocommit = False
        return conn

    def catalog_columns(self, conn: Any, table: str) -> list[tuple[str, str]]:
        """Return (column name, data type) pairs in ordinal order.

        Runs inside a savepoint so a failed lookup does not abort the
        request's transaction.
        """
        with conn.transaction():
            cursor = conn.execute(_CATALOG_SQL, [table])
            rows = cursor.fetchall()
        return [(row["column_name"], row["data_type"]) for row in rows]

    def execute(self, conn: Any, statement: SqlStatement) -> Any:
        params = {name: self.adapt(value) for name, value in statement.params.items()}
        return conn.execute(statement.sql, params or None)

    def fetch_records(self, cursor: Any) -> list[EntityRecord]:
        # psycopg raises on fetchall() when the statement returned no result set
        if cursor.description is None:
            return []
        return [dict(row) for row in cursor.fetchall()]

    # ------------------------------------------------------------------
    # SQL rendering hooks
    # ------------------------------------------------------------------

    def quote(self, identifier: str) -> str:
        return quote_identifier(identifier)

    def placeholder(self, name: str) -> str:
        return f"%({name})s"

    def escape_literal(self, text: str) -> str:
        """Double `%` so psycopg does not read it as a placeholder."""
        return text.replace("%", "%%")

    def text_cast(self, expression: str) -> str:
        return f"CAST({expression} AS TEXT)"

    def date_truncate(self, expression: str) -> str:
        return f"CAST({expression} AS DATE)"

    def returning(self, column: str) -> str:
        return f" RETURNING {self.quote(column)}"

    def procedure_call(self, name: str, arg_names: list[str]) -> str:
        """Render ``CALL name(arg => %(arg)s, ...)``.

        Raises:
            ValidationError: if the routine name is not a plain
                (optionally schema-qualified) identifier
        """
        if not _ROUTINE_NAME.match(name):
            raise ValidationError(f"Invalid procedure name: {name}")
        routine = ".".join(self.quote(part) for part in name.split("."))
        args = ", ".join(
            f"{self.quote(arg)} => {self.placeholder(arg)}" for arg in arg_names
        )
        return f"CALL {routine}({args})"

    def adapt(self, value: Any) -> Any:
        return value
