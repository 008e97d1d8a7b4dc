"""SQL synthesis from a discovered table schema.

Identifiers cannot be bound as parameters, so table and column names are
interpolated into the SQL text. Every name is checked against the schema
snapshot read in the same request before it is interpolated, and it is
quoted by the adapter; only values travel as bound parameters.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from tablerest.engine.coercion import ValueCoercer
from tablerest.engine.types import (
    PRIMARY_KEY,
    ForeignKeyRelation,
    SqlStatement,
    SqlTypeFamily,
    TableSchema,
)
from tablerest.errors import UnknownColumnError, ValidationError

if TYPE_CHECKING:
    from tablerest.persistence.adapter import DatabaseAdapter

# Single-quoted literals and `@name` tokens; everything else is plain text
_SQL_SEGMENT = re.compile(r"('(?:[^']|'')*')|@(\w+)|(?:[^'@]+|.)", re.DOTALL)
_PARAM_NAME = re.compile(r"^\w+$")


class _ParamNames:
    """Allocates unique, placeholder-safe parameter names."""

    def __init__(self) -> None:
        self._used: set[str] = set()

    def allocate(self, base: str) -> str:
        name = re.sub(r"\W", "_", base) or "p"
        if name[0].isdigit():
            name = f"p_{name}"
        candidate = name
        suffix = 1
        while candidate in self._used:
            suffix += 1
            candidate = f"{name}_{suffix}"
        self._used.add(candidate)
        return candidate


def is_primary_key(name: str) -> bool:
    return name.lower() == PRIMARY_KEY


class QueryBuilder:
    """Builds SQL text and bound parameters for the generic CRUD operations."""

    def __init__(self, adapter: DatabaseAdapter, coercer: ValueCoercer | None = None):
        self._adapter = adapter
        self._coercer = coercer or ValueCoercer()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_all(
        self,
        schema: TableSchema,
        relations: list[ForeignKeyRelation] | None = None,
    ) -> SqlStatement:
        """SELECT every row, adding one description column per resolved relation."""
        q = self._adapter.quote
        table = q(schema.table)
        select_parts = [f"{table}.*"]
        joins = []
        joined: set[str] = set()

        for relation in relations or []:
            if relation.column in joined:
                continue
            self._require_column(schema, relation.column)
            joined.add(relation.column)

            alias = q(relation.alias)
            select_parts.append(
                f"{alias}.{q(relation.display_column)} AS {q(relation.description_key)}"
            )
            left = self._adapter.text_cast(f"{table}.{q(relation.column)}")
            right = self._adapter.text_cast(f"{alias}.{q(PRIMARY_KEY)}")
            joins.append(
                f" LEFT JOIN {q(relation.related_table)} AS {alias} ON {left} = {right}"
            )

        sql = f"SELECT {', '.join(select_parts)} FROM {table}{''.join(joins)}"
        return SqlStatement(sql=sql)

    def get_by_key(self, schema: TableSchema, key_column: str, key_value: Any) -> SqlStatement:
        """SELECT rows whose ``key_column`` equals the typed ``key_value``.

        Date/time columns are compared on their date part only, so a date
        input matches any timestamp on that day.

        Raises:
            UnknownColumnError: ``key_column`` is not in the schema (404)
            UnsupportedTypeError / CoercionError: the value cannot be typed
        """
        column = schema.get(key_column)
        if column is None:
            raise UnknownColumnError(
                f"Could not determine the data type of '{key_column}' in '{schema.table}'."
            )

        q = self._adapter.quote
        typed = self._coercer.coerce(key_value, column.sql_type, for_comparison=True)
        target = f"{q(schema.table)}.{q(column.name)}"
        if column.family is SqlTypeFamily.DATETIME:
            target = self._adapter.date_truncate(target)

        sql = (
            f"SELECT * FROM {q(schema.table)}"
            f" WHERE {target} = {self._adapter.placeholder('value')}"
        )
        return SqlStatement(sql=sql, params={"value": typed})

    def select_column(
        self,
        schema: TableSchema,
        column: str,
        where_column: str,
        where_value: Any,
    ) -> SqlStatement:
        """SELECT one column of the rows matching ``where_column = where_value``."""
        self._require_column(schema, column, status_code=400)
        self._require_column(schema, where_column, status_code=400)

        q = self._adapter.quote
        sql = (
            f"SELECT {q(column)} FROM {q(schema.table)}"
            f" WHERE {q(where_column)} = {self._adapter.placeholder('value')}"
        )
        return SqlStatement(sql=sql, params={"value": where_value})

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert(
        self,
        schema: TableSchema,
        fields: Mapping[str, Any],
        return_key: bool = True,
    ) -> SqlStatement:
        """INSERT one row; ``id`` is left to the database.

        With ``return_key`` and an ``id`` column present, the generated key is
        returned by the statement itself.
        """
        values = {k: v for k, v in fields.items() if not is_primary_key(k)}
        if not values:
            raise ValidationError("At least one column value is required to insert a row.")

        q = self._adapter.quote
        names = _ParamNames()
        columns = []
        placeholders = []
        params: dict[str, Any] = {}
        for column, value in values.items():
            self._require_column(schema, column, status_code=400)
            param = names.allocate(column)
            columns.append(q(column))
            placeholders.append(self._adapter.placeholder(param))
            params[param] = value

        sql = (
            f"INSERT INTO {q(schema.table)} ({', '.join(columns)})"
            f" VALUES ({', '.join(placeholders)})"
        )
        if return_key and schema.has_column(PRIMARY_KEY):
            sql += self._adapter.returning(PRIMARY_KEY)
        return SqlStatement(sql=sql, params=params)

    def update(
        self,
        schema: TableSchema,
        key_column: str,
        key_value: Any,
        fields: Mapping[str, Any],
    ) -> SqlStatement:
        """UPDATE matching rows; ``id`` is never part of the SET list.

        ``key_value`` is bound exactly as supplied, without type inspection.
        """
        values = {k: v for k, v in fields.items() if not is_primary_key(k)}
        if not values:
            raise ValidationError("At least one column value is required to update a row.")
        self._require_column(schema, key_column)

        q = self._adapter.quote
        names = _ParamNames()
        assignments = []
        params: dict[str, Any] = {}
        for column, value in values.items():
            self._require_column(schema, column, status_code=400)
            param = names.allocate(column)
            assignments.append(f"{q(column)} = {self._adapter.placeholder(param)}")
            params[param] = value

        key_param = names.allocate("key_value")
        params[key_param] = key_value
        sql = (
            f"UPDATE {q(schema.table)} SET {', '.join(assignments)}"
            f" WHERE {q(key_column)} = {self._adapter.placeholder(key_param)}"
        )
        return SqlStatement(sql=sql, params=params)

    def delete(self, schema: TableSchema, key_column: str, key_value: Any) -> SqlStatement:
        self._require_column(schema, key_column)
        q = self._adapter.quote
        sql = (
            f"DELETE FROM {q(schema.table)}"
            f" WHERE {q(key_column)} = {self._adapter.placeholder('key_value')}"
        )
        return SqlStatement(sql=sql, params={"key_value": key_value})

    # ------------------------------------------------------------------
    # Ad-hoc statements
    # ------------------------------------------------------------------

    def parametrized(self, sql: str, params: Mapping[str, Any]) -> SqlStatement:
        """Bind caller-supplied parameters to caller-supplied SQL.

        ``@name`` tokens (and ``@``-prefixed parameter names) are accepted
        for compatibility and rewritten to the adapter's placeholder style.
        Tokens inside single-quoted literals are left alone.
        The SQL text itself is not checked against the schema.
        """
        if not sql or not sql.strip():
            raise ValidationError("A SQL statement is required.")

        bound: dict[str, Any] = {}
        for raw_name, value in params.items():
            name = raw_name.lstrip("@")
            if not _PARAM_NAME.match(name):
                raise ValidationError(f"Invalid parameter name: {raw_name}")
            bound[name] = value

        def rewrite(match: re.Match) -> str:
            name = match.group(2)
            if name in bound:
                return self._adapter.placeholder(name)
            # Drivers only scan for placeholders when parameters are passed
            if bound:
                return self._adapter.escape_literal(match.group(0))
            return match.group(0)

        return SqlStatement(sql=_SQL_SEGMENT.sub(rewrite, sql), params=bound)

    def procedure(self, name: str, args: Mapping[str, Any]) -> SqlStatement:
        if not name or not name.strip():
            raise ValidationError("The procedure name is required.")

        bound: dict[str, Any] = {}
        for raw_name, value in args.items():
            arg = raw_name.lstrip("@")
            if not _PARAM_NAME.match(arg):
                raise ValidationError(f"Invalid argument name: {raw_name}")
            bound[arg] = value

        sql = self._adapter.procedure_call(name.strip(), list(bound))
        return SqlStatement(sql=sql, params=bound)

    # ------------------------------------------------------------------

    def _require_column(
        self,
        schema: TableSchema,
        column: str,
        status_code: int | None = None,
    ) -> None:
        if not schema.has_column(column):
            raise UnknownColumnError(
                f"Column '{column}' does not exist in table '{schema.table}'.",
                status_code=status_code,
            )
