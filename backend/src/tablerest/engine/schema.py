"""Live catalog inspection and foreign-key description resolution."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from tablerest.engine.types import (
    PRIMARY_KEY,
    ColumnDescriptor,
    ForeignKeyRelation,
    SqlTypeFamily,
    TableSchema,
)
from tablerest.errors import SchemaLookupError, UnknownTableError

if TYPE_CHECKING:
    from tablerest.persistence.adapter import DatabaseAdapter

logger = logging.getLogger(__name__)

# Lowercase column names that describe a row, most preferred first.
DESCRIPTIVE_COLUMNS = ("descripcion", "nombre", "titulo")


class SchemaInspector:
    """Reads a table's columns from the catalog over the request's connection.

    Nothing is cached: every call goes to the database, so the snapshot is
    exactly as fresh as the request using it.
    """

    def __init__(self, adapter: DatabaseAdapter, conn: Any):
        self._adapter = adapter
        self._conn = conn

    def columns_of(self, table: str) -> list[ColumnDescriptor]:
        """Return the table's columns in catalog order (empty if no such table).

        Raises:
            SchemaLookupError: if the catalog query itself fails
        """
        try:
            rows = self._adapter.catalog_columns(self._conn, table)
        except self._adapter.errors as e:
            raise SchemaLookupError(f"Could not read the schema of '{table}': {e}") from e
        return [ColumnDescriptor(name=name, sql_type=sql_type) for name, sql_type in rows]

    def string_columns_of(self, table: str) -> list[str]:
        return [
            c.name for c in self.columns_of(table) if c.family is SqlTypeFamily.STRING
        ]

    def table_schema(self, table: str) -> TableSchema:
        """Return the schema snapshot for ``table``.

        Raises:
            UnknownTableError: if the catalog reports no columns
            SchemaLookupError: if the catalog query fails
        """
        columns = self.columns_of(table)
        if not columns:
            raise UnknownTableError(f"Table '{table}' does not exist.")
        return TableSchema(table=table, columns=columns)


class DescriptiveColumnResolver:
    """Picks the human-readable column of a referenced table.

    Resolution is best-effort enrichment: a missing table, a missing ``id``
    column or a failing catalog query all resolve to None.
    """

    def __init__(self, inspector: SchemaInspector):
        self._inspector = inspector

    def resolve(self, related_table: str) -> str | None:
        try:
            columns = self._inspector.columns_of(related_table)
        except SchemaLookupError as e:
            logger.debug("No description for '%s': %s", related_table, e)
            return None

        if not any(c.name == PRIMARY_KEY for c in columns):
            return None

        by_lower: dict[str, str] = {}
        for column in columns:
            if column.family is SqlTypeFamily.STRING:
                by_lower.setdefault(column.name.lower(), column.name)

        for candidate in DESCRIPTIVE_COLUMNS:
            if candidate in by_lower:
                return by_lower[candidate]
        return None

    def relations_for(self, schema: TableSchema) -> list[ForeignKeyRelation]:
        """Resolve one relation per foreign-key-like column that has a description.

        Only the given table's columns are followed; the referenced tables'
        own foreign keys are never resolved.
        """
        relations = []
        for column in schema.foreign_key_columns:
            related_table = column.related_table
            display_column = self.resolve(related_table)
            if display_column is None:
                logger.debug(
                    "Skipping join for %s.%s: no descriptive column in '%s'",
                    schema.table,
                    column.name,
                    related_table,
                )
                continue
            relations.append(
                ForeignKeyRelation(
                    column=column.name,
                    related_table=related_table,
                    display_column=display_column,
                )
            )
        return relations
