"""Schema and statement types shared by the engine.

A table's shape is discovered from the live catalog on every request and
described with the dataclasses below. Declared SQL type names are folded into
a closed set of families; anything outside that set is ``UNSUPPORTED``.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# Column name prefix marking a reference to another table's ``id``.
FOREIGN_KEY_PREFIX = "fkid"

# Primary key column, assumed database-generated.
PRIMARY_KEY = "id"

# One result row, column name -> value, in result-set order.
EntityRecord = dict[str, Any]


class SqlTypeFamily(str, Enum):
    """Closed union over the SQL type families the engine understands."""

    INTEGER = "integer"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    FLOAT = "float"
    STRING = "string"
    DATETIME = "datetime"
    UNSUPPORTED = "unsupported"

    @classmethod
    def from_type_name(cls, type_name: str | None) -> "SqlTypeFamily":
        """Map a declared type name (any supported dialect) to its family.

        Length/precision suffixes are ignored: ``VARCHAR(100)`` is ``varchar``.
        """
        return _TYPE_FAMILIES.get(normalize_type_name(type_name), cls.UNSUPPORTED)


_TYPE_FAMILIES: dict[str, SqlTypeFamily] = {}

for _family, _names in {
    SqlTypeFamily.INTEGER: (
        "tinyint", "smallint", "int", "integer", "bigint", "mediumint",
        "int2", "int4", "int8", "smallserial", "serial", "bigserial",
    ),
    SqlTypeFamily.DECIMAL: ("decimal", "numeric", "money", "smallmoney"),
    SqlTypeFamily.BOOLEAN: ("bit", "boolean", "bool"),
    SqlTypeFamily.FLOAT: (
        "float", "real", "double", "double precision", "float4", "float8",
    ),
    SqlTypeFamily.STRING: (
        "char", "varchar", "nchar", "nvarchar", "text", "ntext",
        "character", "character varying", "citext", "clob",
    ),
    SqlTypeFamily.DATETIME: (
        "date", "datetime", "datetime2", "smalldatetime", "datetimeoffset",
        "timestamp", "timestamptz", "timestamp without time zone",
        "timestamp with time zone",
    ),
}.items():
    for _name in _names:
        _TYPE_FAMILIES[_name] = _family


def normalize_type_name(type_name: str | None) -> str:
    """Lowercase a declared type and drop any ``(n[,m])`` suffix."""
    if not type_name:
        return ""
    without_size = re.sub(r"\(.*?\)", " ", type_name.lower())
    return " ".join(without_size.split())


@dataclass(frozen=True)
class ColumnDescriptor:
    """A single column as reported by the catalog."""

    name: str
    sql_type: str

    @property
    def family(self) -> SqlTypeFamily:
        return SqlTypeFamily.from_type_name(self.sql_type)

    @property
    def is_foreign_key(self) -> bool:
        return self.name.startswith(FOREIGN_KEY_PREFIX) and len(self.name) > len(
            FOREIGN_KEY_PREFIX
        )

    @property
    def related_table(self) -> str | None:
        """Referenced table name for a foreign-key-like column."""
        if not self.is_foreign_key:
            return None
        return self.name[len(FOREIGN_KEY_PREFIX):]


@dataclass(frozen=True)
class ForeignKeyRelation:
    """A foreign-key-like column and the description column it joins to."""

    column: str
    related_table: str
    display_column: str

    @property
    def alias(self) -> str:
        """Join alias, unique per referencing column."""
        return f"{self.column}_ref"

    @property
    def description_key(self) -> str:
        return f"{self.column}_descripcion"


@dataclass
class TableSchema:
    """Ordered columns of one table, valid for a single request."""

    table: str
    columns: list[ColumnDescriptor] = field(default_factory=list)

    @property
    def column_names(self) -> list[str]:
        return [c.name for c in self.columns]

    def get(self, name: str) -> ColumnDescriptor | None:
        for column in self.columns:
            if column.name == name:
                return column
        return None

    def has_column(self, name: str) -> bool:
        return self.get(name) is not None

    @property
    def foreign_key_columns(self) -> list[ColumnDescriptor]:
        return [c for c in self.columns if c.is_foreign_key]

    @property
    def string_columns(self) -> list[str]:
        return [c.name for c in self.columns if c.family is SqlTypeFamily.STRING]


@dataclass
class SqlStatement:
    """SQL text plus its bound parameters, in placeholder order."""

    sql: str
    params: dict[str, Any] = field(default_factory=dict)
