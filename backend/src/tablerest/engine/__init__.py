"""Schema-driven CRUD engine."""

from tablerest.engine.coercion import ValueCoercer
from tablerest.engine.credentials import CredentialFieldPolicy
from tablerest.engine.crud import CrudEngine
from tablerest.engine.query import QueryBuilder
from tablerest.engine.schema import DescriptiveColumnResolver, SchemaInspector
from tablerest.engine.types import (
    ColumnDescriptor,
    EntityRecord,
    ForeignKeyRelation,
    SqlStatement,
    SqlTypeFamily,
    TableSchema,
)

__all__ = [
    "ValueCoercer",
    "CredentialFieldPolicy",
    "CrudEngine",
    "QueryBuilder",
    "DescriptiveColumnResolver",
    "SchemaInspector",
    "ColumnDescriptor",
    "EntityRecord",
    "ForeignKeyRelation",
    "SqlStatement",
    "SqlTypeFamily",
    "TableSchema",
]
