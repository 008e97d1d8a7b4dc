"""DatabaseAdapter Protocol: shared interface for all database adapters."""

from typing import Any, Protocol, runtime_checkable

from tablerest.engine.types import EntityRecord, SqlStatement


def quote_identifier(identifier: str) -> str:
    """Return a double-quoted SQL identifier.

    Embedded double quotes are doubled, so the result is always a single
    identifier token. Example: quote_identifier("fkidactor") -> '"fkidactor"'
    """
    return '"' + identifier.replace('"', '""') + '"'


@runtime_checkable
class DatabaseAdapter(Protocol):
    """Interface all database adapters must implement.

    An adapter owns nothing per request: ``connect()`` hands out a fresh
    DB-API connection that the caller must close. Everything dialect-specific
    the query builder needs is exposed as a small rendering hook.
    """

    dialect: str

    @property
    def errors(self) -> tuple[type[Exception], ...]: ...

    def connect(self) -> Any: ...

    # Catalog

    def catalog_columns(self, conn: Any, table: str) -> list[tuple[str, str]]: ...

    # Execution

    def execute(self, conn: Any, statement: SqlStatement) -> Any: ...

    def fetch_records(self, cursor: Any) -> list[EntityRecord]: ...

    # SQL rendering hooks

    def quote(self, identifier: str) -> str: ...

    def placeholder(self, name: str) -> str: ...

    def escape_literal(self, text: str) -> str: ...

    def text_cast(self, expression: str) -> str: ...

    def date_truncate(self, expression: str) -> str: ...

    def returning(self, column: str) -> str: ...

    def procedure_call(self, name: str, arg_names: list[str]) -> str: ...

    def adapt(self, value: Any) -> Any: ...
