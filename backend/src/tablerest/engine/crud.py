"""CrudEngine: per-request orchestration of the generic entity operations.

Each operation validates its identifiers, opens one connection, inspects the
live schema, builds and executes its statement(s), shapes the rows into
records and closes the connection on every exit path. Nothing is shared
between calls except the collaborators passed to the constructor.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from tablerest.engine.coercion import ValueCoercer
from tablerest.engine.credentials import CredentialFieldPolicy
from tablerest.engine.query import QueryBuilder, is_primary_key
from tablerest.engine.schema import DescriptiveColumnResolver, SchemaInspector
from tablerest.engine.types import (
    FOREIGN_KEY_PREFIX,
    PRIMARY_KEY,
    EntityRecord,
    ForeignKeyRelation,
    SqlStatement,
    TableSchema,
)
from tablerest.engine.values import (
    JsonValue,
    TextValue,
    decode_payload,
    decode_value,
)
from tablerest.errors import (
    ExecutionError,
    RecordNotFound,
    UnknownColumnError,
    ValidationError,
)
from tablerest.reports import REPORTS

if TYPE_CHECKING:
    from tablerest.persistence.adapter import DatabaseAdapter

logger = logging.getLogger(__name__)


def _require(value: Any, label: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"The {label} cannot be empty.")
    return str(value)


class CrudEngine:
    """Generic CRUD over any table, driven by the live schema."""

    def __init__(
        self,
        adapter: DatabaseAdapter,
        credentials: CredentialFieldPolicy,
        coercer: ValueCoercer | None = None,
    ):
        self.adapter = adapter
        self.credentials = credentials
        self.coercer = coercer or ValueCoercer()
        self.builder = QueryBuilder(adapter, self.coercer)

    # ------------------------------------------------------------------
    # Connection and execution helpers
    # ------------------------------------------------------------------

    @contextmanager
    def _connection(self) -> Iterator[Any]:
        try:
            conn = self.adapter.connect()
        except self.adapter.errors as e:
            logger.error("Could not open a database connection: %s", e)
            raise ExecutionError(f"Could not connect to the database: {e}") from e
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def _transaction(self, conn: Any) -> Iterator[None]:
        """Commit on success, roll back on any failure."""
        try:
            yield
        except BaseException:
            conn.rollback()
            raise
        conn.commit()

    def _execute(self, conn: Any, statement: SqlStatement) -> Any:
        # Parameter values are never logged: they may carry password hashes
        logger.debug("Executing: %s | params: %s", statement.sql, list(statement.params))
        try:
            return self.adapter.execute(conn, statement)
        except self.adapter.errors as e:
            logger.error("Statement failed: %s", e)
            raise ExecutionError(f"Database error: {e}") from e

    def _fetch(self, conn: Any, statement: SqlStatement) -> list[EntityRecord]:
        cursor = self._execute(conn, statement)
        try:
            return self.adapter.fetch_records(cursor)
        except self.adapter.errors as e:
            raise ExecutionError(f"Database error: {e}") from e

    # ------------------------------------------------------------------
    # Payload preparation
    # ------------------------------------------------------------------

    def _hash_credential(self, decoded: dict[str, JsonValue]) -> None:
        """Hash the first credential-looking field in place, if it has a value."""
        name = self.credentials.find_credential_field(decoded)
        if name is None:
            return
        plaintext = decoded[name].as_text()
        if plaintext:
            decoded[name] = TextValue(self.credentials.hash_for_storage(plaintext))

    def _prepare_fields(self, schema: TableSchema, body: Any) -> dict[str, Any]:
        """Decode, hash and coerce a body into native values keyed by column.

        ``id`` is dropped; every other key must be a column of ``schema``.
        """
        decoded = decode_payload(body)
        decoded = {k: v for k, v in decoded.items() if not is_primary_key(k)}
        self._hash_credential(decoded)

        fields: dict[str, Any] = {}
        for name, value in decoded.items():
            column = schema.get(name)
            if column is None:
                raise UnknownColumnError(
                    f"Column '{name}' does not exist in table '{schema.table}'.",
                    status_code=400,
                )
            fields[name] = self.coercer.coerce_json(value, column)
        if not fields:
            raise ValidationError("The entity data cannot be empty.")
        return fields

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def describe(self, table: str) -> tuple[TableSchema, list[ForeignKeyRelation]]:
        """Return the table's schema and the relations a list read would join."""
        table = _require(table, "table name")
        with self._connection() as conn:
            inspector = SchemaInspector(self.adapter, conn)
            schema = inspector.table_schema(table)
            relations = DescriptiveColumnResolver(inspector).relations_for(schema)
        return schema, relations

    def list_rows(self, table: str) -> list[EntityRecord]:
        """All rows of ``table`` enriched with ``<fk>_descripcion`` columns."""
        table = _require(table, "table name")
        with self._connection() as conn:
            inspector = SchemaInspector(self.adapter, conn)
            schema = inspector.table_schema(table)
            relations = DescriptiveColumnResolver(inspector).relations_for(schema)
            statement = self.builder.list_all(schema, relations)
            return self._fetch(conn, statement)

    def get_by_key(self, table: str, key_column: str, key_value: str) -> list[EntityRecord]:
        """Rows whose ``key_column`` equals ``key_value`` under the column's type.

        Raises:
            RecordNotFound: if no row matches
        """
        table = _require(table, "table name")
        key_column = _require(key_column, "key column")
        key_value = _require(key_value, "key value")

        with self._connection() as conn:
            schema = SchemaInspector(self.adapter, conn).table_schema(table)
            statement = self.builder.get_by_key(schema, key_column, key_value)
            records = self._fetch(conn, statement)

        if not records:
            raise RecordNotFound(f"No rows in '{table}' where {key_column} = {key_value}.")
        return records

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, table: str, body: Mapping[str, Any]) -> Any:
        """Insert one row, hashing any credential field.

        Returns:
            The generated ``id`` when the table has one, else None
        """
        table = _require(table, "table name")
        with self._connection() as conn:
            schema = SchemaInspector(self.adapter, conn).table_schema(table)
            fields = self._prepare_fields(schema, body)
            statement = self.builder.insert(schema, fields)
            with self._transaction(conn):
                return self._insert(conn, statement)

    def _insert(self, conn: Any, statement: SqlStatement) -> Any:
        records = self._fetch(conn, statement)
        if records:
            return records[0].get(PRIMARY_KEY)
        return None

    def update(
        self,
        table: str,
        key_column: str,
        key_value: str,
        body: Mapping[str, Any],
    ) -> int:
        """Update matching rows, hashing any credential field.

        Returns:
            Number of rows affected
        """
        table = _require(table, "table name")
        key_column = _require(key_column, "key column")
        with self._connection() as conn:
            schema = SchemaInspector(self.adapter, conn).table_schema(table)
            fields = self._prepare_fields(schema, body)
            statement = self.builder.update(schema, key_column, key_value, fields)
            with self._transaction(conn):
                return self._execute(conn, statement).rowcount

    def delete(self, table: str, key_column: str, key_value: str) -> int:
        """Delete matching rows and return how many were removed."""
        table = _require(table, "table name")
        key_column = _require(key_column, "key column")
        with self._connection() as conn:
            schema = SchemaInspector(self.adapter, conn).table_schema(table)
            statement = self.builder.delete(schema, key_column, key_value)
            with self._transaction(conn):
                return self._execute(conn, statement).rowcount

    def create_with_children(
        self,
        parent_table: str,
        body: Mapping[str, Any],
        children: Mapping[str, Sequence[Mapping[str, Any]]],
        link_column: str | None = None,
    ) -> Any:
        """Insert a parent row and its child rows in one transaction.

        Every child row gets ``link_column`` (default ``fkid<parent>``) set to
        the parent's generated id. If any insert fails, the whole transaction
        is rolled back: neither the parent nor any child row remains.

        Returns:
            The parent's generated id
        """
        parent_table = _require(parent_table, "table name")
        link_column = link_column or f"{FOREIGN_KEY_PREFIX}{parent_table.lower()}"

        with self._connection() as conn:
            inspector = SchemaInspector(self.adapter, conn)
            parent_schema = inspector.table_schema(parent_table)
            if not parent_schema.has_column(PRIMARY_KEY):
                raise ValidationError(
                    f"Table '{parent_table}' has no '{PRIMARY_KEY}' column to link children to."
                )
            parent_statement = self.builder.insert(
                parent_schema, self._prepare_fields(parent_schema, body)
            )

            # Type every child row before the first write
            prepared: list[tuple[TableSchema, list[dict[str, Any]]]] = []
            for child_table, rows in children.items():
                if not rows:
                    continue
                child_schema = inspector.table_schema(_require(child_table, "table name"))
                link = child_schema.get(link_column)
                if link is None:
                    raise UnknownColumnError(
                        f"Column '{link_column}' does not exist in table '{child_table}'.",
                        status_code=400,
                    )
                child_body = [
                    {k: v for k, v in row.items() if k != link_column} for row in rows
                ]
                prepared.append(
                    (child_schema, [self._prepare_fields(child_schema, row) for row in child_body])
                )

            try:
                with self._transaction(conn):
                    parent_id = self._insert(conn, parent_statement)
                    if parent_id is None:
                        raise ExecutionError(f"No id was generated for '{parent_table}'.")
                    for child_schema, rows in prepared:
                        link = child_schema.get(link_column)
                        typed_id = self.coercer.coerce(parent_id, link.sql_type)
                        for fields in rows:
                            statement = self.builder.insert(
                                child_schema,
                                {**fields, link_column: typed_id},
                                return_key=False,
                            )
                            self._execute(conn, statement)
            except ExecutionError:
                logger.warning(
                    "Saving '%s' with its children failed; transaction rolled back",
                    parent_table,
                )
                raise
            return parent_id

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------

    def verify_credential(
        self,
        table: str,
        user_field: str,
        password_field: str,
        user_value: str,
        password: str,
    ) -> bool:
        """Check ``password`` against the hash stored for ``user_value``.

        Raises:
            RecordNotFound: if no row matches ``user_value``
            InvalidStoredHashFormat: if the stored value is not a bcrypt hash
        """
        table = _require(table, "table name")
        user_field = _require(user_field, "user field")
        password_field = _require(password_field, "password field")
        user_value = _require(user_value, "user value")
        password = _require(password, "password")

        with self._connection() as conn:
            schema = SchemaInspector(self.adapter, conn).table_schema(table)
            user_column = schema.get(user_field)
            typed_user = (
                self.coercer.coerce(user_value, user_column.sql_type)
                if user_column
                else user_value
            )
            statement = self.builder.select_column(
                schema, password_field, user_field, typed_user
            )
            records = self._fetch(conn, statement)

        if not records:
            raise RecordNotFound("User not found.")
        stored = records[0].get(password_field)
        return self.credentials.verify(password, "" if stored is None else str(stored))

    # ------------------------------------------------------------------
    # Ad-hoc statements
    # ------------------------------------------------------------------

    def run_query(self, sql: str, params: Mapping[str, Any] | None = None) -> list[EntityRecord]:
        """Execute caller-supplied SQL with bound parameters.

        Raises:
            RecordNotFound: if the statement returns no rows
        """
        if not isinstance(sql, str):
            raise ValidationError("A valid SQL query must be provided in the request body.")
        if params is not None and not isinstance(params, Mapping):
            raise ValidationError("Query parameters must be a JSON object.")

        values = {name: decode_value(v).native for name, v in (params or {}).items()}
        statement = self.builder.parametrized(sql, values)
        with self._connection() as conn:
            with self._transaction(conn):
                records = self._fetch(conn, statement)

        if not records:
            raise RecordNotFound("No results were found for the query provided.")
        return records

    def run_procedure(self, name: str, args: Mapping[str, Any] | None = None) -> int:
        """Invoke a stored procedure with named arguments.

        Array and object arguments are passed as their JSON text.

        Returns:
            Rows affected as reported by the driver
        """
        name = _require(name, "procedure name")
        if args is not None and not isinstance(args, Mapping):
            raise ValidationError("Procedure arguments must be a JSON object.")

        values = {arg: decode_value(v).native for arg, v in (args or {}).items()}
        statement = self.builder.procedure(name, values)
        with self._connection() as conn:
            with self._transaction(conn):
                return self._execute(conn, statement).rowcount

    def run_report(self, name: str) -> list[EntityRecord]:
        sql = REPORTS.get(name)
        if sql is None:
            raise RecordNotFound(f"Unknown report '{name}'.")
        with self._connection() as conn:
            return self._fetch(conn, SqlStatement(sql=sql))
