"""Error taxonomy for the generic entity engine.

Every error carries the HTTP status it maps to at the request boundary and a
human-readable message. Engine code raises these; only the API layer turns
them into responses.
"""


class TableRestError(Exception):
    """Base class for all engine errors."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(TableRestError):
    """Empty or malformed identifiers, bodies or values."""

    status_code = 400


class UnknownTableError(TableRestError):
    """The table does not exist in the live schema."""

    status_code = 404


class UnknownColumnError(TableRestError):
    """A column name is not present in the live schema of its table."""

    status_code = 404


class UnsupportedTypeError(TableRestError):
    """The declared SQL type of a column has no coercion rule."""

    status_code = 400


class CoercionError(TableRestError):
    """A raw value could not be parsed as its column's SQL type."""

    status_code = 400


# Name used by API clients and older callers for the same condition.
InvalidValueFormat = CoercionError


class SchemaLookupError(TableRestError):
    """The catalog query itself failed."""

    status_code = 500


class InvalidStoredHashFormat(TableRestError):
    """A stored secret does not carry the bcrypt marker prefix.

    Signals corrupted or legacy unhashed data; never retried.
    """

    status_code = 500


class ExecutionError(TableRestError):
    """A statement failed while executing against the database."""

    status_code = 500


class RecordNotFound(TableRestError):
    """A lookup produced zero rows."""

    status_code = 404
