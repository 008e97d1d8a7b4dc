"""Coercion of untyped client input into native column values."""

import math
import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Callable

from tablerest.engine.types import ColumnDescriptor, SqlTypeFamily
from tablerest.engine.values import (
    INT64_MAX,
    INT64_MIN,
    BooleanValue,
    DateTimeValue,
    FloatValue,
    IntegerValue,
    JsonValue,
    NullValue,
    RawJsonValue,
    TextValue,
    has_time_component,
    parse_datetime,
)
from tablerest.errors import CoercionError, UnsupportedTypeError

_INTEGER_TEXT = re.compile(r"^[+-]?\d+$")
_FLOAT_TEXT = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")

_TRUE_TEXT = {"true", "1"}
_FALSE_TEXT = {"false", "0"}


class ValueCoercer:
    """Convert raw scalars to the native value of a column's SQL type family.

    ``None`` always coerces to ``None``. Unparseable input raises
    ``CoercionError`` (a client error); a type outside the known families
    raises ``UnsupportedTypeError``.
    """

    def __init__(self) -> None:
        self._handlers: dict[SqlTypeFamily, Callable[[Any], Any]] = {
            SqlTypeFamily.INTEGER: self._to_integer,
            SqlTypeFamily.DECIMAL: self._to_decimal,
            SqlTypeFamily.BOOLEAN: self._to_boolean,
            SqlTypeFamily.FLOAT: self._to_float,
            SqlTypeFamily.STRING: self._to_string,
            SqlTypeFamily.DATETIME: self._to_datetime,
        }

    def coerce(self, raw: Any, sql_type: str, for_comparison: bool = False) -> Any:
        """Coerce ``raw`` according to the declared SQL type name.

        Args:
            raw: String, number, boolean or None from the client
            sql_type: Declared type as reported by the catalog
            for_comparison: Truncate date/time values to a date, for
                equality tests against date or timestamp columns

        Returns:
            The native value (int, Decimal, bool, float, str, date, datetime)
        """
        if raw is None:
            return None

        family = SqlTypeFamily.from_type_name(sql_type)
        handler = self._handlers.get(family)
        if handler is None:
            raise UnsupportedTypeError(f"Unsupported data type: {sql_type}")

        value = handler(raw)
        if for_comparison and isinstance(value, datetime):
            return value.date()
        return value

    def coerce_json(self, value: JsonValue, column: ColumnDescriptor) -> Any:
        """Coerce a decoded body value for writing into ``column``."""
        if isinstance(value, NullValue):
            return None

        family = column.family
        if family is SqlTypeFamily.UNSUPPORTED:
            raise UnsupportedTypeError(
                f"Unsupported data type for column '{column.name}': {column.sql_type}"
            )

        # Text-like columns keep the client's text verbatim, dates included
        if family is SqlTypeFamily.STRING:
            return value.as_text()

        if isinstance(value, RawJsonValue):
            raise CoercionError(
                f"Column '{column.name}' ({column.sql_type}) cannot hold a JSON "
                "object or array."
            )
        if isinstance(value, (TextValue, DateTimeValue)):
            return self.coerce(value.as_text(), column.sql_type)
        if isinstance(value, (IntegerValue, FloatValue, BooleanValue)):
            return self.coerce(value.native, column.sql_type)

        raise CoercionError(f"Unrecognised value for column '{column.name}'")

    # ------------------------------------------------------------------
    # Per-family handlers
    # ------------------------------------------------------------------

    def _to_integer(self, raw: Any) -> int:
        if isinstance(raw, bool):
            raise CoercionError("The value provided is not a valid integer.")
        if isinstance(raw, int):
            value = raw
        elif isinstance(raw, (float, Decimal)):
            if not math.isfinite(raw) or raw != int(raw):
                raise CoercionError("The value provided is not a valid integer.")
            value = int(raw)
        else:
            text = str(raw).strip()
            if not _INTEGER_TEXT.match(text):
                raise CoercionError("The value provided is not a valid integer.")
            value = int(text)

        if not INT64_MIN <= value <= INT64_MAX:
            raise CoercionError("The value provided is out of range for a 64-bit integer.")
        return value

    def _to_decimal(self, raw: Any) -> Decimal:
        if isinstance(raw, bool):
            raise CoercionError("The value provided is not a valid decimal.")
        if isinstance(raw, float):
            raw = repr(raw)
        try:
            value = Decimal(str(raw).strip())
        except InvalidOperation:
            raise CoercionError("The value provided is not a valid decimal.")
        if not value.is_finite():
            raise CoercionError("The value provided is not a valid decimal.")
        return value

    def _to_boolean(self, raw: Any) -> bool:
        if isinstance(raw, bool):
            return raw
        if isinstance(raw, int) and raw in (0, 1):
            return bool(raw)
        text = str(raw).strip().lower()
        if text in _TRUE_TEXT:
            return True
        if text in _FALSE_TEXT:
            return False
        raise CoercionError("The value provided is not a valid boolean.")

    def _to_float(self, raw: Any) -> float:
        if isinstance(raw, bool):
            raise CoercionError("The value provided is not a valid floating-point number.")
        if isinstance(raw, (int, float, Decimal)):
            value = float(raw)
        else:
            text = str(raw).strip()
            if not _FLOAT_TEXT.match(text):
                raise CoercionError(
                    "The value provided is not a valid floating-point number."
                )
            value = float(text)
        if not math.isfinite(value):
            raise CoercionError("The value provided is not a valid floating-point number.")
        return value

    def _to_string(self, raw: Any) -> str:
        if isinstance(raw, bool):
            return "true" if raw else "false"
        return raw if isinstance(raw, str) else str(raw)

    def _to_datetime(self, raw: Any) -> date | datetime:
        if isinstance(raw, (datetime, date)):
            return raw
        if not isinstance(raw, str):
            raise CoercionError("The value provided is not a valid date.")
        parsed = parse_datetime(raw)
        if parsed is None:
            raise CoercionError("The value provided is not a valid date.")
        if has_time_component(raw):
            return parsed
        return parsed.date()
