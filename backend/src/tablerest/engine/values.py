"""Tagged values decoded from loosely-typed JSON request bodies.

Request bodies arrive as parsed JSON (``dict``/``list``/scalars). Each field is
decoded into one variant of a closed union before it goes anywhere near the
database:

- ``null``            -> NullValue
- string              -> DateTimeValue if it parses as a date/time, else TextValue
- integral number     -> IntegerValue (64-bit range), otherwise FloatValue
- ``true``/``false``  -> BooleanValue
- object / array      -> RawJsonValue holding the JSON text (never decomposed)
"""

import json
import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Union

from tablerest.errors import ValidationError

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

_ISO_DATETIME = re.compile(
    r"^\d{4}-\d{2}-\d{2}"
    r"(?:[T ]\d{2}:\d{2}(?::\d{2}(?:\.\d{1,6})?)?)?"
    r"(?:Z|[+-]\d{2}:?\d{2})?$"
)

# Day-first layouts accepted in addition to ISO 8601.
_DAY_FIRST_FORMATS = (
    "%d/%m/%Y",
    "%d/%m/%Y %H:%M",
    "%d/%m/%Y %H:%M:%S",
)


def parse_datetime(text: str) -> datetime | None:
    """Parse an ISO 8601 or day-first date/time string, or return None."""
    candidate = text.strip()
    if _ISO_DATETIME.match(candidate):
        try:
            return datetime.fromisoformat(candidate)
        except ValueError:
            return None
    for fmt in _DAY_FIRST_FORMATS:
        try:
            return datetime.strptime(candidate, fmt)
        except ValueError:
            continue
    return None


def has_time_component(text: str) -> bool:
    """True when a parsed date/time string carried a time of day."""
    return ":" in text


@dataclass(frozen=True)
class NullValue:
    @property
    def native(self) -> None:
        return None

    def as_text(self) -> str | None:
        return None


@dataclass(frozen=True)
class TextValue:
    text: str

    @property
    def native(self) -> str:
        return self.text

    def as_text(self) -> str:
        return self.text


@dataclass(frozen=True)
class DateTimeValue:
    text: str
    value: datetime

    @property
    def native(self) -> date | datetime:
        if has_time_component(self.text):
            return self.value
        return self.value.date()

    def as_text(self) -> str:
        return self.text


@dataclass(frozen=True)
class IntegerValue:
    value: int

    @property
    def native(self) -> int:
        return self.value

    def as_text(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class FloatValue:
    value: float

    @property
    def native(self) -> float:
        return self.value

    def as_text(self) -> str:
        return repr(self.value)


@dataclass(frozen=True)
class BooleanValue:
    value: bool

    @property
    def native(self) -> bool:
        return self.value

    def as_text(self) -> str:
        return "true" if self.value else "false"


@dataclass(frozen=True)
class RawJsonValue:
    text: str

    @property
    def native(self) -> str:
        return self.text

    def as_text(self) -> str:
        return self.text


JsonValue = Union[
    NullValue,
    TextValue,
    DateTimeValue,
    IntegerValue,
    FloatValue,
    BooleanValue,
    RawJsonValue,
]


def decode_value(value: Any) -> JsonValue:
    """Decode one parsed-JSON value into its tagged variant."""
    if value is None:
        return NullValue()
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return BooleanValue(value)
    if isinstance(value, int):
        if INT64_MIN <= value <= INT64_MAX:
            return IntegerValue(value)
        return FloatValue(float(value))
    if isinstance(value, float):
        return FloatValue(value)
    if isinstance(value, str):
        parsed = parse_datetime(value)
        if parsed is not None:
            return DateTimeValue(text=value, value=parsed)
        return TextValue(value)
    if isinstance(value, (Mapping, list, tuple)):
        return RawJsonValue(json.dumps(value, ensure_ascii=False, default=str))
    raise ValidationError(f"Unsupported JSON value of type {type(value).__name__}")


def decode_payload(body: Any) -> dict[str, JsonValue]:
    """Decode a request body (a JSON object) field by field.

    Raises:
        ValidationError: if the body is not a non-empty JSON object.
    """
    if not isinstance(body, Mapping) or not body:
        raise ValidationError("The request body must be a non-empty JSON object.")

    decoded: dict[str, JsonValue] = {}
    for key, value in body.items():
        if not isinstance(key, str) or not key.strip():
            raise ValidationError("Field names cannot be empty.")
        decoded[key] = decode_value(value)
    return decoded


def decode_json(text: str | bytes) -> dict[str, JsonValue]:
    """Parse a raw JSON request body and decode the resulting object."""
    try:
        body = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Malformed JSON body: {e.msg}")
    return decode_payload(body)
