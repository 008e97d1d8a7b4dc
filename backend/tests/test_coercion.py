"""Tests for type families, JSON value decoding and value coercion."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from tablerest.engine.coercion import ValueCoercer
from tablerest.engine.types import ColumnDescriptor, SqlTypeFamily, normalize_type_name
from tablerest.engine.values import (
    BooleanValue,
    DateTimeValue,
    FloatValue,
    IntegerValue,
    NullValue,
    RawJsonValue,
    TextValue,
    decode_json,
    decode_payload,
    decode_value,
)
from tablerest.errors import CoercionError, UnsupportedTypeError, ValidationError


@pytest.fixture
def coercer():
    return ValueCoercer()


class TestSqlTypeFamily:
    """Declared type names fold into a closed set of families."""

    @pytest.mark.parametrize(
        "type_name,family",
        [
            ("INTEGER", SqlTypeFamily.INTEGER),
            ("bigint", SqlTypeFamily.INTEGER),
            ("serial", SqlTypeFamily.INTEGER),
            ("NUMERIC(10,2)", SqlTypeFamily.DECIMAL),
            ("bit", SqlTypeFamily.BOOLEAN),
            ("boolean", SqlTypeFamily.BOOLEAN),
            ("double precision", SqlTypeFamily.FLOAT),
            ("REAL", SqlTypeFamily.FLOAT),
            ("VARCHAR(100)", SqlTypeFamily.STRING),
            ("character varying", SqlTypeFamily.STRING),
            ("nvarchar(max)", SqlTypeFamily.STRING),
            ("timestamp without time zone", SqlTypeFamily.DATETIME),
            ("datetime2", SqlTypeFamily.DATETIME),
        ],
    )
    def test_known_types(self, type_name, family):
        assert SqlTypeFamily.from_type_name(type_name) is family

    def test_unknown_type_is_unsupported(self):
        assert SqlTypeFamily.from_type_name("geometry") is SqlTypeFamily.UNSUPPORTED
        assert SqlTypeFamily.from_type_name("") is SqlTypeFamily.UNSUPPORTED
        assert SqlTypeFamily.from_type_name(None) is SqlTypeFamily.UNSUPPORTED

    def test_normalize_strips_size_suffix(self):
        assert normalize_type_name("VarChar(255)") == "varchar"
        assert normalize_type_name("DECIMAL (10, 2)") == "decimal"

    def test_foreign_key_column(self):
        column = ColumnDescriptor(name="fkidtipoactor", sql_type="INTEGER")
        assert column.is_foreign_key
        assert column.related_table == "tipoactor"

    def test_bare_prefix_is_not_a_foreign_key(self):
        column = ColumnDescriptor(name="fkid", sql_type="INTEGER")
        assert not column.is_foreign_key
        assert column.related_table is None


class TestDecodeValue:
    """Parsed JSON is decoded into tagged variants."""

    def test_null(self):
        assert decode_value(None) == NullValue()

    def test_bool_is_not_integer(self):
        assert decode_value(True) == BooleanValue(True)

    def test_integer_and_big_integer(self):
        assert decode_value(42) == IntegerValue(42)
        assert isinstance(decode_value(2**70), FloatValue)

    def test_float(self):
        assert decode_value(1.5) == FloatValue(1.5)

    def test_plain_string(self):
        assert decode_value("hola") == TextValue("hola")

    def test_date_string(self):
        value = decode_value("2024-01-15")
        assert isinstance(value, DateTimeValue)
        assert value.native == date(2024, 1, 15)

    def test_datetime_string_keeps_time(self):
        value = decode_value("2024-01-15T10:30:00")
        assert value.native == datetime(2024, 1, 15, 10, 30)

    def test_day_first_date(self):
        value = decode_value("15/01/2024")
        assert isinstance(value, DateTimeValue)
        assert value.native == date(2024, 1, 15)

    def test_object_and_array_stay_raw(self):
        assert decode_value({"a": 1}) == RawJsonValue('{"a": 1}')
        assert decode_value([1, 2]) == RawJsonValue("[1, 2]")


class TestDecodePayload:
    def test_decodes_each_field(self):
        decoded = decode_payload({"nombre": "Ana", "edad": 30})
        assert decoded == {"nombre": TextValue("Ana"), "edad": IntegerValue(30)}

    @pytest.mark.parametrize("body", [None, {}, [], "text", 3])
    def test_rejects_non_object_or_empty(self, body):
        with pytest.raises(ValidationError):
            decode_payload(body)

    def test_rejects_blank_field_name(self):
        with pytest.raises(ValidationError):
            decode_payload({" ": 1})

    def test_malformed_json_text(self):
        with pytest.raises(ValidationError):
            decode_json("{not json")


class TestValueCoercer:
    """Raw client input becomes the native value of the column type."""

    def test_integer_from_text(self, coercer):
        assert coercer.coerce("42", "integer") == 42

    def test_integer_rejects_garbage(self, coercer):
        with pytest.raises(CoercionError):
            coercer.coerce("abc", "integer")

    def test_integer_rejects_out_of_range(self, coercer):
        with pytest.raises(CoercionError):
            coercer.coerce(str(2**63), "bigint")

    @pytest.mark.parametrize("sql_type", ["integer", "varchar", "datetime", "geometry"])
    def test_null_is_null_for_any_type(self, coercer, sql_type):
        assert coercer.coerce(None, sql_type) is None

    def test_decimal(self, coercer):
        assert coercer.coerce("1500.50", "decimal(10,2)") == Decimal("1500.50")

    def test_decimal_rejects_nan(self, coercer):
        with pytest.raises(CoercionError):
            coercer.coerce("NaN", "numeric")

    @pytest.mark.parametrize("raw,expected", [("true", True), ("0", False), (1, True)])
    def test_boolean(self, coercer, raw, expected):
        assert coercer.coerce(raw, "bit") is expected

    def test_boolean_rejects_other_text(self, coercer):
        with pytest.raises(CoercionError):
            coercer.coerce("yes", "boolean")

    def test_float(self, coercer):
        assert coercer.coerce("61.5", "real") == 61.5

    def test_float_rejects_infinity(self, coercer):
        with pytest.raises(CoercionError):
            coercer.coerce("inf", "float")

    def test_string_passes_through(self, coercer):
        assert coercer.coerce("2024-01-15", "varchar") == "2024-01-15"

    def test_datetime_with_time(self, coercer):
        assert coercer.coerce("2024-01-15 10:30:00", "datetime") == datetime(
            2024, 1, 15, 10, 30
        )

    def test_datetime_for_comparison_is_truncated(self, coercer):
        assert coercer.coerce(
            "2024-01-15 10:30:00", "datetime", for_comparison=True
        ) == date(2024, 1, 15)

    def test_datetime_rejects_garbage(self, coercer):
        with pytest.raises(CoercionError):
            coercer.coerce("yesterday", "date")

    def test_unsupported_type(self, coercer):
        with pytest.raises(UnsupportedTypeError):
            coercer.coerce("x", "geometry")


class TestCoerceJson:
    """Body values are typed by the column they are written into."""

    def test_text_column_keeps_date_like_text(self, coercer):
        column = ColumnDescriptor("codigo", "VARCHAR(20)")
        assert coercer.coerce_json(decode_value("2024-01-15"), column) == "2024-01-15"

    def test_integer_column_from_number(self, coercer):
        column = ColumnDescriptor("fkidtipoactor", "INTEGER")
        assert coercer.coerce_json(IntegerValue(2), column) == 2

    def test_integer_column_from_numeric_text(self, coercer):
        column = ColumnDescriptor("fkidtipoactor", "INTEGER")
        assert coercer.coerce_json(TextValue("2"), column) == 2

    def test_raw_json_into_numeric_column_fails(self, coercer):
        column = ColumnDescriptor("peso", "REAL")
        with pytest.raises(CoercionError):
            coercer.coerce_json(RawJsonValue("[1]"), column)

    def test_raw_json_into_text_column_is_kept(self, coercer):
        column = ColumnDescriptor("notas", "TEXT")
        assert coercer.coerce_json(RawJsonValue('{"a": 1}'), column) == '{"a": 1}'

    def test_null_into_any_column(self, coercer):
        column = ColumnDescriptor("forma", "GEOMETRY")
        assert coercer.coerce_json(NullValue(), column) is None
