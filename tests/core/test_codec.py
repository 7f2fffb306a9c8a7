"""Tests for the value codec: literals, decoding and column types."""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta, timezone
from decimal import Decimal
from enum import Enum

import pytest
from structlog.testing import capture_logs

from sqlspine.core.codec import NULL, ValueCodec, format_datetime
from sqlspine.core.errors import ValueConversionError
from sqlspine.core.models import ModelSchema, Point, PropertyDef, PropertyType


@pytest.fixture
def codec() -> ValueCodec:
    return ValueCodec()


def prop(ptype: PropertyType, **facets) -> PropertyDef:
    return PropertyDef("col", ptype, **facets)


class Color(Enum):
    RED = "red"


# =========================================================================
# model → SQL
# =========================================================================


class TestToColumnValue:
    def test_none_is_null_for_every_type(self, codec):
        for ptype in PropertyType:
            assert codec.to_column_value(prop(ptype), None) == NULL
        assert codec.to_column_value(None, None) == "NULL"

    def test_number_coercion(self, codec):
        number = prop(PropertyType.NUMBER)
        assert codec.to_column_value(number, "18") == "18"
        assert codec.to_column_value(number, 1.5) == "1.5"
        assert codec.to_column_value(number, " 2.50 ") == "2.50"
        assert codec.to_column_value(number, Decimal("3.25")) == "3.25"
        assert codec.to_column_value(number, True) == "1"

    def test_number_rejects_text(self, codec):
        with pytest.raises(ValueConversionError, match="a number"):
            codec.to_column_value(prop(PropertyType.NUMBER), "eighteen")

    def test_number_rejects_non_finite(self, codec):
        with pytest.raises(ValueConversionError):
            codec.to_column_value(prop(PropertyType.NUMBER), float("nan"))
        with pytest.raises(ValueConversionError):
            codec.to_column_value(prop(PropertyType.NUMBER), "Infinity")

    def test_conversion_error_names_field(self, codec):
        with pytest.raises(ValueConversionError) as exc_info:
            codec.to_column_value(PropertyDef("age", PropertyType.NUMBER), "x")
        assert exc_info.value.context.field == "age"

    def test_date_millisecond_utc(self, codec):
        value = datetime(2024, 1, 31, 12, 0, 0, 250000, tzinfo=UTC)
        assert codec.to_column_value(prop(PropertyType.DATE), value) == "'2024-01-31 12:00:00.250'"

    def test_date_converts_offset_to_utc(self, codec):
        value = datetime(2024, 1, 31, 13, 30, tzinfo=timezone(timedelta(hours=1)))
        assert codec.to_column_value(prop(PropertyType.DATE), value) == "'2024-01-31 12:30:00.000'"

    def test_date_from_iso_string_and_epoch_ms(self, codec):
        date_prop = prop(PropertyType.DATE)
        assert codec.to_column_value(date_prop, "2024-01-31T12:00:00Z") == "'2024-01-31 12:00:00.000'"
        assert codec.to_column_value(date_prop, 1000) == "'1970-01-01 00:00:01.000'"
        assert codec.to_column_value(date_prop, date(2024, 2, 29)) == "'2024-02-29 00:00:00.000'"

    def test_empty_date_is_null(self, codec):
        assert codec.to_column_value(prop(PropertyType.DATE), "") == "NULL"

    def test_unparseable_date(self, codec):
        with pytest.raises(ValueConversionError, match="a date"):
            codec.to_column_value(prop(PropertyType.DATE), "next tuesday")

    def test_boolean(self, codec):
        boolean = prop(PropertyType.BOOLEAN)
        assert codec.to_column_value(boolean, True) == "1"
        assert codec.to_column_value(boolean, False) == "0"
        assert codec.to_column_value(boolean, "") == "0"

    def test_string_is_escaped(self, codec):
        assert codec.to_column_value(prop(PropertyType.STRING), "O'Brien") == "'O\\'Brien'"
        assert codec.to_column_value(prop(PropertyType.STRING), "a\nb") == "'a\\nb'"
        assert codec.to_column_value(prop(PropertyType.STRING), 42) == "'42'"

    def test_enum_member_is_unwrapped(self, codec):
        assert codec.to_column_value(prop(PropertyType.STRING), Color.RED) == "'red'"

    def test_json_and_array_are_serialized(self, codec):
        assert codec.to_column_value(prop(PropertyType.ARRAY), [1, 2]) == "'[1, 2]'"
        assert codec.to_column_value(prop(PropertyType.JSON), {"a": 1}) == r"'{\"a\": 1}'"

    def test_point(self, codec):
        point = prop(PropertyType.POINT)
        assert codec.to_column_value(point, Point(1, 2)) == "POINT(1, 2)"
        assert codec.to_column_value(point, {"x": 1.5, "y": 2}) == "POINT(1.5, 2)"

    def test_point_rejects_other_shapes(self, codec):
        with pytest.raises(ValueConversionError, match="a point"):
            codec.to_column_value(prop(PropertyType.POINT), "1,2")

    def test_sequence_is_element_wise(self, codec):
        assert codec.to_column_value(prop(PropertyType.NUMBER), [1, "2"]) == ["1", "2"]
        assert codec.to_column_value(prop(PropertyType.STRING), ("a", None)) == ["'a'", "NULL"]

    def test_sets_encode_in_sorted_order(self, codec):
        string = prop(PropertyType.STRING)
        assert codec.to_column_value(string, {"pending", "active", "closed"}) == ["'active'", "'closed'", "'pending'"]
        assert codec.to_column_value(string, {"nin": frozenset({"b", "a"})}) == "'a','b'"
        assert codec.to_column_value(prop(PropertyType.ARRAY), {"b", "a"}) == r"'[\"a\", \"b\"]'"

    def test_operator_objects(self, codec):
        number = prop(PropertyType.NUMBER)
        assert codec.to_column_value(number, {"between": [1, 5]}) == "1 AND 5"
        assert codec.to_column_value(number, {"inq": [1, 2]}) == "1,2"
        assert codec.to_column_value(number, {"gt": "7"}) == "7"
        assert codec.to_column_value(number, {}) == "NULL"

    def test_untyped_values(self, codec):
        assert codec.to_column_value(None, 5) == "5"
        assert codec.to_column_value(None, "x") == "'x'"
        assert codec.to_column_value(None, True) == "1"
        assert codec.to_column_value(None, datetime(2024, 1, 1)) == "'2024-01-01 00:00:00.000'"


# =========================================================================
# SQL → model
# =========================================================================


class TestFromColumnValue:
    def test_null_passes_through(self, codec):
        assert codec.from_column_value(prop(PropertyType.DATE), None) is None

    def test_date_from_naive_datetime(self, codec):
        value = codec.from_column_value(prop(PropertyType.DATE), datetime(2024, 1, 31, 12, 0))
        assert value == datetime(2024, 1, 31, 12, 0, tzinfo=UTC)
        assert value.tzinfo is UTC

    def test_date_from_string_with_zone_suffix(self, codec):
        date_prop = prop(PropertyType.DATE)
        expected = datetime(2024, 1, 31, 12, 0, 0, 250000, tzinfo=UTC)
        assert codec.from_column_value(date_prop, "2024-01-31 12:00:00.250") == expected
        assert codec.from_column_value(date_prop, "2024-01-31 12:00:00.250 UTC") == expected
        assert codec.from_column_value(date_prop, b"2024-01-31 12:00:00.250") == expected

    def test_date_from_epoch_ms(self, codec):
        assert codec.from_column_value(prop(PropertyType.DATE), 86_400_000) == datetime(1970, 1, 2, tzinfo=UTC)

    def test_corrupt_date_recovers_to_none(self, codec):
        with capture_logs() as logs:
            assert codec.from_column_value(PropertyDef("born", PropertyType.DATE), "not a date") is None
        assert logs[0]["event"] == "column_decode_failed"
        assert logs[0]["log_level"] == "warning"
        assert logs[0]["context"]["field"] == "born"

    def test_boolean(self, codec):
        boolean = prop(PropertyType.BOOLEAN)
        assert codec.from_column_value(boolean, 1) is True
        assert codec.from_column_value(boolean, 0) is False
        assert codec.from_column_value(boolean, b"\x01") is True
        assert codec.from_column_value(boolean, b"\x00") is False
        assert codec.from_column_value(boolean, "0") is False

    def test_json(self, codec):
        assert codec.from_column_value(prop(PropertyType.JSON), '{"a": [1, 2]}') == {"a": [1, 2]}
        assert codec.from_column_value(prop(PropertyType.ARRAY), "[1, 2]") == [1, 2]
        assert codec.from_column_value(prop(PropertyType.JSON), {"already": "decoded"}) == {"already": "decoded"}

    def test_corrupt_json_recovers_to_none(self, codec):
        with capture_logs() as logs:
            assert codec.from_column_value(PropertyDef("meta", PropertyType.JSON), "{oops") is None
        assert logs[0]["message"] == "Stored value is not valid JSON"

    def test_other_types_pass_through(self, codec):
        assert codec.from_column_value(prop(PropertyType.STRING), "x") == "x"
        assert codec.from_column_value(None, b"raw") == b"raw"

    def test_decode_row(self, codec, person):
        row = {"id": 1, "active": 1, "born": datetime(2000, 1, 1), "cnt": 5}
        decoded = codec.decode_row(person, row)
        assert decoded == {"id": 1, "active": True, "born": datetime(2000, 1, 1, tzinfo=UTC), "cnt": 5}

    def test_decode_row_keeps_bad_field_isolated(self, codec):
        model = ModelSchema.from_dict({"name": "m", "properties": {"meta": "json", "title": "string"}})
        decoded = codec.decode_row(model, {"meta": "{bad", "title": "ok"})
        assert decoded == {"meta": None, "title": "ok"}


# =========================================================================
# Column types
# =========================================================================


class TestColumnType:
    @pytest.mark.parametrize(
        "definition, expected",
        [
            (prop(PropertyType.STRING), "VARCHAR(255)"),
            (prop(PropertyType.STRING, limit=100), "VARCHAR(100)"),
            (prop(PropertyType.STRING, data_type="CHAR", length=2), "CHAR(2)"),
            (prop(PropertyType.TEXT), "LONGTEXT"),
            (prop(PropertyType.JSON), "LONGTEXT"),
            (prop(PropertyType.ARRAY), "TEXT"),
            (prop(PropertyType.DATE), "DATETIME"),
            (prop(PropertyType.DATE, data_type="TIMESTAMP", length=3), "TIMESTAMP(3)"),
            (prop(PropertyType.NUMBER), "INT(11)"),
            (prop(PropertyType.NUMBER, unsigned=True), "INT(10) UNSIGNED"),
            (prop(PropertyType.NUMBER, data_type="TINYINT", display=4), "TINYINT(4)"),
            (prop(PropertyType.NUMBER, data_type="BIGINT", unsigned=True), "BIGINT(20) UNSIGNED"),
            (prop(PropertyType.NUMBER, data_type="DECIMAL"), "DECIMAL(9,2)"),
            (prop(PropertyType.NUMBER, data_type="DECIMAL", precision=12, scale=4), "DECIMAL(12,4)"),
            (prop(PropertyType.NUMBER, data_type="FLOAT"), "FLOAT"),
            (prop(PropertyType.NUMBER, data_type="DOUBLE", precision=10, scale=3), "DOUBLE(10,3)"),
            (prop(PropertyType.BOOLEAN), "TINYINT(1)"),
            (prop(PropertyType.POINT), "POINT"),
            (prop(PropertyType.ENUM, enum_values=("draft", "published")), "ENUM('draft','published')"),
        ],
    )
    def test_column_type(self, codec, definition, expected):
        assert codec.column_type(definition) == expected

    def test_charset_and_collation(self, codec):
        text = prop(PropertyType.STRING, charset="utf8mb4", collation="utf8mb4_bin")
        assert codec.column_type(text) == "VARCHAR(255) CHARACTER SET utf8mb4 COLLATE utf8mb4_bin"
        assert codec.column_type(text, charset=False) == "VARCHAR(255)"

    def test_charset_ignored_for_numbers(self, codec):
        assert codec.column_type(prop(PropertyType.NUMBER, charset="latin1")) == "INT(11)"

    def test_column_ddl_nullability(self, codec):
        assert codec.column_ddl(prop(PropertyType.STRING)) == "VARCHAR(255) NULL"
        assert codec.column_ddl(prop(PropertyType.STRING, nullable=True)) == "VARCHAR(255) NULL"
        assert codec.column_ddl(prop(PropertyType.NUMBER, nullable=False)) == "INT(11) NOT NULL"


class TestFormatDatetime:
    def test_zero_padded(self):
        assert format_datetime(datetime(7, 2, 3, 4, 5, 6, 7000)) == "0007-02-03 04:05:06.007"

    def test_truncates_to_milliseconds(self):
        assert format_datetime(datetime(2024, 1, 1, 0, 0, 0, 999999, tzinfo=UTC)) == "2024-01-01 00:00:00.999"
