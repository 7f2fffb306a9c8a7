"""
Value codec: model values ⇄ MySQL literals, and column DDL types.

Manifesto:
    Every value written into generated SQL passes through
    :meth:`ValueCodec.to_column_value`, and every value read back passes
    through :meth:`ValueCodec.from_column_value`.  Those two methods are
    where NULL handling, numeric coercion, date precision and JSON encoding
    are decided, so they are decided once.

    - **NULL is NULL:** ``None`` always encodes to the bare ``NULL`` keyword
    - **UTC, milliseconds:** dates are written as ``'YYYY-MM-DD HH:MM:SS.mmm'``
      in UTC and read back as aware UTC datetimes
    - **Fail fast on write:** a value that is not a number for a Number
      column raises ValueConversionError
    - **Recover on read:** a corrupt JSON cell decodes to ``None`` and is
      logged, the rest of the row still hydrates

Architecture:
    ::

        to_column_value(prop, value)
          None                     → NULL
          JSON / Array property    → '<json text>'
          list / tuple / set       → [literal, ...]          (caller joins)
          {op: operand}            → "lo AND hi" | "a,b,c" | literal
          Number                   → 42 | 1.5
          Date                     → '2024-01-31 12:00:00.250'
          Boolean                  → 1 | 0
          Point                    → POINT(x, y)
          anything else            → '<escaped text>'

        column_type(prop)           → VARCHAR(255) CHARACTER SET x COLLATE y
        column_ddl(prop)            → column_type + NULL | NOT NULL

Examples:
    >>> codec = ValueCodec()
    >>> codec.to_column_value(PropertyDef("age", PropertyType.NUMBER), "18")
    '18'
    >>> codec.column_ddl(PropertyDef("age", PropertyType.NUMBER, unsigned=True, nullable=False))
    'INT(10) UNSIGNED NOT NULL'

Tags:
    codec, marshalling, dates, json, ddl, mysql

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import json
import math
import re
from collections.abc import Mapping
from datetime import UTC, date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from sqlspine.core.conditions import OPERATORS, SET_OPERATORS
from sqlspine.core.dialect import MYSQL, MySQLDialect
from sqlspine.core.errors import InvalidFilterError, TypeConversionFailure, ValueConversionError
from sqlspine.core.logging import get_logger
from sqlspine.core.models.properties import ModelSchema, Point, PropertyDef, PropertyType

logger = get_logger(__name__)

NULL = "NULL"

# Display widths MySQL assigns when none is declared.
_SIGNED_WIDTHS = {"tinyint": 4, "smallint": 6, "mediumint": 9, "int": 11, "integer": 11, "bigint": 20}
_UNSIGNED_WIDTHS = {"tinyint": 3, "smallint": 5, "mediumint": 8, "int": 10, "integer": 10, "bigint": 20}

_SIZED_STRING_TYPES = frozenset({"varchar", "char", "varbinary", "binary"})
_FRACTIONAL_TYPES = frozenset({"datetime", "timestamp", "time"})
_FIXED_POINT_TYPES = frozenset({"decimal", "numeric"})
_FLOATING_POINT_TYPES = frozenset({"float", "double", "real"})

_STRING_FAMILY = frozenset({PropertyType.STRING, PropertyType.TEXT, PropertyType.JSON, PropertyType.ENUM})
_SERIALIZED = frozenset({PropertyType.JSON, PropertyType.ARRAY})

_ZONE_SUFFIX = re.compile(r"\s*(?:GMT.*|UTC|Z)$", re.IGNORECASE)


class ValueCodec:
    """Converts single values between model and column form."""

    def __init__(self, dialect: MySQLDialect = MYSQL):
        self.dialect = dialect

    # ------------------------------------------------------------------
    # model → SQL
    # ------------------------------------------------------------------

    def to_column_value(self, prop: PropertyDef | None, value: Any) -> str | list[str]:
        """Encode ``value`` as SQL literal text for a column of type ``prop``.

        Sequences come back as a list of literals; joining them is up to
        the caller.
        """
        if value is None:
            return NULL
        if prop is not None and prop.type in _SERIALIZED:
            return self.dialect.quote_string(_dump_json(value, prop))
        if _is_point_mapping(prop, value):
            return self._encode_point(value, prop)
        if isinstance(value, (list, tuple, set, frozenset)):
            return self._encode_many(prop, value)
        if isinstance(value, Mapping):
            return self._encode_operator(prop, value)
        return self._encode_scalar(prop, value)

    def _encode_operator(self, prop: PropertyDef | None, value: Mapping[str, Any]) -> str:
        if not value:
            return NULL
        if len(value) != 1:
            raise InvalidFilterError(f"Operator object must have exactly one key, got {list(value)}")
        op, operand = next(iter(value.items()))
        if op not in OPERATORS:
            raise InvalidFilterError(f"Unknown operator {op!r}")
        if op == "between":
            low, high = operand
            return f"{self._encode_scalar(prop, low)} AND {self._encode_scalar(prop, high)}"
        if op in SET_OPERATORS and isinstance(operand, (list, tuple, set, frozenset)):
            return ",".join(self._encode_many(prop, operand))
        return self._encode_scalar(prop, operand)

    def _encode_many(self, prop: PropertyDef | None, values: Any) -> list[str]:
        """Literals in input order; sets come out sorted by literal."""
        encoded = [self._encode_scalar(prop, v) for v in values]
        if isinstance(values, (set, frozenset)):
            encoded.sort()
        return encoded

    def _encode_scalar(self, prop: PropertyDef | None, value: Any) -> str:
        if value is None:
            return NULL
        if isinstance(value, Enum):
            value = value.value
        if prop is None:
            return self._encode_untyped(value)

        match prop.type:
            case PropertyType.NUMBER:
                return str(_to_number(value, prop))
            case PropertyType.DATE:
                if not value:
                    return NULL
                return self.dialect.quote_string(format_datetime(_to_datetime(value, prop)))
            case PropertyType.BOOLEAN:
                return "1" if value else "0"
            case PropertyType.POINT:
                return self._encode_point(value, prop)
            case _:
                return self.dialect.quote_string(value)

    def _encode_untyped(self, value: Any) -> str:
        if isinstance(value, datetime):
            return self.dialect.quote_string(format_datetime(_to_datetime(value, None)))
        if isinstance(value, Point):
            return self._encode_point(value, None)
        if isinstance(value, float) and not math.isfinite(value):
            raise ValueConversionError(f"Cannot write non-finite number {value!r}")
        return self.dialect.literal(value)

    def _encode_point(self, value: Any, prop: PropertyDef | None) -> str:
        if isinstance(value, Point):
            x, y = value.x, value.y
        elif isinstance(value, Mapping) and {"x", "y"} <= value.keys():
            x, y = value["x"], value["y"]
        else:
            raise _conversion_error(value, prop, "a point")
        return f"POINT({_to_number(x, prop)}, {_to_number(y, prop)})"

    # ------------------------------------------------------------------
    # SQL → model
    # ------------------------------------------------------------------

    def from_column_value(self, prop: PropertyDef | None, raw: Any) -> Any:
        """Decode one cell of a result row."""
        if raw is None or prop is None:
            return raw

        match prop.type:
            case PropertyType.DATE:
                return self._decode_date(prop, raw)
            case PropertyType.BOOLEAN:
                return _to_bool(raw)
            case PropertyType.JSON | PropertyType.ARRAY:
                return self._decode_json(prop, raw)
            case _:
                return raw

    def decode_row(self, model: ModelSchema, row: Mapping[str, Any]) -> dict[str, Any]:
        """Decode every known column of ``row``; unknown columns pass through."""
        return {key: self.from_column_value(model.property_for(key), raw) for key, raw in row.items()}

    def _decode_date(self, prop: PropertyDef, raw: Any) -> datetime | None:
        if isinstance(raw, datetime):
            return raw.replace(tzinfo=UTC) if raw.tzinfo is None else raw.astimezone(UTC)
        if isinstance(raw, date):
            return datetime(raw.year, raw.month, raw.day, tzinfo=UTC)
        if isinstance(raw, (int, float)):
            return datetime.fromtimestamp(raw / 1000, tz=UTC)
        text = raw.decode("utf-8") if isinstance(raw, (bytes, bytearray)) else str(raw)
        try:
            parsed = datetime.fromisoformat(_ZONE_SUFFIX.sub("", text.strip()))
        except ValueError as e:
            return self._recover(prop, raw, "date", e)
        return parsed.replace(tzinfo=UTC) if parsed.tzinfo is None else parsed.astimezone(UTC)

    def _decode_json(self, prop: PropertyDef, raw: Any) -> Any:
        if not isinstance(raw, (str, bytes, bytearray)):
            return raw
        try:
            return json.loads(raw)
        except ValueError as e:
            return self._recover(prop, raw, "JSON", e)

    def _recover(self, prop: PropertyDef, raw: Any, kind: str, cause: Exception) -> None:
        failure = TypeConversionFailure(f"Stored value is not valid {kind}", cause=cause)
        failure.with_context(field=prop.name, raw=repr(raw)[:200])
        logger.warning("column_decode_failed", **failure.to_dict())
        return None

    # ------------------------------------------------------------------
    # DDL
    # ------------------------------------------------------------------

    def column_type(self, prop: PropertyDef, *, charset: bool = True) -> str:
        """MySQL type declaration for ``prop``.

        ``charset=False`` leaves out ``CHARACTER SET``/``COLLATE``; the
        differ compares that form against ``SHOW FIELDS`` output.
        """
        match prop.type:
            case PropertyType.ARRAY:
                return "TEXT"
            case PropertyType.STRING:
                dt = _sized_string(prop, prop.data_type or "VARCHAR")
            case PropertyType.TEXT | PropertyType.JSON:
                dt = _sized_string(prop, prop.data_type or "LONGTEXT")
            case PropertyType.DATE:
                dt = _sized_string(prop, prop.data_type or "DATETIME")
            case PropertyType.NUMBER:
                dt = _numeric(prop, prop.data_type or "INT")
            case PropertyType.BOOLEAN:
                dt = "TINYINT(1)"
            case PropertyType.POINT:
                dt = "POINT"
            case PropertyType.ENUM:
                dt = "ENUM(" + ",".join(self.dialect.quote_string(v) for v in prop.enum_values) + ")"

        if charset and prop.type in _STRING_FAMILY:
            if prop.charset:
                dt += f" CHARACTER SET {prop.charset}"
            if prop.collation:
                dt += f" COLLATE {prop.collation}"
        return dt

    def column_ddl(self, prop: PropertyDef) -> str:
        """Type declaration plus the NULL / NOT NULL suffix."""
        return f"{self.column_type(prop)} {'NOT NULL' if prop.nullable is False else 'NULL'}"


# ----------------------------------------------------------------------
# helpers
# ----------------------------------------------------------------------


def format_datetime(value: datetime) -> str:
    """``YYYY-MM-DD HH:MM:SS.mmm`` in UTC."""
    v = value.astimezone(UTC) if value.tzinfo else value
    return (
        f"{v.year:04d}-{v.month:02d}-{v.day:02d} "
        f"{v.hour:02d}:{v.minute:02d}:{v.second:02d}.{v.microsecond // 1000:03d}"
    )


def _sized_string(prop: PropertyDef, dt: str) -> str:
    base = dt.lower()
    if base in _SIZED_STRING_TYPES:
        return f"{dt}({prop.limit or prop.length or 255})"
    if base in _FRACTIONAL_TYPES and prop.length:
        return f"{dt}({prop.length})"
    return dt


def _numeric(prop: PropertyDef, dt: str) -> str:
    base = dt.lower()
    if base in _SIGNED_WIDTHS:
        width = prop.display or prop.limit
        if not width:
            width = (_UNSIGNED_WIDTHS if prop.unsigned else _SIGNED_WIDTHS)[base]
        dt = f"{dt}({width})"
    elif base in _FIXED_POINT_TYPES:
        dt = f"{dt}({prop.precision or 9},{prop.scale or 2})"
    elif base in _FLOATING_POINT_TYPES and prop.precision:
        dt = f"{dt}({prop.precision},{prop.scale})" if prop.scale else f"{dt}({prop.precision})"
    if prop.unsigned:
        dt += " UNSIGNED"
    return dt


def _conversion_error(value: Any, prop: PropertyDef | None, expected: str) -> ValueConversionError:
    error = ValueConversionError(f"Cannot convert {value!r} to {expected}")
    if prop is not None:
        error.with_context(field=prop.name)
    return error


def _is_point_mapping(prop: PropertyDef | None, value: Any) -> bool:
    return (
        prop is not None
        and prop.type is PropertyType.POINT
        and isinstance(value, Mapping)
        and value.keys() == {"x", "y"}
    )


def _to_number(value: Any, prop: PropertyDef | None) -> int | float | Decimal:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise _conversion_error(value, prop, "a finite number")
        return value
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise _conversion_error(value, prop, "a finite number")
        return value
    text = str(value).strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = Decimal(text)
    except InvalidOperation as e:
        raise _conversion_error(value, prop, "a number") from e
    if not number.is_finite():
        raise _conversion_error(value, prop, "a finite number")
    return number


def _to_datetime(value: Any, prop: PropertyDef | None) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=UTC)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value / 1000, tz=UTC)
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(_ZONE_SUFFIX.sub("", value.strip()))
        except ValueError as e:
            raise _conversion_error(value, prop, "a date") from e
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
    raise _conversion_error(value, prop, "a date")


def _to_bool(raw: Any) -> bool:
    if isinstance(raw, (bytes, bytearray)):
        return any(raw)
    if isinstance(raw, str):
        return raw.strip().lower() not in ("", "0", "false")
    return bool(raw)


def _json_default(value: Any) -> Any:
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=repr)
    return str(value)


def _dump_json(value: Any, prop: PropertyDef) -> str:
    try:
        return json.dumps(value, default=_json_default)
    except (TypeError, ValueError) as e:
        raise _conversion_error(value, prop, "JSON") from e


CODEC = ValueCodec()


__all__ = [
    "NULL",
    "ValueCodec",
    "CODEC",
    "format_datetime",
]
