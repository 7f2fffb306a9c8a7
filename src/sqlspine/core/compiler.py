"""
Filter compiler: condition trees and filters → MySQL statements.

Every function takes the model schema it compiles against plus an optional
codec, and returns SQL text.  Nothing is cached between calls and no model
registry is consulted, so compiling filters for different models from
several threads at once is safe.

Manifesto:
    - **Never drop a condition:** every key of a condition tree produces a
      clause or an InvalidFilterError
    - **No accidental full scans:** an explicitly empty ``where`` on a
      SELECT is an error, not "match everything"
    - **Set semantics:** an empty ``inq`` is always false (``0``) and an empty
      ``nin`` always true (``1``), never ``IN ()``
    - **Deterministic:** clauses come out in the key order of the input

Architecture:
    ::

        Filter / condition tree
            │  parse_tree()           (conditions.py)
            ▼
        tagged conditions ──► _compile_condition()  ─► "`age` > 18"
            │                     │
            │                     └── ValueCodec.to_column_value()
            ▼
        compile_select / compile_count / compile_insert / compile_upsert
        compile_update / compile_bulk_update / compile_delete

Examples:
    >>> person = ModelSchema.from_dict({"name": "person", "properties": {"age": "number", "name": "string"}})
    >>> compile_select(person, {"where": {"age": {"gt": 18}}, "order": "name DESC", "limit": 10, "skip": 5})
    'SELECT * FROM `person` WHERE `age` > 18 ORDER BY `name` DESC LIMIT 5, 10'
    >>> compile_where(person, {"or": [{"name": "a"}, {"name": "b"}]})
    "(`name` = 'a' OR `name` = 'b')"

Guardrails:
    ❌ DON'T: f"WHERE {key} = '{value}'"
    ✅ DO: compile_where(model, {key: value})

Tags:
    compiler, sql, filters, where, select, update, mysql

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from sqlspine.core.codec import CODEC, ValueCodec
from sqlspine.core.conditions import (
    AnyOf,
    Condition,
    IsNull,
    OperatorCondition,
    Range,
    Scalar,
    ValueList,
    parse_tree,
)
from sqlspine.core.errors import BatchItemError, InvalidFilterError, SqlSpineError, ValueConversionError
from sqlspine.core.models.filters import Filter
from sqlspine.core.models.properties import ModelSchema, PropertyType
from sqlspine.core.result import Err, Ok, Result

MISSING_WHERE_OR_UPDATE = "Where or Update fields are missing"

_DIRECTIONS = frozenset({"ASC", "DESC"})


# ----------------------------------------------------------------------
# WHERE
# ----------------------------------------------------------------------


def compile_where(model: ModelSchema, where: Mapping[str, Any], *, codec: ValueCodec = CODEC) -> str:
    """Compile a condition tree into a boolean SQL expression."""
    return _compile_conditions(model, parse_tree(where), codec)


def _compile_conditions(model: ModelSchema, conditions: Sequence[Condition], codec: ValueCodec) -> str:
    return " AND ".join(_compile_condition(model, c, codec) for c in conditions)


def _compile_condition(model: ModelSchema, condition: Condition, codec: ValueCodec) -> str:
    q = codec.dialect.quote_name

    match condition:
        case IsNull(field):
            return f"{q(field)} IS NULL"

        case AnyOf(branches):
            return "(" + " OR ".join(_compile_conditions(model, b, codec) for b in branches) + ")"

        case ValueList(field, values):
            if not values:
                return "0"
            encoded = [_scalar_literal(model, field, v, codec) for v in values]
            return f"{q(field)} IN ({', '.join(encoded)})"

        case Range(field, low, high):
            bounds = codec.to_column_value(model.property_for(field), {"between": (low, high)})
            return f"{q(field)} BETWEEN {bounds}"

        case OperatorCondition(field, "inq" | "nin" as op, values):
            if not values:
                return "0" if op == "inq" else "1"
            encoded = codec.to_column_value(model.property_for(field), {op: list(values)})
            return f"{q(field)} {condition.sql_operator} ({encoded})"

        case OperatorCondition(field, "like", pattern):
            return f"{q(field)} LIKE {codec.dialect.quote_string(pattern)}"

        case OperatorCondition(field, op, operand):
            encoded = codec.to_column_value(model.property_for(field), {op: operand})
            return f"{q(field)} {condition.sql_operator} {encoded}"

        case Scalar(field, value):
            return f"{q(field)} = {_scalar_literal(model, field, value, codec)}"

    raise InvalidFilterError(f"Unsupported condition {condition!r}")


def _scalar_literal(model: ModelSchema, field: str, value: Any, codec: ValueCodec) -> str:
    encoded = codec.to_column_value(model.property_for(field), value)
    if isinstance(encoded, list):
        raise ValueConversionError(f"Expected a single value for {field!r}").with_context(field=field)
    return encoded


# ----------------------------------------------------------------------
# SELECT / COUNT
# ----------------------------------------------------------------------


def compile_select(
    model: ModelSchema,
    filter: Filter | Mapping[str, Any] | None = None,
    *,
    codec: ValueCodec = CODEC,
) -> str:
    """``SELECT <projection> FROM <table> [WHERE] [GROUP BY] [ORDER BY] [LIMIT]``."""
    f = Filter.parse(filter)
    q = codec.dialect.quote_name

    projection = ", ".join(q(a) for a in f.attributes) if f.attributes else "*"
    sql = f"SELECT {projection} FROM {q(model.table_name)}"

    if f.where is not None:
        if not f.where:
            raise InvalidFilterError("Where field is empty").with_context(
                model=model.name, operation="find"
            )
        sql += f" WHERE {compile_where(model, f.where, codec=codec)}"
    if f.group:
        sql += f" GROUP BY {_order_list(f.group, codec)}"
    if f.order:
        sql += f" ORDER BY {_order_list(f.order, codec)}"
    if f.limit:
        sql += f" LIMIT {f.skip}, {f.limit}" if f.skip else f" LIMIT {f.limit}"
    return sql


def _order_list(entries: Sequence[str], codec: ValueCodec) -> str:
    """``["name DESC", "age"]`` → ```name` DESC, `age```."""
    rendered = []
    for entry in entries:
        tokens = entry.split()
        if len(tokens) == 1:
            rendered.append(codec.dialect.quote_name(tokens[0]))
        elif len(tokens) == 2 and tokens[1].upper() in _DIRECTIONS:
            rendered.append(f"{codec.dialect.quote_name(tokens[0])} {tokens[1].upper()}")
        else:
            raise InvalidFilterError(f"Cannot parse order/group entry {entry!r}")
    return ", ".join(rendered)


def compile_count(
    model: ModelSchema,
    where: Mapping[str, Any] | None = None,
    *,
    codec: ValueCodec = CODEC,
) -> str:
    """``SELECT count(*) AS cnt``; an empty or missing tree counts every row."""
    sql = f"SELECT count(*) AS cnt FROM {codec.dialect.quote_name(model.table_name)}"
    if where:
        sql += f" WHERE {compile_where(model, where, codec=codec)}"
    return sql


# ----------------------------------------------------------------------
# INSERT / UPSERT
# ----------------------------------------------------------------------


def _assignments(model: ModelSchema, data: Mapping[str, Any], codec: ValueCodec) -> list[tuple[str, str]]:
    """Encode the known columns of ``data`` as ``(quoted column, literal)`` pairs."""
    pairs = []
    for key, value in data.items():
        if not model.is_known(key):
            continue
        prop = model.property_for(key)
        serialized = prop is not None and prop.type in (PropertyType.JSON, PropertyType.ARRAY)
        if not serialized and isinstance(value, (Mapping, list, tuple, set, frozenset)):
            if not (prop is not None and prop.type is PropertyType.POINT and isinstance(value, Mapping)):
                raise ValueConversionError(
                    f"Cannot assign a {type(value).__name__} to column {key!r}"
                ).with_context(model=model.name, field=key)
        pairs.append((codec.dialect.quote_name(key), _scalar_literal(model, key, value, codec)))
    return pairs


def compile_insert(model: ModelSchema, data: Mapping[str, Any], *, codec: ValueCodec = CODEC) -> str:
    """``INSERT INTO <table> SET a = 1, ...``; only declared columns and ``id``."""
    table = codec.dialect.quote_name(model.table_name)
    pairs = _assignments(model, data, codec)
    if not pairs:
        return f"INSERT INTO {table} VALUES ()"
    return f"INSERT INTO {table} SET " + ", ".join(f"{col} = {val}" for col, val in pairs)


def compile_upsert(model: ModelSchema, data: Mapping[str, Any], *, codec: ValueCodec = CODEC) -> str:
    """Single-row insert that reassigns every non-id column on a key collision."""
    table = codec.dialect.quote_name(model.table_name)
    id_column = codec.dialect.quote_name("id")
    pairs = _assignments(model, data, codec)

    columns = ", ".join(col for col, _ in pairs)
    values = ", ".join(val for _, val in pairs)
    updates = [f"{col} = {val}" for col, val in pairs if col != id_column]
    if not updates:
        updates = [f"{id_column} = {id_column}"]
    return (
        f"INSERT INTO {table} ({columns}) VALUES ({values}) "
        f"ON DUPLICATE KEY UPDATE {', '.join(updates)}"
    )


# ----------------------------------------------------------------------
# UPDATE / DELETE
# ----------------------------------------------------------------------


def compile_update(
    model: ModelSchema,
    where: Mapping[str, Any] | None,
    update: Mapping[str, Any] | None,
    *,
    codec: ValueCodec = CODEC,
) -> str:
    """``UPDATE <table> SET ... WHERE ...``; both parts must be non-empty."""
    if not where or not update:
        raise InvalidFilterError(MISSING_WHERE_OR_UPDATE).with_context(
            model=model.name, operation="update"
        )
    if not isinstance(where, Mapping) or not isinstance(update, Mapping):
        raise InvalidFilterError(
            f"Where and Update must be mappings, got {type(where).__name__} and {type(update).__name__}"
        ).with_context(model=model.name, operation="update")
    pairs = _assignments(model, update, codec)
    if not pairs:
        raise InvalidFilterError(f"No known columns to update in {sorted(update)}").with_context(
            model=model.name, operation="update"
        )
    assignments = ", ".join(f"{col} = {val}" for col, val in pairs)
    return (
        f"UPDATE {codec.dialect.quote_name(model.table_name)} SET {assignments} "
        f"WHERE {compile_where(model, where, codec=codec)}"
    )


def compile_bulk_update(
    model: ModelSchema,
    specs: Sequence[Mapping[str, Any]],
    *,
    codec: ValueCodec = CODEC,
) -> list[Result[str]]:
    """One ``UPDATE`` per ``{where, update}`` spec, positionally.

    A spec that cannot be compiled yields ``Err(BatchItemError)`` in its own
    slot; the other specs still compile.
    """
    compiled: list[Result[str]] = []
    for index, spec in enumerate(specs):
        if not isinstance(spec, Mapping):
            compiled.append(Err(BatchItemError(MISSING_WHERE_OR_UPDATE, index=index)))
            continue
        try:
            compiled.append(Ok(compile_update(model, spec.get("where"), spec.get("update"), codec=codec)))
        except SqlSpineError as e:
            item = BatchItemError(e.message, index=index, cause=e)
            item.with_context(model=model.name, operation="update")
            compiled.append(Err(item))
    return compiled


def compile_delete(
    model: ModelSchema,
    where: Mapping[str, Any] | None = None,
    *,
    codec: ValueCodec = CODEC,
) -> str:
    """``DELETE FROM <table> [WHERE ...]``; no tree deletes every row."""
    sql = f"DELETE FROM {codec.dialect.quote_name(model.table_name)}"
    if where:
        sql += f" WHERE {compile_where(model, where, codec=codec)}"
    return sql


__all__ = [
    "MISSING_WHERE_OR_UPDATE",
    "compile_where",
    "compile_select",
    "compile_count",
    "compile_insert",
    "compile_upsert",
    "compile_update",
    "compile_bulk_update",
    "compile_delete",
]
