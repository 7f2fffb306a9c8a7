"""
Condition trees parsed into a tagged variant.

A ``where`` mapping is turned into a tuple of condition objects before any
SQL is generated.  The compiler then matches on the condition class instead
of inspecting the runtime shape of each value, and every malformed shape is
rejected here with :class:`~sqlspine.core.errors.InvalidFilterError`.

Architecture:
    ::

        {"age": {"gt": 18}, "deleted_at": None, "or": [{...}, {...}]}
            │
            ▼  parse_tree()
        (OperatorCondition("age", "gt", 18),
         IsNull("deleted_at"),
         AnyOf(((...), (...))))

        value shape                 → condition
        ───────────────────────────────────────────────────────
        None                        → IsNull
        "or": [tree, ...]           → AnyOf      (key matched case-insensitively)
        [a, b, ...]                 → ValueList
        {"between": [lo, hi]}       → Range
        {"gt" | ... | "like": v}    → OperatorCondition
        anything else               → Scalar

Examples:
    >>> parse_tree({"status": "active", "age": {"between": [18, 30]}})
    (Scalar(field='status', value='active'), Range(field='age', low=18, high=30))
    >>> parse_tree({"age": {"gt": 1, "lt": 9}})
    Traceback (most recent call last):
    ...
    sqlspine.core.errors.InvalidFilterError: Operator object for 'age' must have exactly one key, got ['gt', 'lt']

Tags:
    conditions, tagged-union, filters, validation

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from sqlspine.core.errors import InvalidFilterError

OPERATORS: dict[str, str] = {
    "gt": ">",
    "gte": ">=",
    "lt": "<",
    "lte": "<=",
    "neq": "!=",
    "between": "BETWEEN",
    "inq": "IN",
    "nin": "NOT IN",
    "like": "LIKE",
}

SET_OPERATORS = frozenset({"inq", "nin"})

OR_KEY = "or"


@dataclass(frozen=True, slots=True)
class IsNull:
    field: str


@dataclass(frozen=True, slots=True)
class Scalar:
    field: str
    value: Any


@dataclass(frozen=True, slots=True)
class ValueList:
    field: str
    values: tuple[Any, ...]


@dataclass(frozen=True, slots=True)
class Range:
    field: str
    low: Any
    high: Any


@dataclass(frozen=True, slots=True)
class OperatorCondition:
    """``field <op> operand`` for every operator except ``between``."""

    field: str
    op: str
    operand: Any

    @property
    def sql_operator(self) -> str:
        return OPERATORS[self.op]


@dataclass(frozen=True, slots=True)
class AnyOf:
    """Disjunction of condition groups; each group is an AND of its members."""

    branches: tuple[tuple[Condition, ...], ...]


Condition = IsNull | Scalar | ValueList | Range | OperatorCondition | AnyOf


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _require_ordered(key: str, value: Any) -> None:
    # iteration order of a set is not stable across processes
    if isinstance(value, (set, frozenset)):
        raise InvalidFilterError(
            f"Values for {key!r} must be a list or tuple, not a {type(value).__name__}"
        ).with_context(field=key)


def parse_tree(tree: Mapping[str, Any]) -> tuple[Condition, ...]:
    """Parse a condition tree, preserving the key order of the mapping."""
    if not isinstance(tree, Mapping):
        raise InvalidFilterError(f"Condition tree must be a mapping, got {type(tree).__name__}")
    for key in tree:
        if not isinstance(key, str):
            raise InvalidFilterError(f"Condition keys must be column names, got {key!r}")
    return tuple(parse_condition(key, value) for key, value in tree.items())


def parse_condition(key: str, value: Any) -> Condition:
    """Parse one ``key: value`` pair of a condition tree."""
    if value is None:
        return IsNull(key)
    _require_ordered(key, value)

    if key.lower() == OR_KEY and _is_sequence(value):
        branches = []
        for branch in value:
            if not isinstance(branch, Mapping) or not branch:
                raise InvalidFilterError("Each 'or' branch must be a non-empty condition tree")
            branches.append(parse_tree(branch))
        if not branches:
            raise InvalidFilterError("'or' needs at least one branch")
        return AnyOf(tuple(branches))

    if _is_sequence(value):
        return ValueList(key, tuple(value))

    if isinstance(value, Mapping):
        return _parse_operator(key, value)

    return Scalar(key, value)


def _parse_operator(key: str, value: Mapping[str, Any]) -> Condition:
    if len(value) != 1:
        raise InvalidFilterError(
            f"Operator object for {key!r} must have exactly one key, got {list(value)}"
        ).with_context(field=key)

    op, operand = next(iter(value.items()))
    _require_ordered(key, operand)
    if op not in OPERATORS:
        raise InvalidFilterError(f"Unknown operator {op!r} for {key!r}").with_context(field=key)

    if op == "between":
        if not _is_sequence(operand) or len(operand) != 2:
            raise InvalidFilterError(
                f"'between' for {key!r} needs a [low, high] pair"
            ).with_context(field=key)
        low, high = tuple(operand)
        return Range(key, low, high)

    if op in SET_OPERATORS:
        values = tuple(operand) if _is_sequence(operand) else (operand,)
        return OperatorCondition(key, op, values)

    if operand is None or _is_sequence(operand) or isinstance(operand, Mapping):
        raise InvalidFilterError(
            f"Operator {op!r} for {key!r} needs a single value"
        ).with_context(field=key)
    return OperatorCondition(key, op, operand)


__all__ = [
    "OPERATORS",
    "Condition",
    "IsNull",
    "Scalar",
    "ValueList",
    "Range",
    "OperatorCondition",
    "AnyOf",
    "parse_tree",
    "parse_condition",
]
