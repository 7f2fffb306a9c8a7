"""Query filter model.

A filter describes which rows to read and how to shape the result: a
``where`` condition tree plus optional grouping, ordering, pagination and
projection.  It is validated with pydantic so a negative ``limit`` or a
numeric ``order`` is rejected before any SQL is generated.

Examples:
    >>> f = Filter.parse({"where": {"age": {"gt": 18}}, "order": "name DESC", "limit": 10})
    >>> f.order
    ['name DESC']
    >>> Filter.parse({"limit": -1})
    Traceback (most recent call last):
    ...
    sqlspine.core.errors.InvalidFilterError: Invalid filter: ...
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from sqlspine.core.errors import InvalidFilterError


class Filter(BaseModel):
    """Caller-supplied read filter."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    where: dict[str, Any] | None = None
    order: list[str] | None = None
    group: list[str] | None = None
    limit: int | None = Field(default=None, ge=0)
    skip: int | None = Field(default=None, ge=0)
    attributes: list[str] | None = None

    @field_validator("order", "group", "attributes", mode="before")
    @classmethod
    def _listify(cls, value: Any) -> Any:
        """A single string may hold several comma separated entries."""
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        return value

    @classmethod
    def parse(cls, value: Filter | Mapping[str, Any] | None) -> Filter:
        """Coerce a mapping into a Filter, reporting bad shapes as InvalidFilterError."""
        if isinstance(value, Filter):
            return value
        if value is None:
            return cls()
        if not isinstance(value, Mapping):
            raise InvalidFilterError(f"Filter must be a mapping, got {type(value).__name__}")
        data = dict(value)
        if "offset" in data and "skip" not in data:
            data["skip"] = data.pop("offset")
        try:
            return cls.model_validate(data)
        except PydanticValidationError as e:
            raise InvalidFilterError(f"Invalid filter: {e}", cause=e) from e


__all__ = [
    "Filter",
]
