"""
Result envelope for batch operations.

Bulk updates must report a positional outcome for every submitted entry,
even when some of them fail.  Instead of raising half-way through the batch,
:meth:`ModelAdapter.update` returns ``Ok(results)`` or
``Err(BulkUpdateError)``, and the individual outcomes are kept as
``Result`` values until the batch completes.

Architecture:
    ::

        ┌───────────────────────────────────┐
        │             Result[T]             │
        ├─────────────────┬─────────────────┤
        │     Ok[T]       │     Err[T]      │
        ├─────────────────┼─────────────────┤
        │  value: T       │  error: Exc     │
        │  map()          │  map_err()      │
        │  unwrap()       │  unwrap_or()    │
        └─────────────────┴─────────────────┘

Examples:
    >>> Ok(3).map(lambda n: n + 1).unwrap()
    4
    >>> Err(ValueError("boom")).unwrap_or(0)
    0

Tags:
    result-pattern, batch-processing, sqlspine

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

from sqlspine.core.errors import SqlSpineError

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Successful result containing a value."""

    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        """Get the value. Safe for Ok."""
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value

    def map(self, f: Callable[[T], U]) -> Result[U]:
        """Transform the value if Ok."""
        return Ok(f(self.value))

    def map_err(self, f: Callable[[Exception], Exception]) -> Result[T]:
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"ok": True, "value": self.value}

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[T]):
    """Failed result containing an exception."""

    error: Exception

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> T:
        """Raise the error. Use only when you're sure it's Ok."""
        raise self.error

    def unwrap_or(self, default: T) -> T:
        return default

    def map(self, f: Callable[[T], U]) -> Result[U]:
        return Err(self.error)

    def map_err(self, f: Callable[[Exception], Exception]) -> Result[T]:
        """Transform the error."""
        return Err(f(self.error))

    def to_dict(self) -> dict[str, Any]:
        if isinstance(self.error, SqlSpineError):
            return {"ok": False, "error": self.error.to_dict()}
        return {
            "ok": False,
            "error": {
                "error_type": type(self.error).__name__,
                "message": str(self.error),
            },
        }

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


Result = Ok[T] | Err[T]


__all__ = [
    "Result",
    "Ok",
    "Err",
]
