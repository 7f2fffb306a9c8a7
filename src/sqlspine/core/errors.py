"""
Structured error types for sqlspine.

Every failure the adapter can report carries a category, a retryable flag,
structured context (model, table, statement) and an optional chained cause,
so callers can decide whether to retry, surface or log it.

Manifesto:
    - **Typed hierarchy:** compile-time, conversion and execution failures
      are different classes, not different strings
    - **Fail fast at compile time:** malformed filters raise synchronously
      instead of producing ambiguous SQL
    - **Explicit retry semantics:** only connection-level errors are retryable
    - **Chaining:** driver exceptions are preserved as ``cause``

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                        SqlSpineError                             │
        │  (category, retryable, retry_after, context, cause)             │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │  ValidationError        DatabaseError        ConfigError         │
        │  (VALIDATION)           (DATABASE)           (CONFIG)            │
        │       │                      │                                   │
        │  InvalidFilterError     QueryError           TransientError      │
        │  ValueConversionError   BatchItemError       (retryable=True)    │
        │  TypeConversionFailure  BulkUpdateError           │              │
        │                                              DatabaseConnection  │
        │                                              Error               │
        └─────────────────────────────────────────────────────────────────┘

Examples:
    >>> err = InvalidFilterError("Where field is empty").with_context(model="person")
    >>> err.context.model
    'person'
    >>> err.retryable
    False

Guardrails:
    ❌ DON'T: Raise bare ValueError from the compiler
    ✅ DO: Raise InvalidFilterError so callers can tell filter bugs apart

    ❌ DON'T: Swallow driver exceptions
    ✅ DO: Wrap them in QueryError(cause=exc)

Tags:
    error-handling, exception-hierarchy, sqlspine, mysql, validation

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field as dc_field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """
    Standard error categories for classification and routing.

    Attributes:
        NETWORK: Connection, timeout, DNS errors
        DATABASE: Statement execution failures reported by the server
        VALIDATION: Malformed filters, unconvertible values
        CONFIG: Missing or invalid settings, unreadable model files
        INTERNAL: Bugs, unexpected state
        UNKNOWN: Uncategorized errors
    """

    NETWORK = "NETWORK"
    DATABASE = "DATABASE"
    VALIDATION = "VALIDATION"
    CONFIG = "CONFIG"
    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Attributes:
        model: Model name the operation ran against
        table: Physical table name
        operation: Adapter operation (``find``, ``update``, ``migrate``...)
        field: Property or column involved
        statement: SQL text that failed (execution errors only)
        index: Position inside a batch
        metadata: Additional key-value pairs
    """

    model: str | None = None
    table: str | None = None
    operation: str | None = None
    field: str | None = None
    statement: str | None = None
    index: int | None = None

    metadata: dict[str, Any] = dc_field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["model", "table", "operation", "field", "statement", "index"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class SqlSpineError(Exception):
    """
    Base exception for all sqlspine errors.

    Subclasses set ``default_category`` and ``default_retryable`` so that
    raising sites only pass a message and whatever context they have.

    Examples:
        >>> error = SqlSpineError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.to_dict()["retryable"]
        False
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        retry_after: int | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.retry_after = retry_after
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> SqlSpineError:
        """
        Add context to this error (fluent API).

        Usage:
            raise QueryError("Failed", cause=exc).with_context(
                table="person", statement=sql
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        if self.retry_after is not None:
            result["retry_after"] = self.retry_after
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# TRANSIENT ERRORS (Usually Retryable)
# =============================================================================


class TransientError(SqlSpineError):
    """Temporary error that may succeed on retry."""

    default_category = ErrorCategory.NETWORK
    default_retryable = True


class DatabaseConnectionError(TransientError):
    """Could not reach the server or obtain a pooled connection."""

    default_category = ErrorCategory.DATABASE


# =============================================================================
# VALIDATION ERRORS (Never Retryable)
# =============================================================================


class ValidationError(SqlSpineError):
    """Input rejected before any SQL reached the server."""

    default_category = ErrorCategory.VALIDATION
    default_retryable = False


class InvalidFilterError(ValidationError):
    """
    Malformed filter or condition tree.

    Raised for an explicitly empty WHERE on a select, operator objects with
    zero or several keys, unknown operator names, a ``between`` operand that
    is not a pair, and unparseable order/group/limit entries.
    """


class ValueConversionError(ValidationError):
    """A model value cannot be coerced to its declared column type."""


class TypeConversionFailure(ValidationError):
    """
    A stored value could not be decoded on read.

    Never raised: the codec records it in the log and hands back ``None``
    for the offending field.
    """


# =============================================================================
# CONFIG ERRORS
# =============================================================================


class ConfigError(SqlSpineError):
    """Configuration or model-definition error."""

    default_category = ErrorCategory.CONFIG
    default_retryable = False


# =============================================================================
# DATABASE ERRORS
# =============================================================================


class DatabaseError(SqlSpineError):
    """Database query or schema error."""

    default_category = ErrorCategory.DATABASE
    default_retryable = False


class QueryError(DatabaseError):
    """The server rejected a statement."""


class BatchItemError(DatabaseError):
    """One entry of a bulk update failed; siblings are unaffected."""

    def __init__(self, message: str, *, index: int, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.index = index
        self.context.index = index


class BulkUpdateError(DatabaseError):
    """
    At least one entry of a bulk update failed.

    ``errors`` and ``results`` are parallel to the submitted specs: slot ``i``
    holds either the failure for entry ``i`` (``results[i]`` is ``None``) or
    its execution info (``errors[i]`` is ``None``).
    """

    def __init__(self, errors: list[Any], results: list[Any], **kwargs: Any):
        failed = sum(1 for e in errors if e is not None)
        super().__init__(f"{failed} of {len(errors)} updates failed", **kwargs)
        self.errors = errors
        self.results = results

    @property
    def messages(self) -> list[str | None]:
        """Per-entry error messages, ``None`` where the entry succeeded."""
        return [None if e is None else getattr(e, "message", str(e)) for e in self.errors]

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["errors"] = self.messages
        return result


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "SqlSpineError",
    "TransientError",
    "DatabaseConnectionError",
    "ValidationError",
    "InvalidFilterError",
    "ValueConversionError",
    "TypeConversionFailure",
    "ConfigError",
    "DatabaseError",
    "QueryError",
    "BatchItemError",
    "BulkUpdateError",
]
