"""
Protocol definitions for sqlspine.

The compiler, codec and differ never talk to a driver.  Everything they need
from the outside world is the :class:`ConnectionGateway` shape below:
execute SQL text, escape a value, and read a table's columns and indexes.

Manifesto:
    Protocols define contracts without inheritance.

    - **Decoupling:** ModelAdapter depends on shape, not on mysql.connector
    - **Testability:** a recording fake satisfies the protocol in tests
    - **Single source:** import the gateway contract from here, nowhere else

Architecture:
    ::

        ConnectionGateway Protocol:
        ┌──────────────────────────────────────────────────────────────┐
        │ execute(sql)              → ExecutionResult                  │
        │ escape(value)             → quoted literal text              │
        │ introspect_fields(table)  → list[Field]   ([] if no table)   │
        │ introspect_indexes(table) → list[IndexEntry]                 │
        └──────────────────────────────────────────────────────────────┘

        Implementations:
        ┌──────────────────────────────────────────────────────────────┐
        │ MySQLGateway      → mysql.connector (pooled or single conn)  │
        │ RecordingGateway  → tests/conftest.py                        │
        └──────────────────────────────────────────────────────────────┘

Tags:
    protocol, gateway, database, contracts, sqlspine

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from sqlspine.core.models.introspection import Field, IndexEntry


@dataclass(frozen=True, slots=True)
class ExecutionResult:
    """Outcome of one statement.

    ``rows`` is filled for queries (each row a column → value mapping);
    ``affected_rows`` and ``last_insert_id`` for data-changing statements.
    """

    rows: list[dict[str, Any]] = field(default_factory=list)
    affected_rows: int = 0
    last_insert_id: Any = None


@runtime_checkable
class ConnectionGateway(Protocol):
    """Minimal contract the model layer needs from a database."""

    def execute(self, sql: str) -> ExecutionResult:
        """Run one statement. Driver failures raise QueryError."""
        ...

    def escape(self, value: Any) -> str:
        """Render ``value`` as a safely quoted literal."""
        ...

    def introspect_fields(self, table: str) -> list[Field]:
        """Columns of ``table`` in ordinal order, ``[]`` when it does not exist."""
        ...

    def introspect_indexes(self, table: str) -> list[IndexEntry]:
        """Flat index entries of ``table``, one per (index, column)."""
        ...


__all__ = [
    "ExecutionResult",
    "ConnectionGateway",
]
