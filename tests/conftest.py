"""
Shared pytest fixtures for sqlspine tests.

This module provides:
- RecordingGateway, an in-memory ConnectionGateway that records SQL
- Sample model schemas used across compiler, codec and differ tests
- A helper for building introspected tables from SHOW output rows

Usage:
    def test_find(person, gateway):
        gateway.queue(ExecutionResult(rows=[{"id": 1}]))
        ModelAdapter(gateway, person).find({"where": {"id": 1}})
        assert gateway.statements == ["SELECT * FROM `person` WHERE `id` = 1"]
"""

from __future__ import annotations

import sys
from collections import deque
from pathlib import Path
from typing import Any

import pytest

# Ensure sqlspine package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sqlspine.core.errors import QueryError
from sqlspine.core.models import Field, IndexEntry, IntrospectedTable, ModelSchema
from sqlspine.core.protocols import ExecutionResult


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark everything without an explicit marker as a unit test."""
    for item in items:
        if not any(True for _ in item.iter_markers()):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Recording gateway
# =============================================================================


class RecordingGateway:
    """ConnectionGateway that records statements and replays queued results.

    ``fail_on`` maps a SQL substring to the error raised when a statement
    containing it is executed.
    """

    def __init__(
        self,
        fields: dict[str, list[Field]] | None = None,
        indexes: dict[str, list[IndexEntry]] | None = None,
    ):
        self.statements: list[str] = []
        self.fields = fields or {}
        self.indexes = indexes or {}
        self.fail_on: dict[str, Exception] = {}
        self._results: deque[ExecutionResult] = deque()
        self.entered = False
        self.exited = False

    def queue(self, *results: ExecutionResult) -> None:
        self._results.extend(results)

    def execute(self, sql: str) -> ExecutionResult:
        self.statements.append(sql)
        for fragment, error in self.fail_on.items():
            if fragment in sql:
                raise error
        if self._results:
            return self._results.popleft()
        return ExecutionResult(affected_rows=1)

    def escape(self, value: Any) -> str:
        from sqlspine.core.dialect import MYSQL

        return MYSQL.literal(value)

    def introspect_fields(self, table: str) -> list[Field]:
        return list(self.fields.get(table, []))

    def introspect_indexes(self, table: str) -> list[IndexEntry]:
        return list(self.indexes.get(table, []))

    def __enter__(self) -> RecordingGateway:
        self.entered = True
        return self

    def __exit__(self, *args) -> None:
        self.exited = True


@pytest.fixture
def gateway() -> RecordingGateway:
    return RecordingGateway()


@pytest.fixture
def query_error() -> QueryError:
    return QueryError("Duplicate entry 'x' for key 'email'")


# =============================================================================
# Sample models
# =============================================================================


@pytest.fixture
def person() -> ModelSchema:
    """Auto-increment id with a handful of scalar columns."""
    return ModelSchema.from_dict(
        {
            "name": "person",
            "properties": {
                "name": "string",
                "age": "number",
                "active": "boolean",
                "born": "date",
            },
        }
    )


@pytest.fixture
def document() -> ModelSchema:
    """Opaque v4 ids plus JSON, array and point columns."""
    return ModelSchema.from_dict(
        {
            "name": "document",
            "table": "documents",
            "id_mode": "v4",
            "properties": {
                "title": {"type": "string", "nullable": False, "index": True},
                "meta": "json",
                "tags": ["string"],
                "location": "point",
                "status": {"type": "enum", "values": ["draft", "published"]},
            },
        }
    )


@pytest.fixture
def account() -> ModelSchema:
    """Model with single and multi-column indexes and an engine."""
    return ModelSchema.from_dict(
        {
            "name": "account",
            "engine": "InnoDB",
            "properties": {
                "email": {"type": "string", "nullable": False, "index": {"unique": True}},
                "first": {"type": "string", "length": 64},
                "last": {"type": "string", "length": 64},
                "balance": {"type": "number", "data_type": "decimal", "precision": 12, "scale": 2},
            },
            "indexes": {
                "full_name": {"columns": ["first", "last"]},
            },
        }
    )


# =============================================================================
# Introspection helpers
# =============================================================================


def live_table(fields: list[tuple[str, str, bool]], indexes: list[tuple[str, str, int]] = ()) -> IntrospectedTable:
    """Build an IntrospectedTable from ``(name, type, nullable)`` and ``(index, column, seq)`` tuples."""
    return IntrospectedTable(
        [Field(name, raw_type, nullable) for name, raw_type, nullable in fields],
        [IndexEntry(index, column, seq) for index, column, seq in indexes],
    )


@pytest.fixture
def make_table():
    return live_table
