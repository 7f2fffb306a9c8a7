"""Tests for sqlspine.core.errors module."""

import pytest

from sqlspine.core.errors import (
    BatchItemError,
    BulkUpdateError,
    ConfigError,
    DatabaseConnectionError,
    ErrorCategory,
    ErrorContext,
    InvalidFilterError,
    QueryError,
    SqlSpineError,
    TypeConversionFailure,
    ValueConversionError,
)


class TestErrorContext:
    """Test ErrorContext dataclass."""

    def test_create_empty_context(self):
        ctx = ErrorContext()
        assert ctx.model is None
        assert ctx.metadata == {}

    def test_to_dict_includes_set_fields(self):
        ctx = ErrorContext(model="person", index=0, metadata={"errno": 1064})
        assert ctx.to_dict() == {"model": "person", "index": 0, "errno": 1064}

    def test_field_attribute_with_separate_metadata(self):
        first = ErrorContext(field="email")
        second = ErrorContext(field="name")
        first.metadata["errno"] = 1062
        assert first.to_dict() == {"field": "email", "errno": 1062}
        assert second.metadata == {}

    def test_package_imports(self):
        import sqlspine

        assert sqlspine.ErrorContext(field="x").field == "x"


class TestSqlSpineError:
    """Test SqlSpineError base class."""

    def test_create_minimal_error(self):
        err = SqlSpineError("Something failed")
        assert err.message == "Something failed"
        assert err.category == ErrorCategory.INTERNAL
        assert err.retryable is False
        assert str(err) == "Something failed"

    def test_with_context_is_fluent(self):
        err = QueryError("bad").with_context(table="person", statement="SELEC", errno=1064)
        assert err.context.table == "person"
        assert err.context.statement == "SELEC"
        assert err.context.metadata == {"errno": 1064}

    def test_cause_is_chained(self):
        cause = RuntimeError("driver")
        err = QueryError("wrapped", cause=cause)
        assert err.__cause__ is cause
        assert err.to_dict()["cause"] == "driver"

    def test_to_dict(self):
        err = InvalidFilterError("Where field is empty").with_context(model="person")
        assert err.to_dict() == {
            "error_type": "InvalidFilterError",
            "message": "Where field is empty",
            "category": "VALIDATION",
            "retryable": False,
            "context": {"model": "person"},
        }

    def test_repr(self):
        assert repr(ConfigError("x")) == "ConfigError('x', category=CONFIG)"


class TestHierarchy:
    @pytest.mark.parametrize(
        "cls, category, retryable",
        [
            (InvalidFilterError, ErrorCategory.VALIDATION, False),
            (ValueConversionError, ErrorCategory.VALIDATION, False),
            (TypeConversionFailure, ErrorCategory.VALIDATION, False),
            (ConfigError, ErrorCategory.CONFIG, False),
            (QueryError, ErrorCategory.DATABASE, False),
            (DatabaseConnectionError, ErrorCategory.DATABASE, True),
        ],
    )
    def test_defaults(self, cls, category, retryable):
        err = cls("x")
        assert err.category is category
        assert err.retryable is retryable

    def test_retryable_override(self):
        assert QueryError("deadlock", retryable=True).retryable is True


class TestBatchErrors:
    def test_batch_item_error_records_index(self):
        err = BatchItemError("missing", index=2)
        assert err.index == 2
        assert err.context.index == 2

    def test_bulk_update_error(self):
        err = BulkUpdateError([None, BatchItemError("missing", index=1), ValueError("plain")], [1, None, None])
        assert err.message == "2 of 3 updates failed"
        assert err.messages == [None, "missing", "plain"]
        assert err.to_dict()["errors"] == [None, "missing", "plain"]
        assert err.results == [1, None, None]
