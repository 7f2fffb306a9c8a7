"""Tests for structured logging helpers."""

import pytest
import structlog

from sqlspine.core.logging import (
    LogContext,
    _add_service_metadata,
    _elasticsearch_compatible,
    _sql_truncator,
    bind_context,
    configure_logging,
    unbind_context,
)


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


class TestContext:
    def test_log_context_binds_and_unbinds(self):
        with LogContext(model="person", operation="find"):
            assert structlog.contextvars.get_contextvars() == {"model": "person", "operation": "find"}
        assert structlog.contextvars.get_contextvars() == {}

    def test_bind_and_unbind(self):
        bind_context(table="person")
        assert structlog.contextvars.get_contextvars()["table"] == "person"
        unbind_context("table")
        assert "table" not in structlog.contextvars.get_contextvars()


class TestConfigureLogging:
    def test_json_chain(self):
        configure_logging(level="INFO", json_format=True, service="sqlspine-test", add_timestamp=False)
        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)
        assert _elasticsearch_compatible in processors
        assert not any(isinstance(p, structlog.processors.TimeStamper) for p in processors)

    def test_console_chain_with_timestamp(self):
        configure_logging(level="DEBUG", json_format=False)
        processors = structlog.get_config()["processors"]
        assert isinstance(processors[0], structlog.processors.TimeStamper)
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)
        assert _elasticsearch_compatible not in processors

    def test_service_metadata(self):
        configure_logging(json_format=True, service="sqlspine-test")
        assert _add_service_metadata(None, "info", {})["service.name"] == "sqlspine-test"

    def test_ecs_field_names(self):
        event = _elasticsearch_compatible(None, "info", {"timestamp": "t", "level": "info", "event": "e"})
        assert event == {"@timestamp": "t", "log.level": "info", "event": "e"}

    def test_unknown_level(self):
        with pytest.raises(AttributeError):
            configure_logging(level="LOUD")


class TestSqlTruncation:
    def test_long_sql_is_shortened(self):
        event = _sql_truncator(10)(None, "debug", {"event": "query_executed", "sql": "x" * 25})
        assert event["sql"] == "xxxxxxxxxx... (25 chars)"
        assert event["event"] == "query_executed"

    def test_statement_key(self):
        event = _sql_truncator(5)(None, "error", {"statement": "ALTER TABLE `person` ADD `a` INT"})
        assert event["statement"] == "ALTER... (32 chars)"

    def test_short_and_non_string_values_untouched(self):
        event = {"sql": "SELECT 1", "statement": None, "rows": 3}
        assert _sql_truncator(10)(None, "debug", dict(event)) == event

    def test_default_chain_truncates_before_rendering(self):
        configure_logging(json_format=True, add_timestamp=False)
        processors = structlog.get_config()["processors"]
        names = [getattr(p, "__name__", None) for p in processors]
        assert "truncate" in names
        assert names.index("truncate") < processors.index(_elasticsearch_compatible)

    def test_disabled(self):
        configure_logging(json_format=True, add_timestamp=False, max_sql_length=None)
        names = [getattr(p, "__name__", None) for p in structlog.get_config()["processors"]]
        assert "truncate" not in names
