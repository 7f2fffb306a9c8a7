"""
Structured logging for sqlspine.

Every statement the gateway runs, every migration plan and every recovered
decode failure is logged as a structlog event with key/value fields, so a
slow query or an unexpected ``ALTER TABLE`` can be traced back to the model
and filter that produced it.

Event names used across the package:

    query_executed / query_failed      gateway; sql, duration_ms, rows
    connected / connect_retry          gateway; host, database, attempt
    connect_failed / create_database   gateway bootstrap
    migration_checked / _applied       repository; table, create, statements
    bulk_update_failed                repository; failed, total
    column_decode_failed              codec; field

Architecture:
    ::

        configure_logging(level="INFO", json_format=True, service="sqlspine")
            │
            ▼
        structlog processor chain:
          1. TimeStamper (iso)
          2. merge_contextvars      ← bind_context(model="person")
          3. add_log_level / add_logger_name
          4. _add_service_metadata
          5. _sql_truncator          ← caps sql= / statement= at max_sql_length
          6. _elasticsearch_compatible (JSON only)
          7. JSONRenderer | ConsoleRenderer

Examples:
    >>> from sqlspine.core.logging import configure_logging, get_logger
    >>> configure_logging(level="DEBUG", json_format=False)
    >>> logger = get_logger(__name__)
    >>> logger.debug("query_executed", sql="SELECT 1", duration_ms=0.4)

Tags:
    logging, structlog, observability, sqlspine

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

_SERVICE_NAME = "sqlspine"


def _add_service_metadata(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add service-level metadata to all logs."""
    event_dict.setdefault("service.name", _SERVICE_NAME)
    return event_dict


_SQL_KEYS = ("sql", "statement")


def _sql_truncator(max_length: int) -> Processor:
    """Shorten ``sql`` / ``statement`` fields longer than ``max_length``.

    Generated DDL for a wide table or a long ``IN (...)`` list can run to
    many kilobytes.
    """

    def truncate(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        for key in _SQL_KEYS:
            text = event_dict.get(key)
            if isinstance(text, str) and len(text) > max_length:
                event_dict[key] = f"{text[:max_length]}... ({len(text)} chars)"
        return event_dict

    return truncate


def _elasticsearch_compatible(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Make field names Elasticsearch/ECS compatible."""
    if "timestamp" in event_dict:
        event_dict["@timestamp"] = event_dict.pop("timestamp")
    if "level" in event_dict:
        event_dict["log.level"] = event_dict.pop("level")
    return event_dict


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "sqlspine",
    add_timestamp: bool = True,
    max_sql_length: int | None = 2000,
) -> None:
    """Configure structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: True for JSON, False for console, None for auto (JSON if not tty)
        service: Service name to include in logs
        add_timestamp: Include ISO timestamp in logs
        max_sql_length: Longest SQL text logged in full; None keeps every statement whole
    """
    global _SERVICE_NAME
    _SERVICE_NAME = service

    if json_format is None:
        json_format = not sys.stdout.isatty()

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _add_service_metadata,
    ]

    if max_sql_length is not None:
        shared_processors.append(_sql_truncator(max_sql_length))

    if add_timestamp:
        shared_processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))

    if json_format:
        shared_processors.append(_elasticsearch_compatible)
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper()),
    )


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger (usually ``get_logger(__name__)``)."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind context to include in all subsequent logs."""
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    """Remove specific keys from logging context."""
    structlog.contextvars.unbind_contextvars(*keys)


class LogContext:
    """Context manager for scoped logging context.

    Example:
        with LogContext(model="person", operation="migrate"):
            logger.info("plan_computed")
    """

    def __init__(self, **kwargs: Any):
        self._context = kwargs

    def __enter__(self) -> LogContext:
        bind_context(**self._context)
        return self

    def __exit__(self, *args) -> None:
        unbind_context(*self._context.keys())


__all__ = [
    "configure_logging",
    "get_logger",
    "bind_context",
    "unbind_context",
    "LogContext",
]
