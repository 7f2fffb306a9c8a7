"""Gateway base class.

Manifesto:
    Every gateway shares the same lifecycle (connect/disconnect), the same
    statement logging and the same error wrapping.  The abstract base class
    owns those, so a concrete gateway only has to open connections and run
    one statement.

Features:
    - Abstract ``connect()``, ``disconnect()`` and ``_run()``
    - ``execute()`` connects lazily (once, even from several threads),
      times the statement and logs it at debug
    - Driver exceptions become ``QueryError`` / ``DatabaseConnectionError``
    - ``introspect_fields()`` returns ``[]`` for a missing table
    - Context-manager protocol for the connection lifecycle

Tags:
    gateway, database, abstract-base, adapter-pattern

Doc-Types:
    api-reference
"""

from __future__ import annotations

import threading
import time
from abc import ABC, abstractmethod
from typing import Any

from sqlspine.core.dialect import MYSQL, MySQLDialect
from sqlspine.core.errors import DatabaseConnectionError, QueryError, SqlSpineError
from sqlspine.core.logging import get_logger
from sqlspine.core.models.introspection import Field, IndexEntry
from sqlspine.core.protocols import ExecutionResult
from sqlspine.core.settings import MySQLSettings

from .types import GatewayState

logger = get_logger(__name__)


class BaseGateway(ABC):
    """
    Abstract base class for gateways.

    Satisfies :class:`~sqlspine.core.protocols.ConnectionGateway`.
    """

    def __init__(self, settings: MySQLSettings, dialect: MySQLDialect = MYSQL):
        self._settings = settings
        self._dialect = dialect
        self._state = GatewayState.DISCONNECTED
        self._connect_lock = threading.Lock()

    @property
    def settings(self) -> MySQLSettings:
        return self._settings

    @property
    def dialect(self) -> MySQLDialect:
        return self._dialect

    @property
    def state(self) -> GatewayState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is GatewayState.READY

    def _transition(self, state: GatewayState) -> None:
        if state is not self._state:
            logger.debug("gateway_state", previous=self._state.value, state=state.value)
            self._state = state

    @abstractmethod
    def connect(self) -> None:
        """Drive the gateway to READY (or leave it DISCONNECTED when silent)."""
        ...

    @abstractmethod
    def disconnect(self) -> None:
        ...

    @abstractmethod
    def _run(self, sql: str) -> ExecutionResult:
        """Run one statement on a live connection; may raise driver errors."""
        ...

    @abstractmethod
    def _wrap_error(self, error: Exception, sql: str) -> SqlSpineError | None:
        """Translate a driver exception, or return None if it is not one."""
        ...

    @abstractmethod
    def _is_missing_table(self, error: SqlSpineError) -> bool:
        ...

    def execute(self, sql: str) -> ExecutionResult:
        """Run ``sql``; connects first if needed."""
        if not self.is_ready:
            with self._connect_lock:
                if not self.is_ready:
                    self.connect()
        if not self.is_ready:
            raise DatabaseConnectionError("Gateway is not connected").with_context(statement=sql)

        started = time.perf_counter()
        try:
            result = self._run(sql)
        except Exception as e:
            wrapped = self._wrap_error(e, sql)
            if wrapped is None:
                raise
            logger.debug(
                "query_failed",
                sql=sql,
                duration_ms=round((time.perf_counter() - started) * 1000, 3),
                error=wrapped.message,
            )
            raise wrapped from e

        logger.debug(
            "query_executed",
            sql=sql,
            duration_ms=round((time.perf_counter() - started) * 1000, 3),
            rows=len(result.rows),
            affected_rows=result.affected_rows,
        )
        return result

    def escape(self, value: Any) -> str:
        return self._dialect.literal(value)

    def introspect_fields(self, table: str) -> list[Field]:
        try:
            result = self.execute(self._dialect.show_fields(table))
        except QueryError as e:
            if self._is_missing_table(e):
                return []
            raise
        return [Field.from_row(row) for row in result.rows]

    def introspect_indexes(self, table: str) -> list[IndexEntry]:
        try:
            result = self.execute(self._dialect.show_indexes(table))
        except QueryError as e:
            if self._is_missing_table(e):
                return []
            raise
        return [IndexEntry.from_row(row) for row in result.rows]

    def __enter__(self) -> BaseGateway:
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.disconnect()


__all__ = [
    "BaseGateway",
]
