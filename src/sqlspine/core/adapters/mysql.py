"""MySQL gateway.

Uses ``mysql.connector`` from the ``mysql-connector-python`` package,
either with a single connection or a ``MySQLConnectionPool``.

Connecting is a small state machine::

    DISCONNECTED ──► CONNECTING ──► READY
                       │   ▲
                       │   └── sleep(retry_delay), at most max_retries times
                       │
                       └── unknown database + create_database_on_error:
                           CREATE DATABASE ... then connect again

With ``silent_on_error`` a bootstrap failure is logged and the gateway stays
DISCONNECTED instead of raising; the next ``execute()`` tries again.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from typing import Any

import mysql.connector
from mysql.connector import errorcode, errors, pooling

from sqlspine.core.dialect import MYSQL, MySQLDialect
from sqlspine.core.errors import DatabaseConnectionError, QueryError, SqlSpineError
from sqlspine.core.logging import get_logger
from sqlspine.core.protocols import ExecutionResult
from sqlspine.core.settings import MySQLSettings

from .base import BaseGateway
from .types import GatewayState

logger = get_logger(__name__)

_CONNECTION_ERRORS = (errors.InterfaceError, errors.OperationalError, errors.PoolError)
_NOT_RETRYABLE = frozenset({errorcode.ER_ACCESS_DENIED_ERROR, errorcode.ER_DBACCESS_DENIED_ERROR})


class MySQLGateway(BaseGateway):
    """MySQL / MariaDB gateway with optional pooling and bootstrap retry."""

    def __init__(
        self,
        settings: MySQLSettings | None = None,
        dialect: MySQLDialect = MYSQL,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ):
        super().__init__(settings or MySQLSettings(), dialect)
        self._sleep = sleep
        self._pool: Any = None
        self._conn: Any = None
        self._conn_lock = threading.Lock()

    # -- connection parameters -------------------------------------------

    def _connect_params(self, *, with_database: bool = True) -> dict[str, Any]:
        s = self._settings
        params: dict[str, Any] = {
            "user": s.user,
            "password": s.password,
            "charset": s.charset,
            "collation": s.collation,
            "connection_timeout": s.connect_timeout,
            "autocommit": True,
        }
        if s.socket_path:
            params["unix_socket"] = s.socket_path
        else:
            params["host"] = s.host
            params["port"] = s.port
        if with_database and s.database:
            params["database"] = s.database
        if s.timezone and s.timezone != "local":
            params["time_zone"] = s.timezone
        return {k: v for k, v in params.items() if v is not None}

    # -- lifecycle -------------------------------------------------------

    def connect(self) -> None:
        """Connect, creating the database and retrying as configured."""
        if self.is_ready:
            return
        s = self._settings
        self._transition(GatewayState.CONNECTING)
        attempts = 0
        database_created = False

        while True:
            try:
                self._open()
            except mysql.connector.Error as e:
                failure = e
                if (
                    e.errno == errorcode.ER_BAD_DB_ERROR
                    and s.create_database_on_error
                    and not database_created
                ):
                    try:
                        self._create_database()
                    except mysql.connector.Error as create_error:
                        failure = create_error
                    else:
                        database_created = True
                        continue

                attempts += 1
                if s.retry_on_error and attempts <= s.max_retries and failure.errno not in _NOT_RETRYABLE:
                    logger.warning(
                        "connect_retry",
                        host=s.host,
                        database=s.database,
                        attempt=attempts,
                        delay_s=s.retry_delay,
                        error=str(failure),
                    )
                    self._sleep(s.retry_delay)
                    continue

                self._transition(GatewayState.DISCONNECTED)
                error = DatabaseConnectionError(f"Failed to connect to MySQL: {failure}", cause=failure)
                error.with_context(operation="connect", errno=failure.errno, attempts=attempts)
                if s.silent_on_error:
                    logger.error("connect_failed", **error.to_dict())
                    return
                raise error from failure

            self._transition(GatewayState.READY)
            logger.info("connected", host=s.host, database=s.database, pool=s.pool)
            return

    def _open(self) -> None:
        params = self._connect_params()
        if self._settings.pool:
            self._pool = pooling.MySQLConnectionPool(
                pool_name=f"sqlspine_{id(self)}",
                pool_size=self._settings.pool_size,
                **params,
            )
        else:
            self._conn = mysql.connector.connect(**params)

    def _create_database(self) -> None:
        s = self._settings
        sql = self._dialect.create_database(s.database, s.charset, s.collation)
        logger.info("create_database", database=s.database, charset=s.charset, collation=s.collation)
        conn = mysql.connector.connect(**self._connect_params(with_database=False))
        try:
            cursor = conn.cursor()
            cursor.execute(sql)
            cursor.close()
        finally:
            conn.close()

    def disconnect(self) -> None:
        """Close the connection; pooled connections are dropped with the pool."""
        if self._conn is not None:
            try:
                self._conn.close()
            except mysql.connector.Error as e:
                logger.debug("disconnect_error", error=str(e))
            self._conn = None
        self._pool = None
        self._transition(GatewayState.DISCONNECTED)

    # -- statements ------------------------------------------------------

    def _run(self, sql: str) -> ExecutionResult:
        if self._pool is not None:
            conn = self._pool.get_connection()
            try:
                return self._run_on(conn, sql)
            finally:
                # closing a pooled connection hands it back to the pool
                conn.close()

        # a single connection is not thread-safe: one statement at a time
        with self._conn_lock:
            if not self._conn.is_connected():
                self._conn.reconnect(attempts=1)
            return self._run_on(self._conn, sql)

    def _run_on(self, conn: Any, sql: str) -> ExecutionResult:
        cursor = conn.cursor(dictionary=True)
        try:
            cursor.execute(sql)
            rows = cursor.fetchall() if cursor.with_rows else []
            return ExecutionResult(
                rows=list(rows),
                affected_rows=max(cursor.rowcount, 0),
                last_insert_id=cursor.lastrowid or None,
            )
        finally:
            cursor.close()

    def _wrap_error(self, error: Exception, sql: str) -> SqlSpineError | None:
        if not isinstance(error, mysql.connector.Error):
            return None
        if isinstance(error, _CONNECTION_ERRORS):
            self._transition(GatewayState.DISCONNECTED)
            wrapped: SqlSpineError = DatabaseConnectionError(str(error), cause=error)
        else:
            wrapped = QueryError(str(error), cause=error)
        return wrapped.with_context(statement=sql, errno=error.errno)

    def _is_missing_table(self, error: SqlSpineError) -> bool:
        cause = error.cause
        return isinstance(cause, mysql.connector.Error) and cause.errno == errorcode.ER_NO_SUCH_TABLE


__all__ = [
    "MySQLGateway",
]
