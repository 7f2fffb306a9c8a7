"""MySQL connection and adapter settings.

Connection parameters, character set/collation defaults, pooling and the
bootstrap/retry policy of :class:`~sqlspine.core.adapters.mysql.MySQLGateway`
live in one validated settings object that reads ``SQLSPINE_MYSQL_*``
environment variables and ``.env`` files.

Manifesto:
    Configuration should be explicit, validated, and environment-driven.

    - **Pydantic validation:** Type-checked at startup, not at first query
    - **Environment-driven:** ``SQLSPINE_MYSQL_HOST=db`` just works
    - **Consistent charset:** the charset is always derived from the collation

Examples:
    >>> s = MySQLSettings(database="app", collation="latin1_swedish_ci")
    >>> s.charset
    'latin1'
    >>> MySQLSettings().collation
    'utf8mb4_general_ci'

Tags:
    settings, configuration, pydantic, environment, mysql
"""

from __future__ import annotations

from typing import Any

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_COLLATION = "utf8mb4_general_ci"
DEFAULT_CHARSET = "utf8mb4"


class MySQLSettings(BaseSettings):
    """Settings for a MySQL-backed schema.

    Fields
    ──────
    host / port / socket_path : where to connect (socket wins when set)
    user / password / database: credentials and default database
    charset / collation       : charset is the first ``_`` chunk of collation
    timezone                  : session time zone (``local`` leaves it alone)
    pool / pool_size          : use a connection pool
    retry_on_error            : reconnect after ``retry_delay`` seconds
    create_database_on_error  : ``CREATE DATABASE`` when the server reports it unknown
    silent_on_error           : report bootstrap failures instead of raising
    """

    model_config = SettingsConfigDict(
        env_prefix="SQLSPINE_MYSQL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Network ──────────────────────────────────────────────────
    host: str = "localhost"
    port: int = Field(default=3306, ge=1, le=65535)
    socket_path: str | None = None
    connect_timeout: int = Field(default=10, ge=1)

    # ── Credentials ──────────────────────────────────────────────
    user: str | None = None
    password: str | None = None
    database: str | None = None

    # ── Encoding ─────────────────────────────────────────────────
    charset: str | None = None
    collation: str | None = None
    timezone: str = "local"

    # ── Pooling ──────────────────────────────────────────────────
    pool: bool = False
    pool_size: int = Field(default=10, ge=1, le=32)

    # ── Bootstrap / retry ────────────────────────────────────────
    retry_on_error: bool = True
    retry_delay: float = Field(default=6.0, ge=0)
    max_retries: int = Field(default=5, ge=0)
    create_database_on_error: bool = True
    silent_on_error: bool = False

    @model_validator(mode="before")
    @classmethod
    def _accept_username(cls, data: Any) -> Any:
        """``username`` is accepted as an alias of ``user``."""
        if isinstance(data, dict) and "username" in data and "user" not in data:
            data = {k: v for k, v in data.items() if k != "username"} | {"user": data["username"]}
        return data

    @model_validator(mode="after")
    def _derive_charset(self) -> MySQLSettings:
        """Charset is always the first chunk of the collation."""
        if self.collation:
            charset = self.collation.split("_", 1)[0]
        else:
            charset = DEFAULT_CHARSET
            object.__setattr__(self, "collation", DEFAULT_COLLATION)
        object.__setattr__(self, "charset", charset)
        return self


__all__ = [
    "MySQLSettings",
    "DEFAULT_CHARSET",
    "DEFAULT_COLLATION",
]
