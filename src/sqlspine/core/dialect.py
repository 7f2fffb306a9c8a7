"""MySQL SQL dialect: identifier quoting, literal escaping, DDL fragments.

Every piece of user data that ends up inside generated SQL text passes
through :meth:`MySQLDialect.quote_string`, which delegates the escaping to
``mysql.connector.conversion.MySQLConverter``.  The compiler and the
differ never concatenate raw values.

Manifesto:
    Filters are compiled to SQL *text*, not parameterised statements, so
    the escaper is the only thing standing between a user value and an
    injection.  It must therefore be the driver's own, not a lookalike.

    - **One escaper:** every literal goes through quote_string()
    - **Quoted identifiers:** backticks, with embedded backticks doubled
    - **Dotted names:** ``a.b`` becomes ```a`.`b```

Examples:
    >>> d = MySQLDialect()
    >>> d.quote_name("person")
    '`person`'
    >>> d.quote_string("O'Brien")
    "'O\\\\'Brien'"
    >>> d.literal(None)
    'NULL'

Guardrails:
    ❌ DON'T: f"WHERE name = '{value}'"
    ✅ DO: f"WHERE name = {dialect.quote_string(value)}"

Tags:
    dialect, sql, mysql, escaping, injection-safety

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from mysql.connector.conversion import MySQLConverter


class MySQLDialect:
    """MySQL dialect — backtick identifiers, backslash-escaped literals."""

    PRIMARY_INDEX = "PRIMARY"

    def __init__(self) -> None:
        self._converter = MySQLConverter()

    @property
    def name(self) -> str:
        return "mysql"

    # -- Identifiers -------------------------------------------------------

    def quote_identifier(self, name: str) -> str:
        """Quote one identifier segment."""
        return "`" + str(name).replace("`", "``") + "`"

    def quote_name(self, name: str) -> str:
        """Quote a possibly dotted name segment by segment."""
        return ".".join(self.quote_identifier(part) for part in str(name).split("."))

    # -- Literals ----------------------------------------------------------

    def escape(self, value: str) -> str:
        """Escape special characters the way the server expects them."""
        escaped = self._converter.escape(value)
        if isinstance(escaped, (bytes, bytearray)):
            return escaped.decode("utf-8")
        return escaped

    def quote_string(self, value: Any) -> str:
        """Render ``value`` as a single-quoted, escaped string literal."""
        return "'" + self.escape(str(value)) + "'"

    def literal(self, value: Any) -> str:
        """Render an untyped Python value as a SQL literal."""
        if value is None:
            return "NULL"
        if isinstance(value, bool):
            return "1" if value else "0"
        if isinstance(value, (int, float, Decimal)):
            return str(value)
        return self.quote_string(value)

    # -- DDL / introspection ----------------------------------------------

    def auto_increment(self) -> str:
        return "INT(11) NOT NULL AUTO_INCREMENT"

    def show_fields(self, table: str) -> str:
        return f"SHOW FIELDS FROM {self.quote_name(table)}"

    def show_indexes(self, table: str) -> str:
        return f"SHOW INDEXES FROM {self.quote_name(table)}"

    def create_database(self, database: str, charset: str, collation: str) -> str:
        return (
            f"CREATE DATABASE {self.quote_identifier(database)} "
            f"CHARACTER SET {charset} COLLATE {collation}"
        )


MYSQL = MySQLDialect()


__all__ = [
    "MySQLDialect",
    "MYSQL",
]
