"""sqlspine Core -- MySQL adapter primitives for an ORM layer.

Manifesto:
    An ORM talks to MySQL through three translations: property values to
    column literals (and back), filter objects to SELECT/UPDATE/DELETE text,
    and declared models to the DDL that makes a live table match them.
    Each translation is pure and testable on its own; only the gateway
    touches a socket.

    - **Pure compilers:** codec, compiler and differ never perform I/O
    - **Protocol-first:** repository code depends on ``ConnectionGateway``
    - **Structured failures:** every error is a ``SqlSpineError`` subclass

Architecture::

    Layer 1 -- Type System & Errors
        errors.py          Structured error hierarchy (SqlSpineError, ...)
        result.py          Result[T] envelope (Ok / Err)
        protocols.py       ConnectionGateway protocol + ExecutionResult

    Layer 2 -- Models
        models/            PropertyDef, ModelSchema, Filter, introspection rows

    Layer 3 -- Translation
        dialect.py         MySQL quoting and escaping
        conditions.py      Where-tree parsing into tagged conditions
        codec.py           ValueCodec (to/from column values, column types)
        compiler.py        FilterCompiler functions (SELECT/INSERT/UPDATE/...)
        differ.py          SchemaDiffer (CREATE / ALTER planning)

    Layer 4 -- Runtime
        adapters/          MySQLGateway over mysql-connector-python
        repository.py      ModelAdapter tying compiler, codec and gateway
        settings.py        MySQLSettings (SQLSPINE_MYSQL_* env vars)
        logging.py         Structured logging (structlog)

Tags:
    sqlspine, mysql, orm-adapter, sql-compiler, schema-migration

Doc-Types:
    package-overview, architecture-map, module-index
"""

import sqlspine.core.models as models  # noqa: F401
from sqlspine.core.adapters import (
    BaseGateway,
    GatewayState,
    MySQLGateway,
)
from sqlspine.core.codec import CODEC, NULL, ValueCodec, format_datetime
from sqlspine.core.compiler import (
    MISSING_WHERE_OR_UPDATE,
    compile_bulk_update,
    compile_count,
    compile_delete,
    compile_insert,
    compile_select,
    compile_update,
    compile_upsert,
    compile_where,
)
from sqlspine.core.conditions import Condition, parse_condition, parse_tree
from sqlspine.core.dialect import MYSQL, MySQLDialect
from sqlspine.core.differ import (
    ColumnMismatch,
    MigrationPlan,
    alter_statements,
    create_table_sql,
    diff,
)
from sqlspine.core.errors import (
    BatchItemError,
    BulkUpdateError,
    ConfigError,
    DatabaseConnectionError,
    DatabaseError,
    ErrorCategory,
    ErrorContext,
    InvalidFilterError,
    QueryError,
    SqlSpineError,
    TransientError,
    TypeConversionFailure,
    ValidationError,
    ValueConversionError,
)
from sqlspine.core.logging import configure_logging, get_logger
from sqlspine.core.models import (
    Field,
    Filter,
    IdMode,
    IndexDef,
    IndexEntry,
    IntrospectedTable,
    ModelSchema,
    Point,
    PropertyDef,
    PropertyType,
)
from sqlspine.core.protocols import ConnectionGateway, ExecutionResult
from sqlspine.core.repository import ModelAdapter, migrate_models
from sqlspine.core.result import Err, Ok, Result
from sqlspine.core.settings import MySQLSettings

__all__ = [
    # Errors
    "SqlSpineError",
    "ErrorCategory",
    "ErrorContext",
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
    # Result
    "Result",
    "Ok",
    "Err",
    # Protocols
    "ConnectionGateway",
    "ExecutionResult",
    # Models
    "PropertyType",
    "PropertyDef",
    "IndexDef",
    "IdMode",
    "Point",
    "ModelSchema",
    "Filter",
    "Field",
    "IndexEntry",
    "IntrospectedTable",
    # Translation
    "MySQLDialect",
    "MYSQL",
    "Condition",
    "parse_tree",
    "parse_condition",
    "ValueCodec",
    "CODEC",
    "NULL",
    "format_datetime",
    "MISSING_WHERE_OR_UPDATE",
    "compile_where",
    "compile_select",
    "compile_count",
    "compile_insert",
    "compile_upsert",
    "compile_update",
    "compile_bulk_update",
    "compile_delete",
    "ColumnMismatch",
    "MigrationPlan",
    "create_table_sql",
    "alter_statements",
    "diff",
    # Runtime
    "BaseGateway",
    "GatewayState",
    "MySQLGateway",
    "ModelAdapter",
    "migrate_models",
    "MySQLSettings",
    "configure_logging",
    "get_logger",
]
