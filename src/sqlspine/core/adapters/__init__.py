"""Gateways: the only code in sqlspine that talks to a database server.

Manifesto:
    The compiler, codec and differ produce SQL text and nothing else.
    Running it, pooling connections, retrying a flaky server and creating a
    missing database all belong here, behind the small
    :class:`~sqlspine.core.protocols.ConnectionGateway` contract.

Architecture::

    ConnectionGateway (protocols.py)   execute / escape / introspect_*
        |-- BaseGateway (base.py)      lifecycle, logging, error wrapping
            |-- MySQLGateway           mysql.connector, optional pool

    GatewayState (types.py)            DISCONNECTED → CONNECTING → READY

Modules
-------
base            Abstract BaseGateway
types           GatewayState enum
mysql           MySQL / MariaDB gateway (mysql-connector-python)

Guardrails:
    ❌ ``cursor.execute("SELECT * FROM t WHERE id=" + user_input)``
    ✅ ``gateway.execute(compile_select(model, {"where": {"id": user_input}}))``

Tags:
    gateway, database, adapters, mysql, pooling, retry

Doc-Types:
    package-overview, architecture-map, module-index
"""

from sqlspine.core.protocols import ConnectionGateway, ExecutionResult

from .base import BaseGateway
from .mysql import MySQLGateway
from .types import GatewayState

__all__ = [
    # Protocols
    "ConnectionGateway",
    "ExecutionResult",
    # Base class
    "BaseGateway",
    # Implementations
    "MySQLGateway",
    # Types
    "GatewayState",
]
