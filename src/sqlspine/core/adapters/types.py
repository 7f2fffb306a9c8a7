"""Gateway lifecycle states."""

from __future__ import annotations

from enum import Enum


class GatewayState(str, Enum):
    """Connection lifecycle of a gateway.

    ::

        DISCONNECTED ──connect()──► CONNECTING ──ok──► READY
                                      ▲    │
                                      └────┘  retry after retry_delay
    """

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    READY = "ready"


__all__ = [
    "GatewayState",
]
