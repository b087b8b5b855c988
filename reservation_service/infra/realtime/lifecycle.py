"""Connection lifecycle: origin check, upgrade, register, dispatch, deregister.

    connecting --origin ok, accept--> established --peer gone--> closed
        |
        +--origin rejected--> closed before accept (HTTP 403), never registered
"""

from __future__ import annotations

from collections.abc import Collection
import logging
from typing import TYPE_CHECKING

from reservation_service.infra.logging.context import log_context
from reservation_service.infra.metrics.prometheus import realtime_connection_duration_seconds
from reservation_service.infra.realtime.registry import RealtimeConnection

if TYPE_CHECKING:
    from fastapi import WebSocket

    from reservation_service.infra.realtime.dispatcher import InboundDispatcher
    from reservation_service.infra.realtime.registry import ConnectionRegistry

logger = logging.getLogger(__name__)

# RFC 6455 policy violation
POLICY_VIOLATION = 1008


def origin_allowed(origin: str | None, allowed_origins: Collection[str]) -> bool:
    """Return True if the declared ``Origin`` is on the allow-list.

    A missing or empty origin is never allowed.
    """
    if not origin or not origin.strip():
        return False
    return origin.strip() in allowed_origins


async def serve_connection(
    websocket: WebSocket,
    *,
    registry: ConnectionRegistry,
    dispatcher: InboundDispatcher,
    allowed_origins: Collection[str],
) -> RealtimeConnection | None:
    """Run one client connection from upgrade request to close.

    Returns:
        The connection once it has closed, or None if the upgrade was rejected.
    """
    conn = RealtimeConnection.from_websocket(websocket)

    if not origin_allowed(conn.origin, allowed_origins):
        logger.warning(
            "WebSocket upgrade rejected: origin not allowed",
            extra={"origin": conn.origin, "client": conn.client},
        )
        # Closing before accept makes the server answer the handshake with 403
        await websocket.close(code=POLICY_VIOLATION)
        return None

    # A failed handshake propagates from here with nothing registered
    await websocket.accept()

    with log_context(connection_id=conn.connection_id, origin=conn.origin):
        try:
            await registry.add(conn)
            logger.info(
                "WebSocket connected",
                extra={"client": conn.client, "total_connections": len(registry)},
            )
            await dispatcher.run(conn)
        finally:
            await registry.remove(conn)
            await conn.close()
            duration = conn.age_seconds
            realtime_connection_duration_seconds.observe(duration)
            logger.info(
                "WebSocket disconnected",
                extra={
                    "duration_seconds": round(duration, 3),
                    "total_connections": len(registry),
                },
            )

    return conn
