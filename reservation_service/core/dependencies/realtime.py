"""Realtime dependencies for FastAPI route handlers.

The lifespan stores the running ``RealtimeHub`` on ``app.state.realtime``;
these dependencies read it from there for both HTTP and WebSocket routes.

Usage:
    from reservation_service.core.dependencies.realtime import RealtimeHubDep

    @router.get("/ws/stats")
    async def stats(hub: RealtimeHubDep) -> dict:
        return hub.stats()
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends
from fastapi.requests import HTTPConnection

from reservation_service.core.exceptions import ServiceUnavailableException
from reservation_service.infra.realtime import RealtimeHub


def get_realtime_hub(connection: HTTPConnection) -> RealtimeHub | None:
    """Get the application's realtime hub.

    Returns:
        RealtimeHub | None: The hub, or None if the lifespan has not started it.
    """
    return getattr(connection.app.state, "realtime", None)


async def require_realtime_hub(
    hub: Annotated[RealtimeHub | None, Depends(get_realtime_hub)],
) -> RealtimeHub:
    """Dependency that requires the realtime hub to be running.

    Raises:
        ServiceUnavailableException: 503 if the hub is not available.
    """
    if hub is None:
        raise ServiceUnavailableException(
            detail="Realtime hub is not running",
            type="realtime-unavailable",
        )
    return hub


RealtimeHubDep = Annotated[RealtimeHub, Depends(require_realtime_hub)]
"""Realtime hub dependency that requires it to be available."""

OptionalRealtimeHub = Annotated[RealtimeHub | None, Depends(get_realtime_hub)]
"""Realtime hub dependency that is optional.

Example:
    @router.websocket("/ws")
    async def ws_endpoint(websocket: WebSocket, hub: OptionalRealtimeHub):
        if hub is None:
            await websocket.close(code=1013)
            return
        await hub.handle(websocket)
"""


__all__ = [
    "OptionalRealtimeHub",
    "RealtimeHubDep",
    "get_realtime_hub",
    "require_realtime_hub",
]
