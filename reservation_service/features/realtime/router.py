"""WebSocket router for realtime notifications.

Endpoints:
- GET /ws: WebSocket connection endpoint
- GET /ws/stats: Connection statistics
- POST /ws/publish: Publish an event through the broker
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, WebSocket, status

from reservation_service.core.dependencies.realtime import OptionalRealtimeHub, RealtimeHubDep
from reservation_service.core.exceptions import (
    BadRequestException,
    BrokerError,
    DecodeError,
    ServiceUnavailableException,
)
from reservation_service.features.realtime.schemas import (
    ConnectionStats,
    PublishRequest,
    PublishResponse,
)
from reservation_service.infra.realtime.dispatcher import decode_client_frame

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/ws", tags=["realtime"])


@router.websocket("")
async def websocket_endpoint(websocket: WebSocket, hub: OptionalRealtimeHub) -> None:
    """WebSocket connection endpoint.

    The ``Origin`` header must be on the ALLOWED_ORIGINS list, otherwise the
    upgrade is refused with HTTP 403.

    Message Protocol:
        Client → Server:
        - {"type": "debug", "content": "..."}  ("message" also accepted)
        - {"type": "reservation_notification", ...}

        Server → Client (every connected client, sender included):
        - {"type": "debug", "content": "..."}
        - {"type": "reservation_notification", "content": "..."}
    """
    if hub is None:
        await websocket.close(code=status.WS_1013_TRY_AGAIN_LATER, reason="Server not ready")
        return

    await hub.handle(websocket)


@router.get(
    "/stats",
    response_model=ConnectionStats,
    summary="Get WebSocket connection statistics",
    description="Returns the number of registered connections and the relayed topics.",
)
async def get_stats(hub: RealtimeHubDep) -> ConnectionStats:
    """Get current realtime statistics."""
    return ConnectionStats(**hub.stats())


@router.post(
    "/publish",
    response_model=PublishResponse,
    summary="Publish an event",
    description="Publish an event through the broker as if a client had sent it.",
)
async def publish_message(request: PublishRequest, hub: RealtimeHubDep) -> PublishResponse:
    """Publish one event; every connected client receives it after relay."""
    try:
        outbound = decode_client_frame(request.model_dump_json(), hub.topics)
    except DecodeError as exc:
        raise BadRequestException(detail=str(exc), type="invalid-event") from exc

    if outbound is None:
        raise BadRequestException(detail="Unknown message type", type="invalid-event")

    try:
        await hub.broker.publish(outbound.topic, outbound.payload)
    except BrokerError as exc:
        logger.error(
            "Publish request failed",
            extra={"topic": outbound.topic, "error": str(exc)},
        )
        raise ServiceUnavailableException(
            detail="Message broker is unavailable",
            type="broker-unavailable",
            extra={"topic": outbound.topic},
        ) from exc

    logger.info(
        "Published event",
        extra={"topic": outbound.topic, "message_type": outbound.kind.value},
    )
    return PublishResponse(success=True, type=outbound.kind, topic=outbound.topic)
