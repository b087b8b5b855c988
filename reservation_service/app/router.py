"""Router registry and setup."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from reservation_service.core.settings import get_websocket_settings
from reservation_service.features.health.router import router as health_router
from reservation_service.features.metrics.router import router as metrics_router

if TYPE_CHECKING:
    from fastapi import FastAPI

    from reservation_service.core.settings.websocket import WebSocketSettings

logger = logging.getLogger(__name__)


def setup_routers(
    app: FastAPI,
    websocket_settings: WebSocketSettings | None = None,
) -> None:
    """Register all feature routers with the application.

    Args:
        app: FastAPI application instance.
        websocket_settings: Optional override for realtime/WebSocket behavior.
    """
    websocket_settings = websocket_settings or get_websocket_settings()

    # Root-level endpoints: /, /health, /metrics
    app.include_router(health_router)
    app.include_router(metrics_router, tags=["observability"])

    # Include WebSocket realtime router if enabled
    if websocket_settings.enabled:
        from reservation_service.features.realtime.router import router as realtime_router

        app.include_router(realtime_router, tags=["realtime"])
        logger.info("WebSocket realtime router included - endpoints at /ws")

    logger.info(
        "Router setup complete",
        extra={"websocket_enabled": websocket_settings.enabled},
    )
