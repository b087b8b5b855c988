"""Application lifespan management.

Startup Order:
1. Core (logging, metrics) - always runs first
2. Realtime hub (broker bridge, registry, fan-out loop) - when WS_ENABLED

Shutdown Order: Reverse of startup. The fan-out loop stops first, then every
client is closed with 1001 (going away), then the broker connection.

A ``ConfigError`` (missing REDIS_URL, empty ALLOWED_ORIGINS) or a failed
initial subscription aborts startup.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import TYPE_CHECKING

from reservation_service.core.settings import (
    get_app_settings,
    get_logging_settings,
    get_redis_settings,
    get_websocket_settings,
)
from reservation_service.infra.logging.config import setup_logging
from reservation_service.infra.metrics.prometheus import application_info
from reservation_service.infra.realtime import RealtimeHub

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from fastapi import FastAPI

logger = logging.getLogger(__name__)


async def _startup_core() -> None:
    """Initialize core services: logging and metrics."""
    app = get_app_settings()

    setup_logging(log_settings=get_logging_settings(), force=True)
    logger.info(
        "Application starting",
        extra={"service": app.service_name, "environment": app.environment},
    )

    application_info.labels(
        version=app.version,
        service=app.service_name,
        environment=app.environment,
    ).set(1)


async def _startup_realtime(app: FastAPI) -> RealtimeHub | None:
    """Build and start the realtime hub, storing it on ``app.state.realtime``."""
    ws_settings = get_websocket_settings()
    if not ws_settings.enabled:
        logger.info("WebSocket realtime disabled via configuration")
        return None

    hub = RealtimeHub.from_settings(
        get_app_settings(),
        ws_settings,
        get_redis_settings(),
    )
    try:
        await hub.start()
    except Exception:
        logger.exception("Realtime hub failed to start")
        await hub.broker.close()
        raise

    app.state.realtime = hub
    return hub


async def _shutdown_realtime(app: FastAPI, hub: RealtimeHub | None) -> None:
    if hub is None:
        return
    app.state.realtime = None
    await hub.stop()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifecycle.

    Args:
        app: FastAPI application instance.

    Yields:
        None during application runtime.
    """
    await _startup_core()
    hub = await _startup_realtime(app)

    app_settings = get_app_settings()
    logger.info(
        "Application startup complete - listening on %s:%s",
        app_settings.host,
        app_settings.port,
        extra={
            "service": app_settings.service_name,
            "realtime_enabled": hub is not None,
        },
    )

    try:
        yield
    finally:
        await _shutdown_realtime(app, hub)
        logger.info("Application shutdown complete")
