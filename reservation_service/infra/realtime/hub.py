"""Composition root for the realtime subsystem.

A ``RealtimeHub`` owns one connection registry, one broker bridge and one
fan-out loop. The application lifespan builds it, stores it on
``app.state.realtime`` and routes reach it through FastAPI dependencies.
"""

from __future__ import annotations

from collections.abc import Iterable
import logging
from typing import TYPE_CHECKING, Any

from reservation_service.core.exceptions import ConfigError
from reservation_service.infra.realtime.broker import create_broker
from reservation_service.infra.realtime.dispatcher import (
    DEFAULT_MAX_MESSAGE_SIZE,
    InboundDispatcher,
)
from reservation_service.infra.realtime.envelope import TopicMap
from reservation_service.infra.realtime.fanout import FanoutLoop
from reservation_service.infra.realtime.lifecycle import serve_connection
from reservation_service.infra.realtime.registry import ConnectionRegistry, RealtimeConnection

if TYPE_CHECKING:
    from fastapi import WebSocket

    from reservation_service.core.settings import AppSettings, RedisSettings, WebSocketSettings
    from reservation_service.infra.realtime.broker import BrokerBridge

logger = logging.getLogger(__name__)


class RealtimeHub:
    """Wires registry, broker, dispatcher and fan-out loop together.

    Example:
        hub = RealtimeHub(MemoryBroker(), allowed_origins=["http://localhost:3000"])
        await hub.start()
        ...
        await hub.stop()
    """

    def __init__(
        self,
        broker: BrokerBridge,
        *,
        allowed_origins: Iterable[str],
        topics: TopicMap | None = None,
        backend: str = "custom",
        write_timeout: float = 5.0,
        retry_delay: float = 1.0,
        close_timeout: float = 5.0,
        max_message_size: int = DEFAULT_MAX_MESSAGE_SIZE,
    ) -> None:
        self.broker = broker
        self.topics = topics or TopicMap()
        self.backend = backend
        self.allowed_origins = frozenset(allowed_origins)
        self.close_timeout = close_timeout
        self.registry = ConnectionRegistry()
        self.dispatcher = InboundDispatcher(
            broker,
            self.topics,
            max_message_size=max_message_size,
        )
        self.fanout = FanoutLoop(
            broker,
            self.registry,
            self.topics,
            write_timeout=write_timeout,
            retry_delay=retry_delay,
        )

    @classmethod
    def from_settings(
        cls,
        app_settings: AppSettings,
        ws_settings: WebSocketSettings,
        redis_settings: RedisSettings,
    ) -> RealtimeHub:
        """Build a hub from settings.

        Raises:
            ConfigError: If the origin allow-list is empty or the selected
                broker backend is not configured.
        """
        if not app_settings.allowed_origins:
            msg = "ALLOWED_ORIGINS must list at least one origin"
            raise ConfigError(msg)

        return cls(
            create_broker(ws_settings, redis_settings),
            allowed_origins=app_settings.allowed_origins,
            topics=TopicMap.from_settings(ws_settings),
            backend=ws_settings.broker_backend,
            write_timeout=ws_settings.write_timeout,
            retry_delay=ws_settings.receive_retry_delay,
            close_timeout=ws_settings.close_timeout,
            max_message_size=ws_settings.max_message_size,
        )

    async def start(self) -> None:
        await self.fanout.start()
        logger.info(
            "Realtime hub started",
            extra={"broker_backend": self.backend, "allowed_origins": sorted(self.allowed_origins)},
        )

    async def stop(self) -> None:
        """Stop relaying, close every client with 1001, then close the broker."""
        await self.fanout.stop()
        closed = await self.registry.close_all(
            code=1001,
            reason="Server shutdown",
            close_timeout=self.close_timeout,
        )
        await self.broker.close()
        logger.info("Realtime hub stopped", extra={"connections_closed": closed})

    async def handle(self, websocket: WebSocket) -> RealtimeConnection | None:
        """Serve one upgrade request until the connection closes."""
        return await serve_connection(
            websocket,
            registry=self.registry,
            dispatcher=self.dispatcher,
            allowed_origins=self.allowed_origins,
        )

    def stats(self) -> dict[str, Any]:
        return {
            "connections": len(self.registry),
            "topics": list(self.topics.topics),
            "broker_backend": self.backend,
            "fanout_running": self.fanout.running,
        }
