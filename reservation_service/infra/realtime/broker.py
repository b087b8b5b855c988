"""Publish/subscribe bridge between this process and the message broker.

Two backends share one interface:

- ``RedisBroker``: Redis PUBLISH/SUBSCRIBE through ``redis.asyncio``. Every
  instance of the service subscribes to the same topics, so a message
  published anywhere reaches every connected client everywhere.
- ``MemoryBroker``: in-process queues for a single instance, local
  development and tests.

Both are fire-and-forget: a message published while nobody is subscribed
is dropped.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
import asyncio
from collections.abc import Sequence
from dataclasses import dataclass
import logging
from typing import TYPE_CHECKING, Any

from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import RedisError

from reservation_service.core.exceptions import BrokerError, ConfigError
from reservation_service.infra.metrics.prometheus import realtime_broker_errors_total

if TYPE_CHECKING:
    from redis.asyncio.client import PubSub

    from reservation_service.core.settings.redis import RedisSettings
    from reservation_service.core.settings.websocket import WebSocketSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BrokerMessage:
    """One message delivered by a subscription."""

    topic: str
    payload: str


def _broker_error(
    message: str,
    *,
    operation: str,
    topic: str | None = None,
) -> BrokerError:
    realtime_broker_errors_total.labels(operation=operation).inc()
    return BrokerError(message, topic=topic, operation=operation)


class InboundStream(ABC):
    """Live subscription to one or more topics.

    A failed ``receive()`` leaves the stream usable: the next call retries
    on the same subscription.
    """

    @abstractmethod
    async def receive(self) -> BrokerMessage:
        """Block until the next message arrives.

        Raises:
            BrokerError: If the backend fails while waiting.
        """

    @abstractmethod
    async def close(self) -> None:
        """End the subscription."""


class BrokerBridge(ABC):
    """Interface every broker backend implements."""

    @abstractmethod
    async def publish(self, topic: str, payload: str) -> None:
        """Publish ``payload`` to ``topic``.

        Raises:
            BrokerError: If the backend is unreachable.
        """

    @abstractmethod
    async def subscribe(self, topics: Sequence[str]) -> InboundStream:
        """Open a subscription to ``topics``."""

    @abstractmethod
    async def ping(self) -> bool:
        """Return True if the backend is reachable."""

    @abstractmethod
    async def close(self) -> None:
        """Release backend resources."""


# ──────────────────────────────────────────────────────────────
# Redis
# ──────────────────────────────────────────────────────────────


class RedisInboundStream(InboundStream):
    """Subscription backed by a ``redis.asyncio`` PubSub object.

    redis-py reconnects and re-subscribes the PubSub connection on the next
    read after a connection error, so ``receive`` never resubscribes itself.
    """

    def __init__(self, pubsub: PubSub, topics: Sequence[str], poll_timeout: float) -> None:
        self._pubsub = pubsub
        self._topics = tuple(topics)
        self._poll_timeout = poll_timeout

    async def receive(self) -> BrokerMessage:
        while True:
            try:
                message: dict[str, Any] | None = await self._pubsub.get_message(
                    ignore_subscribe_messages=True,
                    timeout=self._poll_timeout,
                )
            except (RedisError, OSError, UnicodeDecodeError) as exc:
                raise _broker_error(
                    f"Redis receive failed: {exc}",
                    operation="receive",
                ) from exc

            if message is None or message.get("type") != "message":
                continue

            channel = message["channel"]
            data = message["data"]
            try:
                if isinstance(channel, bytes):
                    channel = channel.decode()
                if isinstance(data, bytes):
                    data = data.decode()
            except UnicodeDecodeError as exc:
                raise _broker_error(
                    f"Undecodable Redis message: {exc}",
                    operation="receive",
                    topic=channel if isinstance(channel, str) else None,
                ) from exc
            return BrokerMessage(topic=channel, payload=data)

    async def close(self) -> None:
        try:
            await self._pubsub.unsubscribe(*self._topics)
        except (RedisError, OSError) as exc:
            logger.debug("Redis unsubscribe failed during close", extra={"error": str(exc)})

        close_method = getattr(self._pubsub, "aclose", None)
        if close_method is not None:
            await close_method()
        else:
            await self._pubsub.close()


class RedisBroker(BrokerBridge):
    """Broker bridge over Redis pub/sub.

    Example:
        broker = RedisBroker.from_settings(get_redis_settings())
        await broker.publish("debug-channel", "ping")
    """

    def __init__(self, client: Redis, *, poll_timeout: float = 1.0) -> None:
        self._client = client
        self._poll_timeout = poll_timeout

    @classmethod
    def from_settings(
        cls,
        settings: RedisSettings,
        *,
        poll_timeout: float = 1.0,
    ) -> RedisBroker:
        pool: ConnectionPool = ConnectionPool.from_url(
            settings.url,
            **settings.connection_pool_kwargs(),
        )
        return cls(Redis(connection_pool=pool), poll_timeout=poll_timeout)

    async def publish(self, topic: str, payload: str) -> None:
        try:
            await self._client.publish(topic, payload)
        except (RedisError, OSError) as exc:
            raise _broker_error(
                f"Redis publish failed: {exc}",
                operation="publish",
                topic=topic,
            ) from exc

    async def subscribe(self, topics: Sequence[str]) -> InboundStream:
        pubsub = self._client.pubsub()
        try:
            await pubsub.subscribe(*topics)
        except (RedisError, OSError) as exc:
            raise _broker_error(
                f"Redis subscribe failed: {exc}",
                operation="subscribe",
            ) from exc

        logger.info("Subscribed to Redis topics", extra={"topics": list(topics)})
        return RedisInboundStream(pubsub, topics, self._poll_timeout)

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except (RedisError, OSError) as exc:
            logger.warning("Redis ping failed", extra={"error": str(exc)})
            return False

    async def close(self) -> None:
        await self._client.aclose()


# ──────────────────────────────────────────────────────────────
# In-memory
# ──────────────────────────────────────────────────────────────


class MemoryInboundStream(InboundStream):
    """Subscription backed by an unbounded ``asyncio.Queue``."""

    def __init__(self, broker: MemoryBroker, topics: Sequence[str]) -> None:
        self._broker = broker
        self.topics = frozenset(topics)
        self._queue: asyncio.Queue[BrokerMessage | None] = asyncio.Queue()
        self._closed = False

    def deliver(self, message: BrokerMessage) -> None:
        if not self._closed:
            self._queue.put_nowait(message)

    async def receive(self) -> BrokerMessage:
        if self._closed:
            raise _broker_error("Subscription is closed", operation="receive")
        message = await self._queue.get()
        if message is None:
            raise _broker_error("Subscription is closed", operation="receive")
        return message

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._broker.detach(self)
        # Wake a pending receive()
        self._queue.put_nowait(None)


class MemoryBroker(BrokerBridge):
    """Single-process broker; every subscriber gets its own FIFO queue."""

    def __init__(self) -> None:
        self._streams: set[MemoryInboundStream] = set()
        self._closed = False

    async def publish(self, topic: str, payload: str) -> None:
        if self._closed:
            raise _broker_error("Memory broker is closed", operation="publish", topic=topic)

        message = BrokerMessage(topic=topic, payload=payload)
        for stream in list(self._streams):
            if topic in stream.topics:
                stream.deliver(message)

    async def subscribe(self, topics: Sequence[str]) -> InboundStream:
        if self._closed:
            raise _broker_error("Memory broker is closed", operation="subscribe")
        stream = MemoryInboundStream(self, topics)
        self._streams.add(stream)
        return stream

    def detach(self, stream: MemoryInboundStream) -> None:
        self._streams.discard(stream)

    @property
    def subscriber_count(self) -> int:
        return len(self._streams)

    async def ping(self) -> bool:
        return not self._closed

    async def close(self) -> None:
        self._closed = True
        for stream in list(self._streams):
            await stream.close()


def create_broker(
    ws_settings: WebSocketSettings,
    redis_settings: RedisSettings,
) -> BrokerBridge:
    """Build the broker bridge selected by ``WS_BROKER_BACKEND``.

    Raises:
        ConfigError: If the redis backend is selected but Redis is not configured.
    """
    if ws_settings.broker_backend == "memory":
        logger.info("Using in-memory realtime broker")
        return MemoryBroker()

    if not redis_settings.is_configured:
        msg = "REDIS_URL must be set when WS_BROKER_BACKEND=redis"
        raise ConfigError(msg)

    logger.info(
        "Using Redis realtime broker",
        extra={"redis_host": redis_settings.host, "redis_port": redis_settings.port},
    )
    return RedisBroker.from_settings(
        redis_settings,
        poll_timeout=ws_settings.receive_timeout,
    )
