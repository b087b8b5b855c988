"""Outbound fan-out: broker subscription to every registered connection."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING

from reservation_service.core.exceptions import BrokerError
from reservation_service.infra.metrics.prometheus import (
    realtime_broadcast_recipients,
    realtime_messages_broadcast_total,
)
from reservation_service.infra.realtime.envelope import EventEnvelope, TopicMap

if TYPE_CHECKING:
    from reservation_service.infra.realtime.broker import BrokerBridge, BrokerMessage, InboundStream
    from reservation_service.infra.realtime.registry import BroadcastResult, ConnectionRegistry

logger = logging.getLogger(__name__)


class FanoutLoop:
    """Single long-lived task relaying broker messages to clients.

    Messages are broadcast one at a time in the order the subscription
    yields them. A failed receive is logged and retried on the same
    subscription after ``retry_delay`` seconds. A message whose relay fails
    is logged and dropped. Only cancellation ends the loop.

    Example:
        loop = FanoutLoop(broker, registry, TopicMap())
        await loop.start()
        ...
        await loop.stop()
    """

    def __init__(
        self,
        broker: BrokerBridge,
        registry: ConnectionRegistry,
        topics: TopicMap,
        *,
        write_timeout: float = 5.0,
        retry_delay: float = 1.0,
    ) -> None:
        self._broker = broker
        self._registry = registry
        self._topics = topics
        self._write_timeout = write_timeout
        self._retry_delay = retry_delay
        self._stream: InboundStream | None = None
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Subscribe to every topic and start relaying.

        Raises:
            BrokerError: If the initial subscription fails.
        """
        if self.running:
            return

        self._stream = await self._broker.subscribe(self._topics.topics)
        self._task = asyncio.create_task(self._run(self._stream), name="realtime-fanout")
        self._task.add_done_callback(_log_task_exit)
        logger.info("Fan-out loop started", extra={"topics": list(self._topics.topics)})

    async def stop(self) -> None:
        """Cancel the relay task and close the subscription."""
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None

        if self._stream is not None:
            await self._stream.close()
            self._stream = None
            logger.info("Fan-out loop stopped")

    async def relay(self, message: BrokerMessage) -> BroadcastResult | None:
        """Broadcast one broker message. Returns None for an unknown topic."""
        kind = self._topics.kind_for(message.topic)
        if kind is None:
            logger.warning("Message on unknown topic skipped", extra={"topic": message.topic})
            return None

        text = EventEnvelope(type=kind, content=message.payload).to_wire()
        result = await self._registry.broadcast(text, self._write_timeout)

        realtime_messages_broadcast_total.labels(message_type=kind.value).inc()
        realtime_broadcast_recipients.observe(result.delivered)
        logger.debug(
            "Broadcast event",
            extra={
                "topic": message.topic,
                "delivered": result.delivered,
                "failed": result.failed,
            },
        )
        return result

    async def _run(self, stream: InboundStream) -> None:
        while True:
            try:
                message = await stream.receive()
            except BrokerError as exc:
                logger.error(
                    "Broker receive failed, retrying",
                    extra={"error": str(exc), "retry_delay": self._retry_delay},
                )
                await asyncio.sleep(self._retry_delay)
                continue
            except Exception:
                logger.exception(
                    "Unexpected broker receive failure, retrying",
                    extra={"retry_delay": self._retry_delay},
                )
                await asyncio.sleep(self._retry_delay)
                continue

            try:
                await self.relay(message)
            except Exception:
                logger.exception(
                    "Relay failed, message dropped",
                    extra={"topic": message.topic},
                )


def _log_task_exit(task: asyncio.Task[None]) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Fan-out loop exited unexpectedly", exc_info=exc)
