"""Unit tests for the broker bridge backends."""
from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from reservation_service.core.exceptions import BrokerError, ConfigError
from reservation_service.core.settings import RedisSettings, WebSocketSettings
from reservation_service.infra.realtime.broker import (
    BrokerMessage,
    MemoryBroker,
    RedisBroker,
    create_broker,
)


# ──────────────────────────────────────────────────────────────
# MemoryBroker
# ──────────────────────────────────────────────────────────────


class TestMemoryBroker:
    async def test_subscriber_receives_published_message(self):
        broker = MemoryBroker()
        stream = await broker.subscribe(["debug-channel"])

        await broker.publish("debug-channel", "ping")

        assert await stream.receive() == BrokerMessage(topic="debug-channel", payload="ping")

    async def test_messages_arrive_in_publish_order(self):
        broker = MemoryBroker()
        stream = await broker.subscribe(["reservation-notifications"])

        for i in range(5):
            await broker.publish("reservation-notifications", f"event-{i}")

        received = [(await stream.receive()).payload for _ in range(5)]
        assert received == [f"event-{i}" for i in range(5)]

    async def test_other_topics_are_not_delivered(self):
        broker = MemoryBroker()
        stream = await broker.subscribe(["debug-channel"])

        await broker.publish("reservation-notifications", "ignored")
        await broker.publish("debug-channel", "wanted")

        assert (await stream.receive()).payload == "wanted"

    async def test_publish_without_subscribers_is_dropped(self):
        broker = MemoryBroker()
        await broker.publish("debug-channel", "lost")

        stream = await broker.subscribe(["debug-channel"])
        await broker.publish("debug-channel", "kept")

        assert (await stream.receive()).payload == "kept"

    async def test_publish_after_close_raises(self):
        broker = MemoryBroker()
        await broker.close()

        with pytest.raises(BrokerError) as exc_info:
            await broker.publish("debug-channel", "x")

        assert exc_info.value.topic == "debug-channel"
        assert exc_info.value.operation == "publish"
        assert await broker.ping() is False

    async def test_close_wakes_pending_receive(self):
        broker = MemoryBroker()
        stream = await broker.subscribe(["debug-channel"])
        pending = asyncio.create_task(stream.receive())
        await asyncio.sleep(0)

        await stream.close()

        with pytest.raises(BrokerError):
            await pending
        assert broker.subscriber_count == 0


# ──────────────────────────────────────────────────────────────
# RedisBroker
# ──────────────────────────────────────────────────────────────


@pytest.fixture
def pubsub() -> MagicMock:
    mock = MagicMock()
    mock.subscribe = AsyncMock()
    mock.unsubscribe = AsyncMock()
    mock.get_message = AsyncMock()
    mock.aclose = AsyncMock()
    return mock


@pytest.fixture
def redis_client(pubsub: MagicMock) -> MagicMock:
    client = MagicMock()
    client.publish = AsyncMock(return_value=1)
    client.ping = AsyncMock(return_value=True)
    client.aclose = AsyncMock()
    client.pubsub = MagicMock(return_value=pubsub)
    return client


class TestRedisBroker:
    async def test_publish_forwards_to_redis(self, redis_client):
        broker = RedisBroker(redis_client)

        await broker.publish("debug-channel", "ping")

        redis_client.publish.assert_awaited_once_with("debug-channel", "ping")

    async def test_publish_failure_raises_broker_error(self, redis_client):
        redis_client.publish.side_effect = RedisConnectionError("connection refused")
        broker = RedisBroker(redis_client)

        with pytest.raises(BrokerError) as exc_info:
            await broker.publish("reservation-notifications", "x")

        assert exc_info.value.topic == "reservation-notifications"

    async def test_subscribe_subscribes_all_topics(self, redis_client, pubsub):
        broker = RedisBroker(redis_client)

        await broker.subscribe(["reservation-notifications", "debug-channel"])

        pubsub.subscribe.assert_awaited_once_with("reservation-notifications", "debug-channel")

    async def test_receive_skips_empty_polls(self, redis_client, pubsub):
        pubsub.get_message.side_effect = [
            None,
            {"type": "message", "channel": "debug-channel", "data": "ping"},
        ]
        stream = await RedisBroker(redis_client, poll_timeout=0.1).subscribe(["debug-channel"])

        message = await stream.receive()

        assert message == BrokerMessage(topic="debug-channel", payload="ping")
        pubsub.get_message.assert_awaited_with(ignore_subscribe_messages=True, timeout=0.1)

    async def test_receive_decodes_bytes(self, redis_client, pubsub):
        pubsub.get_message.return_value = {
            "type": "message",
            "channel": b"debug-channel",
            "data": b"ping",
        }
        stream = await RedisBroker(redis_client).subscribe(["debug-channel"])

        assert await stream.receive() == BrokerMessage(topic="debug-channel", payload="ping")

    async def test_receive_failure_is_retryable_on_same_stream(self, redis_client, pubsub):
        pubsub.get_message.side_effect = [
            RedisConnectionError("lost connection"),
            {"type": "message", "channel": "debug-channel", "data": "after"},
        ]
        stream = await RedisBroker(redis_client).subscribe(["debug-channel"])

        with pytest.raises(BrokerError) as exc_info:
            await stream.receive()
        assert exc_info.value.operation == "receive"

        assert (await stream.receive()).payload == "after"
        pubsub.subscribe.assert_awaited_once()

    async def test_undecodable_payload_is_broker_error(self, redis_client, pubsub):
        pubsub.get_message.side_effect = [
            {"type": "message", "channel": b"debug-channel", "data": b"\xff\xfe"},
            {"type": "message", "channel": b"debug-channel", "data": b"after"},
        ]
        stream = await RedisBroker(redis_client).subscribe(["debug-channel"])

        with pytest.raises(BrokerError) as exc_info:
            await stream.receive()
        assert exc_info.value.operation == "receive"
        assert exc_info.value.topic == "debug-channel"

        assert (await stream.receive()).payload == "after"

    async def test_decode_error_inside_client_is_broker_error(self, redis_client, pubsub):
        pubsub.get_message.side_effect = UnicodeDecodeError(
            "utf-8", b"\xff", 0, 1, "invalid start byte"
        )
        stream = await RedisBroker(redis_client).subscribe(["debug-channel"])

        with pytest.raises(BrokerError):
            await stream.receive()

    async def test_stream_close_unsubscribes(self, redis_client, pubsub):
        stream = await RedisBroker(redis_client).subscribe(["debug-channel"])

        await stream.close()

        pubsub.unsubscribe.assert_awaited_once_with("debug-channel")
        pubsub.aclose.assert_awaited_once()

    async def test_ping_reports_failure_as_false(self, redis_client):
        redis_client.ping.side_effect = RedisConnectionError("down")

        assert await RedisBroker(redis_client).ping() is False


# ──────────────────────────────────────────────────────────────
# create_broker
# ──────────────────────────────────────────────────────────────


class TestCreateBroker:
    def test_memory_backend(self):
        broker = create_broker(WebSocketSettings(broker_backend="memory"), RedisSettings())

        assert isinstance(broker, MemoryBroker)

    def test_redis_backend_requires_url(self, monkeypatch):
        monkeypatch.delenv("REDIS_URL", raising=False)
        monkeypatch.delenv("REDIS_HOST", raising=False)

        with pytest.raises(ConfigError, match="REDIS_URL"):
            create_broker(WebSocketSettings(broker_backend="redis"), RedisSettings())

    def test_redis_backend_with_url(self):
        broker = create_broker(
            WebSocketSettings(broker_backend="redis"),
            RedisSettings(REDIS_URL="localhost:6379"),
        )

        assert isinstance(broker, RedisBroker)
