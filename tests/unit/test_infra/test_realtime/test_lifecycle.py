"""Unit tests for the connection lifecycle handler and the hub."""
from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from reservation_service.core.exceptions import ConfigError
from reservation_service.core.settings import AppSettings, RedisSettings, WebSocketSettings
from reservation_service.infra.realtime.broker import MemoryBroker
from reservation_service.infra.realtime.dispatcher import InboundDispatcher
from reservation_service.infra.realtime.envelope import TopicMap
from reservation_service.infra.realtime.hub import RealtimeHub
from reservation_service.infra.realtime.lifecycle import (
    POLICY_VIOLATION,
    origin_allowed,
    serve_connection,
)
from reservation_service.infra.realtime.registry import ConnectionRegistry
from tests.utils import ALLOWED_ORIGIN, make_websocket, text_frame, wait_for_condition

ALLOWED = frozenset({ALLOWED_ORIGIN})


def _held_socket(frames: list[str], release: asyncio.Event):
    """Socket that delivers `frames`, then stays open until `release` is set."""
    websocket = make_websocket()
    pending = [text_frame(frame) for frame in frames]

    async def _receive():
        if pending:
            return pending.pop(0)
        await release.wait()
        return {"type": "websocket.disconnect", "code": 1000}

    websocket.receive = AsyncMock(side_effect=_receive)
    return websocket


class TestOriginAllowed:
    def test_listed_origin(self):
        assert origin_allowed(ALLOWED_ORIGIN, ALLOWED)

    def test_surrounding_whitespace_ignored(self):
        assert origin_allowed(f"  {ALLOWED_ORIGIN} ", ALLOWED)

    @pytest.mark.parametrize("origin", [None, "", "   ", "http://evil.example", "http://localhost:3001"])
    def test_missing_or_unlisted_origin(self, origin):
        assert not origin_allowed(origin, ALLOWED)


class TestServeConnection:
    @pytest.fixture
    def registry(self) -> ConnectionRegistry:
        return ConnectionRegistry()

    @pytest.fixture
    def dispatcher(self) -> AsyncMock:
        return AsyncMock(spec=InboundDispatcher)

    async def test_rejected_origin_closes_before_accept(self, registry, dispatcher):
        websocket = make_websocket(origin="http://evil.example")

        result = await serve_connection(
            websocket, registry=registry, dispatcher=dispatcher, allowed_origins=ALLOWED
        )

        assert result is None
        websocket.accept.assert_not_awaited()
        websocket.close.assert_awaited_once_with(code=POLICY_VIOLATION)
        dispatcher.run.assert_not_awaited()
        assert len(registry) == 0

    async def test_missing_origin_rejected(self, registry, dispatcher):
        websocket = make_websocket(origin=None)

        assert await serve_connection(
            websocket, registry=registry, dispatcher=dispatcher, allowed_origins=ALLOWED
        ) is None
        websocket.accept.assert_not_awaited()

    async def test_registered_while_dispatching_then_deregistered(self, registry, dispatcher):
        websocket = make_websocket()
        seen_members: list[int] = []

        async def _run(conn):
            seen_members.append(len(registry))
            assert conn in registry

        dispatcher.run.side_effect = _run

        conn = await serve_connection(
            websocket, registry=registry, dispatcher=dispatcher, allowed_origins=ALLOWED
        )

        assert conn is not None
        assert seen_members == [1]
        assert conn not in registry
        websocket.accept.assert_awaited_once()
        websocket.close.assert_awaited()

    async def test_deregistered_when_dispatch_raises(self, registry, dispatcher):
        websocket = make_websocket()
        dispatcher.run.side_effect = ValueError("boom")

        with pytest.raises(ValueError):
            await serve_connection(
                websocket, registry=registry, dispatcher=dispatcher, allowed_origins=ALLOWED
            )

        assert len(registry) == 0
        websocket.close.assert_awaited()

    async def test_failed_accept_never_registers(self, registry, dispatcher):
        websocket = make_websocket()
        websocket.accept.side_effect = RuntimeError("handshake failed")

        with pytest.raises(RuntimeError):
            await serve_connection(
                websocket, registry=registry, dispatcher=dispatcher, allowed_origins=ALLOWED
            )

        assert len(registry) == 0
        dispatcher.run.assert_not_awaited()


class TestRealtimeHub:
    def test_from_settings_requires_allowed_origins(self):
        with pytest.raises(ConfigError, match="ALLOWED_ORIGINS"):
            RealtimeHub.from_settings(
                AppSettings(allowed_origins=[]),
                WebSocketSettings(broker_backend="memory"),
                RedisSettings(),
            )

    def test_from_settings_uses_configured_topics(self):
        hub = RealtimeHub.from_settings(
            AppSettings(allowed_origins=[ALLOWED_ORIGIN]),
            WebSocketSettings(
                broker_backend="memory",
                reservation_topic="res",
                debug_topic="dbg",
            ),
            RedisSettings(),
        )

        assert hub.topics == TopicMap(reservation="res", debug="dbg")
        assert hub.close_timeout == 5.0
        assert hub.backend == "memory"
        assert isinstance(hub.broker, MemoryBroker)

    async def test_debug_frame_loops_back_to_every_client(self):
        hub = RealtimeHub(MemoryBroker(), allowed_origins=[ALLOWED_ORIGIN], retry_delay=0)
        await hub.start()
        release = asyncio.Event()
        listener = _held_socket([], release)
        sender = _held_socket(['{"type":"debug","content":"ping"}'], release)

        try:
            listener_task = asyncio.create_task(hub.handle(listener))
            await wait_for_condition(lambda: len(hub.registry) == 1)
            sender_task = asyncio.create_task(hub.handle(sender))

            await wait_for_condition(
                lambda: listener.send_text.await_count == 1 and sender.send_text.await_count == 1
            )
        finally:
            release.set()
            await hub.stop()

        await listener_task
        await sender_task
        expected = '{"type":"debug","content":"ping"}'
        listener.send_text.assert_awaited_once_with(expected)
        sender.send_text.assert_awaited_once_with(expected)

    async def test_stop_closes_clients_with_going_away(self, make_connection):
        hub = RealtimeHub(MemoryBroker(), allowed_origins=[ALLOWED_ORIGIN])
        await hub.start()
        conn = make_connection()
        await hub.registry.add(conn)

        await hub.stop()

        conn.websocket.close.assert_awaited_once_with(code=1001, reason="Server shutdown")
        assert len(hub.registry) == 0
        assert not hub.fanout.running
        assert await hub.broker.ping() is False

    async def test_stop_not_blocked_by_unresponsive_client(self, make_connection):
        hub = RealtimeHub(MemoryBroker(), allowed_origins=[ALLOWED_ORIGIN], close_timeout=0.05)
        await hub.start()
        conn = make_connection()

        async def _hang(**kwargs) -> None:
            await asyncio.sleep(10)

        conn.websocket.close = AsyncMock(side_effect=_hang)
        await hub.registry.add(conn)

        await asyncio.wait_for(hub.stop(), timeout=1.0)

        assert len(hub.registry) == 0
        assert await hub.broker.ping() is False

    def test_stats(self):
        hub = RealtimeHub(MemoryBroker(), allowed_origins=[ALLOWED_ORIGIN], backend="memory")

        assert hub.stats() == {
            "connections": 0,
            "topics": ["reservation-notifications", "debug-channel"],
            "broker_backend": "memory",
            "fanout_running": False,
        }
