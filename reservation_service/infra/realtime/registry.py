"""Registry of live realtime connections.

Membership is liveness: a connection is live from ``add`` until ``remove``
or until a broadcast write to it fails. One ``asyncio.Lock`` guards the
member set, and a broadcast holds it for the whole pass, so add and remove
wait while a pass is in progress and no pass ever sees a half-updated set.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
import contextlib
from dataclasses import dataclass, field
import logging
import time
from typing import TYPE_CHECKING
from uuid import uuid4

from starlette.websockets import WebSocketDisconnect

from reservation_service.core.exceptions import TransportError
from reservation_service.infra.metrics.prometheus import (
    realtime_connections,
    realtime_write_failures_total,
)

if TYPE_CHECKING:
    from fastapi import WebSocket

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class RealtimeConnection:
    """One upgraded client socket plus metadata for logs and stats.

    Compared and hashed by identity.
    """

    websocket: WebSocket
    origin: str | None = None
    client: str | None = None
    connection_id: str = field(default_factory=lambda: str(uuid4()))
    connected_at: float = field(default_factory=time.time)

    @classmethod
    def from_websocket(cls, websocket: WebSocket) -> RealtimeConnection:
        client = None
        if websocket.client is not None:
            client = f"{websocket.client.host}:{websocket.client.port}"
        return cls(
            websocket=websocket,
            origin=websocket.headers.get("origin"),
            client=client,
        )

    @property
    def age_seconds(self) -> float:
        return max(0.0, time.time() - self.connected_at)

    async def send_text(self, text: str) -> None:
        try:
            await self.websocket.send_text(text)
        except (RuntimeError, OSError, WebSocketDisconnect) as exc:
            msg = f"Write failed: {exc}"
            raise TransportError(msg, connection_id=self.connection_id) from exc

    async def close(self, code: int = 1000, reason: str | None = None) -> None:
        """Close the transport; a socket that is already gone is ignored."""
        with contextlib.suppress(RuntimeError, OSError, WebSocketDisconnect):
            await self.websocket.close(code=code, reason=reason)


@dataclass(frozen=True, slots=True)
class BroadcastResult:
    """Outcome of one broadcast pass."""

    delivered: int = 0
    failed: int = 0

    @property
    def attempted(self) -> int:
        return self.delivered + self.failed


class ConnectionRegistry:
    """Lock-guarded set of live connections.

    Example:
        registry = ConnectionRegistry()
        await registry.add(conn)
        result = await registry.broadcast('{"type":"debug","content":"hi"}', write_timeout=5.0)
        await registry.remove(conn)
    """

    def __init__(self) -> None:
        self._members: set[RealtimeConnection] = set()
        self._lock = asyncio.Lock()

    async def add(self, conn: RealtimeConnection) -> None:
        """Register a connection. Adding a member twice is a no-op."""
        async with self._lock:
            self._members.add(conn)
            realtime_connections.set(len(self._members))

    async def remove(self, conn: RealtimeConnection) -> bool:
        """Deregister a connection.

        Returns:
            True if it was a member, False if it was already gone.
        """
        async with self._lock:
            removed = self._discard(conn)
        return removed

    async def for_each(self, fn: Callable[[RealtimeConnection], Awaitable[None]]) -> None:
        """Run ``fn`` on every member while holding the registry lock.

        ``fn`` runs over a snapshot taken at the start of the pass, so it may
        drop members through ``_discard`` without disturbing the iteration.
        It must not call ``add`` or ``remove``, which would deadlock.
        """
        async with self._lock:
            for conn in list(self._members):
                await fn(conn)

    async def broadcast(self, text: str, write_timeout: float) -> BroadcastResult:
        """Send ``text`` to every member, removing any whose write fails.

        Each write is bounded by ``write_timeout``; a timeout counts as a
        failure. Failed members are removed inside the same pass and their
        transports closed.
        """
        delivered = 0
        failed: list[RealtimeConnection] = []

        async def _send(conn: RealtimeConnection) -> None:
            nonlocal delivered
            try:
                await asyncio.wait_for(conn.send_text(text), timeout=write_timeout)
            except (TransportError, TimeoutError) as exc:
                logger.warning(
                    "Broadcast write failed, dropping connection",
                    extra={
                        "connection_id": conn.connection_id,
                        "error": str(exc) or type(exc).__name__,
                    },
                )
                realtime_write_failures_total.inc()
                self._discard(conn)
                failed.append(conn)
            else:
                delivered += 1

        await self.for_each(_send)

        for conn in failed:
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(
                    conn.close(code=1011, reason="Write failed"),
                    timeout=write_timeout,
                )

        return BroadcastResult(delivered=delivered, failed=len(failed))

    async def close_all(
        self,
        code: int = 1001,
        reason: str = "Server shutdown",
        close_timeout: float = 5.0,
    ) -> int:
        """Close and remove every member.

        Each close handshake is bounded by ``close_timeout``; a client that
        never answers is abandoned.

        Returns:
            Number of connections closed.
        """
        async with self._lock:
            members = list(self._members)
            self._members.clear()
            realtime_connections.set(0)

        for conn in members:
            try:
                await asyncio.wait_for(
                    conn.close(code=code, reason=reason),
                    timeout=close_timeout,
                )
            except TimeoutError:
                logger.warning(
                    "Close handshake timed out",
                    extra={"connection_id": conn.connection_id},
                )

        if members:
            logger.info("Closed realtime connections", extra={"connections_closed": len(members)})
        return len(members)

    def _discard(self, conn: RealtimeConnection) -> bool:
        # Caller holds self._lock
        if conn not in self._members:
            return False
        self._members.discard(conn)
        realtime_connections.set(len(self._members))
        return True

    def __len__(self) -> int:
        return len(self._members)

    def __contains__(self, conn: object) -> bool:
        return conn in self._members
