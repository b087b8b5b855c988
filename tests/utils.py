"""Test helpers shared across the suite."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock, MagicMock

ALLOWED_ORIGIN = "http://localhost:3000"


def make_websocket(
    origin: str | None = ALLOWED_ORIGIN,
    frames: list[dict[str, Any]] | None = None,
) -> MagicMock:
    """Build a fake Starlette WebSocket.

    Args:
        origin: Value of the Origin header, or None to omit it.
        frames: ASGI messages returned by ``receive()``, in order. A
            ``websocket.disconnect`` is appended automatically.
    """
    websocket = MagicMock()
    websocket.headers = {"origin": origin} if origin is not None else {}
    websocket.client = MagicMock(host="127.0.0.1", port=50000)
    websocket.accept = AsyncMock()
    websocket.close = AsyncMock()
    websocket.send_text = AsyncMock()
    messages = list(frames or []) + [{"type": "websocket.disconnect", "code": 1000}]
    websocket.receive = AsyncMock(side_effect=messages)
    return websocket


def text_frame(text: str) -> dict[str, Any]:
    return {"type": "websocket.receive", "text": text}


async def wait_for_condition(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Yield to the event loop until ``predicate()`` holds."""

    async def _poll() -> None:
        while not predicate():
            await asyncio.sleep(0.005)

    await asyncio.wait_for(_poll(), timeout=timeout)
