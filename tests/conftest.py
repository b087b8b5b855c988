"""Pytest configuration and shared fixtures.

Organization:
    - Environment: settings that let the app run without Redis
    - Application Fixtures: FastAPI app, HTTP client, running hub
    - Realtime Fixtures: fake sockets and connections
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Iterator
import os
from typing import Any
from unittest.mock import MagicMock

from httpx import ASGITransport, AsyncClient
import pytest

# Ensure tests run without external infrastructure
os.environ.setdefault("APP_ENVIRONMENT", "test")
os.environ.setdefault("ALLOWED_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000")
os.environ.setdefault("WS_BROKER_BACKEND", "memory")
os.environ.setdefault("WS_RECEIVE_RETRY_DELAY", "0")
os.environ.setdefault("LOG_FILE_ENABLED", "false")
os.environ.setdefault("LOG_JSON", "false")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

from tests.utils import ALLOWED_ORIGIN, make_websocket  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_settings_cache() -> Iterator[None]:
    """Reload settings from the environment for every test."""
    from reservation_service.core.settings import clear_all_settings_cache

    clear_all_settings_cache()
    yield
    clear_all_settings_cache()


# ============================================================================
# Application Fixtures
# ============================================================================


@pytest.fixture
def app():
    """Create FastAPI application for testing.

    The lifespan is not run by ``ASGITransport``; use the ``hub`` fixture
    to attach a running realtime hub, or Starlette's ``TestClient`` as a
    context manager to run the real lifespan.
    """
    from reservation_service.app.main import create_app

    return create_app()


@pytest.fixture
async def hub(app) -> AsyncGenerator[Any]:
    """Running realtime hub on an in-memory broker, attached to ``app``."""
    from reservation_service.infra.realtime import MemoryBroker, RealtimeHub

    realtime = RealtimeHub(
        MemoryBroker(),
        allowed_origins=[ALLOWED_ORIGIN],
        backend="memory",
        retry_delay=0,
    )
    await realtime.start()
    app.state.realtime = realtime
    yield realtime
    app.state.realtime = None
    await realtime.stop()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient]:
    """Create async HTTP client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# ============================================================================
# Realtime Fixtures
# ============================================================================


@pytest.fixture
def fake_websocket() -> MagicMock:
    return make_websocket()


@pytest.fixture
def make_connection():
    """Factory for registry connections backed by fake sockets."""
    from reservation_service.infra.realtime import RealtimeConnection

    def _make(origin: str | None = ALLOWED_ORIGIN) -> RealtimeConnection:
        return RealtimeConnection.from_websocket(make_websocket(origin=origin))

    return _make
