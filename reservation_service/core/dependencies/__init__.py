"""FastAPI dependencies for route handlers.

Features import dependencies from here rather than reaching into
``infra`` or ``app.state`` directly.
"""

from __future__ import annotations

from .realtime import (
    OptionalRealtimeHub,
    RealtimeHubDep,
    get_realtime_hub,
    require_realtime_hub,
)

__all__ = [
    "OptionalRealtimeHub",
    "RealtimeHubDep",
    "get_realtime_hub",
    "require_realtime_hub",
]
