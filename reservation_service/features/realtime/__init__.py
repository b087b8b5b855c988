"""Realtime feature: WebSocket endpoint, stats and publish helpers."""

from reservation_service.features.realtime.publisher import (
    publish_event,
    publish_reservation_notification,
)
from reservation_service.features.realtime.router import router

__all__ = [
    "publish_event",
    "publish_reservation_notification",
    "router",
]
