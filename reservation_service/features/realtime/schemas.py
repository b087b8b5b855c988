"""Pydantic schemas for the realtime HTTP endpoints.

The WebSocket wire envelope itself lives in
``reservation_service.infra.realtime.envelope``.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from reservation_service.infra.realtime.envelope import MessageKind


class ConnectionStats(BaseModel):
    """Realtime subsystem statistics."""

    connections: int = Field(..., ge=0, description="Registered WebSocket connections")
    topics: list[str] = Field(..., description="Broker topics relayed to clients")
    broker_backend: str = Field(..., description="Broker backend in use")
    fanout_running: bool = Field(..., description="Whether the fan-out loop is running")


class PublishRequest(BaseModel):
    """Publish one event through the broker, exactly as a client frame would."""

    type: MessageKind = Field(..., description="Message kind")
    content: str = Field(..., min_length=1, max_length=10000, description="Message text")


class PublishResponse(BaseModel):
    """Result of a publish request."""

    success: bool = Field(..., description="Whether the broker accepted the message")
    type: MessageKind = Field(..., description="Message kind")
    topic: str = Field(..., description="Topic the message was published to")
