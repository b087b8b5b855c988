"""Wire envelope and topic routing for realtime events.

Every frame pushed to a client has the shape ``{"type": ..., "content": ...}``.
Each message kind travels on exactly one broker topic.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from reservation_service.core.settings.websocket import WebSocketSettings


class MessageKind(StrEnum):
    """Tag carried in the ``type`` field of an envelope."""

    DEBUG = "debug"
    RESERVATION_NOTIFICATION = "reservation_notification"

    @classmethod
    def parse(cls, value: object) -> MessageKind | None:
        """Return the kind for a raw ``type`` value, or None if unknown."""
        if not isinstance(value, str):
            return None
        try:
            return cls(value)
        except ValueError:
            return None


class EventEnvelope(BaseModel):
    """Outbound event frame broadcast to every connected client."""

    model_config = ConfigDict(frozen=True)

    type: MessageKind = Field(description="Message kind")
    content: str = Field(description="Human-readable payload or serialized object")

    def to_wire(self) -> str:
        """Serialize to the compact JSON text sent over the socket."""
        return self.model_dump_json()


@dataclass(frozen=True, slots=True)
class TopicMap:
    """Bidirectional mapping between message kinds and broker topics."""

    reservation: str = "reservation-notifications"
    debug: str = "debug-channel"

    @classmethod
    def from_settings(cls, settings: WebSocketSettings) -> TopicMap:
        return cls(reservation=settings.reservation_topic, debug=settings.debug_topic)

    @property
    def topics(self) -> tuple[str, ...]:
        return (self.reservation, self.debug)

    def topic_for(self, kind: MessageKind) -> str:
        if kind is MessageKind.RESERVATION_NOTIFICATION:
            return self.reservation
        return self.debug

    def kind_for(self, topic: str) -> MessageKind | None:
        """Return the kind carried on ``topic``, or None for an unknown topic."""
        if topic == self.reservation:
            return MessageKind.RESERVATION_NOTIFICATION
        if topic == self.debug:
            return MessageKind.DEBUG
        return None
