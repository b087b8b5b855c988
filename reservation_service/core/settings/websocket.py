"""WebSocket and realtime fan-out configuration settings."""

from __future__ import annotations

from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BrokerBackend = Literal["redis", "memory"]


class WebSocketSettings(BaseSettings):
    """WebSocket server, broker topic and fan-out settings.

    Environment variables use WS_ prefix.
    Example: WS_WRITE_TIMEOUT=2.5
    """

    # ──────────────────────────────────────────────────────────────
    # Feature flags
    # ──────────────────────────────────────────────────────────────

    enabled: bool = Field(
        default=True,
        description="Enable WebSocket endpoints",
    )

    broker_backend: BrokerBackend = Field(
        default="redis",
        description="Pub/sub backend: redis (REDIS_URL required) or memory (single process)",
    )

    # ──────────────────────────────────────────────────────────────
    # Broker topics
    # ──────────────────────────────────────────────────────────────

    reservation_topic: str = Field(
        default="reservation-notifications",
        min_length=1,
        max_length=100,
        description="Broker topic carrying reservation notifications",
    )

    debug_topic: str = Field(
        default="debug-channel",
        min_length=1,
        max_length=100,
        description="Broker topic carrying debug messages",
    )

    # ──────────────────────────────────────────────────────────────
    # Timeouts
    # ──────────────────────────────────────────────────────────────

    write_timeout: float = Field(
        default=5.0,
        gt=0,
        le=60.0,
        description="Per-client deadline for one broadcast write; a timeout removes the client",
    )

    receive_timeout: float = Field(
        default=1.0,
        gt=0,
        le=60.0,
        description="Broker poll interval in seconds while waiting for the next message",
    )

    receive_retry_delay: float = Field(
        default=1.0,
        ge=0,
        le=60.0,
        description="Delay before retrying a failed broker receive",
    )

    close_timeout: float = Field(
        default=5.0,
        ge=1.0,
        le=30.0,
        description="Timeout for graceful WebSocket close handshake",
    )

    # ──────────────────────────────────────────────────────────────
    # Limits
    # ──────────────────────────────────────────────────────────────

    max_message_size: int = Field(
        default=65536,
        ge=1024,
        le=1048576,
        description="Maximum incoming frame size in bytes (default 64KB)",
    )

    @model_validator(mode="after")
    def _validate_topics(self) -> WebSocketSettings:
        """Reservation and debug topics must be distinct."""
        if self.reservation_topic == self.debug_topic:
            msg = "reservation_topic and debug_topic must differ"
            raise ValueError(msg)
        return self

    @property
    def topics(self) -> tuple[str, ...]:
        """All broker topics the fan-out loop subscribes to."""
        return (self.reservation_topic, self.debug_topic)

    model_config = SettingsConfigDict(
        env_prefix="WS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        env_ignore_empty=True,
    )
