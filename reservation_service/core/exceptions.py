"""Custom exception classes for the application.

Two families live here:

- ``AppException`` and subclasses surface over HTTP as RFC 7807 problem
  details (see ``reservation_service.app.exception_handlers``).
- ``RealtimeError`` and subclasses describe failures inside the realtime
  fan-out subsystem. They are handled where they occur (one connection,
  one frame, one broker call) and never reach an HTTP client directly.
"""

from __future__ import annotations

from typing import Any


class AppException(Exception):
    """Base application exception.

    Follows RFC 7807 Problem Details for HTTP APIs.

    Attributes:
        status_code: HTTP status code for the error.
        detail: Human-readable error message.
        type: Error type identifier (used in RFC 7807 problem details).
        title: Short, human-readable summary of the problem type.
        instance: URI reference that identifies the specific occurrence of the problem.
        extra: Additional context-specific information about the error.

    Example:
            raise AppException(
            status_code=503,
            detail="Broker unavailable",
            type="broker-unavailable",
            extra={"topic": "debug-channel"}
        )
    """

    def __init__(
        self,
        status_code: int,
        detail: str,
        type: str = "about:blank",
        title: str | None = None,
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        """Initialize application exception.

        Args:
            status_code: HTTP status code.
            detail: Human-readable error message.
            type: Error type identifier.
            title: Short summary of the problem type.
            instance: URI reference identifying this specific occurrence.
            extra: Additional context about the error.
        """
        self.status_code = status_code
        self.detail = detail
        self.type = type
        self.title = title or self._default_title(status_code)
        self.instance = instance
        self.extra = extra or {}
        super().__init__(detail)

    @staticmethod
    def _default_title(status_code: int) -> str:
        """Get default title for HTTP status code."""
        titles = {
            400: "Bad Request",
            403: "Forbidden",
            404: "Not Found",
            422: "Unprocessable Entity",
            500: "Internal Server Error",
            503: "Service Unavailable",
        }
        return titles.get(status_code, "Error")


class BadRequestException(AppException):
    """Exception raised for malformed requests."""

    def __init__(
        self,
        detail: str,
        type: str = "bad-request",
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            status_code=400,
            detail=detail,
            type=type,
            title="Bad Request",
            instance=instance,
            extra=extra,
        )


class ServiceUnavailableException(AppException):
    """Exception raised when a service is temporarily unavailable.

    Example:
            raise ServiceUnavailableException(
            detail="Realtime hub is not running",
            type="realtime-unavailable",
        )
    """

    def __init__(
        self,
        detail: str,
        type: str = "service-unavailable",
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        """Initialize service unavailable exception.

        Args:
            detail: Human-readable error message.
            type: Error type identifier.
            instance: URI reference identifying this specific occurrence.
            extra: Additional context about the error.
        """
        super().__init__(
            status_code=503,
            detail=detail,
            type=type,
            title="Service Unavailable",
            instance=instance,
            extra=extra,
        )


# ──────────────────────────────────────────────────────────────
# Realtime subsystem errors
# ──────────────────────────────────────────────────────────────


class RealtimeError(Exception):
    """Base class for realtime fan-out failures."""


class TransportError(RealtimeError):
    """Read, write or upgrade failure on a single client connection.

    Always local to that connection: it triggers deregistration and is never
    propagated to other clients or to the broker.
    """

    def __init__(self, message: str, connection_id: str | None = None) -> None:
        self.connection_id = connection_id
        super().__init__(message)


class BrokerError(RealtimeError):
    """Publish or receive failure against the pub/sub backend.

    Treated as transient: logged, never fatal to the fan-out loop or to an
    inbound dispatcher.
    """

    def __init__(
        self,
        message: str,
        topic: str | None = None,
        operation: str = "publish",
    ) -> None:
        self.topic = topic
        self.operation = operation
        super().__init__(message)


class DecodeError(RealtimeError):
    """Malformed client frame. Only that frame is discarded."""


class ConfigError(RealtimeError):
    """Missing or invalid realtime configuration. Fatal at startup."""
