"""CLI utilities for running async operations and formatting output."""

from reservation_service.cli.utils.async_runner import coro
from reservation_service.cli.utils.formatters import (
    error,
    info,
    success,
    warning,
)

__all__ = [
    "coro",
    "error",
    "info",
    "success",
    "warning",
]
