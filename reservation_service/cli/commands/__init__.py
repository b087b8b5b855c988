"""CLI command modules."""

from reservation_service.cli.commands import (
    config,
    realtime,
    server,
)

__all__ = [
    "config",
    "realtime",
    "server",
]
