"""Logging infrastructure.

Structured logging with:
- JSONL format for Loki/Elasticsearch ingestion
- Automatic context injection (connection_id, origin, ...)
- QueueHandler + QueueListener for non-blocking I/O
- Per-handler log levels (console vs file)
- OpenTelemetry trace correlation

Basic usage:
    from reservation_service.infra.logging import log_context
    import logging

    logger = logging.getLogger(__name__)

    with log_context(connection_id="abc-123"):
        logger.info("Frame received")  # Includes connection_id
"""

from reservation_service.infra.logging.config import (
    configure_logging,
    setup_logging,
    shutdown,
)
from reservation_service.infra.logging.context import (
    ContextInjectingFilter,
    clear_log_context,
    get_log_context,
    log_context,
    set_log_context,
)
from reservation_service.infra.logging.formatters import JSONFormatter

__all__ = [
    "ContextInjectingFilter",
    "JSONFormatter",
    "clear_log_context",
    "configure_logging",
    "get_log_context",
    "log_context",
    "set_log_context",
    "setup_logging",
    "shutdown",
]
