"""LRU-cached settings loaders.

Settings are loaded and validated once, then cached for the lifetime of the process.

Usage:
    from reservation_service.core.settings.loader import get_websocket_settings

    settings = get_websocket_settings()  # First call: loads and validates
    settings = get_websocket_settings()  # Subsequent calls: returns cached instance

Testing:
    In tests, clear the cache to force reload:
    get_websocket_settings.cache_clear()

    Or construct settings directly:
    settings = WebSocketSettings(broker_backend="memory")
"""

from __future__ import annotations

from functools import lru_cache

from .app import AppSettings
from .logs import LoggingSettings
from .redis import RedisSettings
from .websocket import WebSocketSettings


@lru_cache(maxsize=1)
def get_app_settings() -> AppSettings:
    """Get cached application settings.

    Returns:
        Validated and frozen AppSettings instance.
    """
    return AppSettings()


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    """Get cached logging settings.

    Returns:
        Validated and frozen LoggingSettings instance.
    """
    return LoggingSettings()


@lru_cache(maxsize=1)
def get_redis_settings() -> RedisSettings:
    """Get cached Redis settings.

    Returns:
        Validated and frozen RedisSettings instance.
    """
    return RedisSettings()


@lru_cache(maxsize=1)
def get_websocket_settings() -> WebSocketSettings:
    """Get cached WebSocket settings.

    Returns:
        Validated and frozen WebSocketSettings instance.
    """
    return WebSocketSettings()


def clear_all_settings_cache() -> None:
    """Clear every cached settings instance (used by tests and config reloads)."""
    get_app_settings.cache_clear()
    get_logging_settings.cache_clear()
    get_redis_settings.cache_clear()
    get_websocket_settings.cache_clear()
