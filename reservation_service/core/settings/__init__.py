"""Modular Pydantic Settings v2 configuration.

Settings are split by domain (app/redis/websocket/logging), read from
environment variables, frozen, and cached by LRU loaders:

    from reservation_service.core.settings import get_websocket_settings

Configuration precedence (highest to lowest):
    1. init kwargs (testing/overrides)
    2. Environment variables (production)
    3. .env file (development only)
    4. secrets_dir (Kubernetes/Docker secrets)
"""

from __future__ import annotations

from .app import AppSettings
from .loader import (
    clear_all_settings_cache,
    get_app_settings,
    get_logging_settings,
    get_redis_settings,
    get_websocket_settings,
)
from .logs import LoggingSettings
from .redis import RedisSettings
from .websocket import WebSocketSettings

__all__ = [
    "AppSettings",
    "LoggingSettings",
    "RedisSettings",
    "WebSocketSettings",
    "clear_all_settings_cache",
    "get_app_settings",
    "get_logging_settings",
    "get_redis_settings",
    "get_websocket_settings",
]
