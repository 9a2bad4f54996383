"""Modular Pydantic Settings v2 configuration.

Settings are split by domain, loaded from the environment (and an optional
.env file), validated once and cached:

    from chat_relay.core.settings import get_chat_settings

Or use unified settings for convenient access to all domains:

    from chat_relay.core.settings import get_settings

    settings = get_settings()
    print(settings.app.port)
    print(settings.chat.chat_topic)

Configuration precedence (highest to lowest):
    1. init kwargs (testing/overrides)
    2. Environment variables (production)
    3. .env file (development only)
"""

from __future__ import annotations

from .app import AppSettings
from .chat import ChatSettings
from .loader import (
    clear_all_caches,
    get_app_settings,
    get_chat_settings,
    get_logging_settings,
    get_redis_settings,
    get_websocket_settings,
)
from .logs import LoggingSettings
from .redis import RedisSettings
from .unified import Settings, get_settings
from .websocket import WebSocketSettings

__all__ = [
    "AppSettings",
    "ChatSettings",
    "LoggingSettings",
    "RedisSettings",
    "Settings",
    "WebSocketSettings",
    "clear_all_caches",
    "get_app_settings",
    "get_chat_settings",
    "get_logging_settings",
    "get_redis_settings",
    "get_settings",
    "get_websocket_settings",
]
