"""Unified settings composition for convenient access.

Usage:
    from chat_relay.core.settings import get_settings

    settings = get_settings()
    print(settings.app.host)
    print(settings.chat.chat_topic)

Note:
    Each nested settings class still loads from its own environment prefix
    (APP_, LOG_, WS_, CHAT_, REDIS_). Prefer the individual get_*_settings()
    loaders in code that needs a single domain.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .app import AppSettings
from .chat import ChatSettings
from .logs import LoggingSettings
from .redis import RedisSettings
from .websocket import WebSocketSettings


class Settings(BaseSettings):
    """Unified settings composing all domain settings.

    Example:
        settings = Settings()
        assert settings.chat.typing_topic == "typing"
    """

    model_config = SettingsConfigDict(
        frozen=True,
        extra="ignore",
    )

    app: AppSettings = Field(default_factory=AppSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    websocket: WebSocketSettings = Field(default_factory=WebSocketSettings)
    chat: ChatSettings = Field(default_factory=ChatSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get unified settings instance (cached).

    Returns:
        Settings: Unified settings with all domain configurations.
    """
    return Settings()
