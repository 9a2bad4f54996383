"""Redis Pub/Sub configuration settings."""

from __future__ import annotations

from typing import Any

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RedisSettings(BaseSettings):
    """Redis connection used as a cross-instance broadcast backplane.

    Environment variables use REDIS_ prefix.
    Example: REDIS_URL="redis://localhost:6379/0"

    When no URL is set the relay runs in local-only mode.
    """

    url: str | None = Field(
        default=None,
        description="Redis connection URL (redis://[username:password@]host:port/db)",
    )

    max_connections: int = Field(
        default=50,
        ge=1,
        le=1000,
        description="Maximum connections in the pool",
    )

    socket_timeout: float = Field(
        default=5.0,
        ge=0.1,
        le=60.0,
        description="Socket timeout in seconds",
    )

    socket_connect_timeout: float = Field(
        default=5.0,
        ge=0.1,
        le=60.0,
        description="Socket connect timeout in seconds",
    )

    health_check_interval: int = Field(
        default=30,
        ge=0,
        le=300,
        description="Connection health check interval in seconds (0 to disable)",
    )

    @computed_field
    @property
    def is_configured(self) -> bool:
        """Check if Redis is configured."""
        return bool(self.url)

    def connection_pool_kwargs(self) -> dict[str, Any]:
        """Return kwargs for redis.asyncio.ConnectionPool.from_url().

        Returns:
            Dictionary suitable for unpacking into ConnectionPool.from_url(**kwargs).
        """
        kwargs: dict[str, Any] = {
            "max_connections": self.max_connections,
            "socket_timeout": self.socket_timeout,
            "socket_connect_timeout": self.socket_connect_timeout,
            "decode_responses": True,
            "encoding": "utf-8",
        }

        if self.health_check_interval > 0:
            kwargs["health_check_interval"] = self.health_check_interval

        return kwargs

    model_config = SettingsConfigDict(
        env_prefix="REDIS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        env_ignore_empty=True,
    )
