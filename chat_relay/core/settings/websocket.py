"""WebSocket configuration settings."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class WebSocketSettings(BaseSettings):
    """WebSocket server and connection settings.

    Environment variables use WS_ prefix.
    Example: WS_HEARTBEAT_INTERVAL=30
    """

    # ──────────────────────────────────────────────────────────────
    # Connection limits
    # ──────────────────────────────────────────────────────────────

    max_connections: int = Field(
        default=10000,
        ge=1,
        le=100000,
        description="Maximum concurrent WebSocket connections per instance",
    )

    max_message_size: int = Field(
        default=65536,
        ge=1024,
        le=1048576,
        description="Maximum incoming frame size in bytes (default 64KB)",
    )

    # ──────────────────────────────────────────────────────────────
    # Heartbeat and timeout settings
    # ──────────────────────────────────────────────────────────────

    heartbeat_interval: float = Field(
        default=30.0,
        ge=0,
        le=300,
        description="Interval between ping frames in seconds (0 to disable)",
    )

    connection_timeout: float = Field(
        default=60.0,
        ge=0,
        le=600,
        description="Close connections after this many seconds without pong (0 to disable)",
    )

    # ──────────────────────────────────────────────────────────────
    # Topic configuration
    # ──────────────────────────────────────────────────────────────

    channel_prefix: str = Field(
        default="ws:",
        max_length=50,
        description="Prefix for Redis PubSub channels",
    )

    max_topics_per_connection: int = Field(
        default=50,
        ge=1,
        le=500,
        description="Maximum topics a single connection can subscribe to",
    )

    # ──────────────────────────────────────────────────────────────
    # Feature flags
    # ──────────────────────────────────────────────────────────────

    enabled: bool = Field(
        default=True,
        description="Enable WebSocket endpoints",
    )

    model_config = SettingsConfigDict(
        env_prefix="WS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        env_ignore_empty=True,
    )
