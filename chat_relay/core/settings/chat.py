"""Chat routing settings."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ChatSettings(BaseSettings):
    """Topic names and color assignment for the chat relay.

    Environment variables use CHAT_ prefix.
    Example: CHAT_TYPING_TOPIC=typing, CHAT_PALETTE_SEED=42
    """

    chat_topic: str = Field(
        default="chat",
        min_length=1,
        max_length=100,
        description="Topic that receives join, leave and message events",
    )

    typing_topic: str = Field(
        default="typing",
        min_length=1,
        max_length=100,
        description="Topic that receives typing start/stop events",
    )

    palette_seed: int | None = Field(
        default=None,
        description="Seed for the color picker. Leave unset for non-reproducible colors.",
    )

    model_config = SettingsConfigDict(
        env_prefix="CHAT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        env_ignore_empty=True,
    )
