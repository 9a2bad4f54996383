"""Pydantic schemas for chat events.

One entity travels through both the chat and the typing flows. On the wire
the server timestamp is called ``date`` (milliseconds since epoch); inbound
frames may use either ``date`` or ``timestamp`` and the value is always
replaced by the server clock.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, NamedTuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class EventKind(str, Enum):
    """Known chat event types plus an explicit fallback for everything else."""

    NEW_USER = "NEW_USER"
    MESSAGE = "MESSAGE"
    USER_LEFT = "USER_LEFT"
    TYPING_START = "TYPING_START"
    TYPING_STOP = "TYPING_STOP"
    UNRECOGNIZED = "UNRECOGNIZED"

    @classmethod
    def of(cls, raw: str | None) -> EventKind:
        """Map a raw ``type`` string by exact match; anything unknown is UNRECOGNIZED."""
        try:
            return cls(raw)
        except ValueError:
            return cls.UNRECOGNIZED


class ChatEvent(BaseModel):
    """A chat or typing event as published by clients and relayed by the server.

    None of the fields are validated beyond their JSON type: an empty or
    missing sender is relayed as-is and unknown ``type`` values pass through.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    sender: str | None = Field(None, description="Identifier of the originating user")
    text: str | None = Field(None, description="Free-form payload; meaning depends on type")
    timestamp: int | None = Field(
        None,
        validation_alias=AliasChoices("date", "timestamp"),
        serialization_alias="date",
        description="Server receipt time in milliseconds since epoch",
    )
    color: str | None = Field(None, description="Hex display color, e.g. #FF5733")
    type: str | None = Field(None, description="Event type; unknown values are passed through")

    @property
    def kind(self) -> EventKind:
        return EventKind.of(self.type)

    @property
    def sender_key(self) -> str:
        """Presence key for this event's sender (absent senders share the empty key)."""
        return self.sender or ""

    def to_wire(self) -> dict[str, Any]:
        """Serialize with wire field names (``date`` for the timestamp)."""
        return self.model_dump(mode="json", by_alias=True)


class RoutedEvent(NamedTuple):
    """An enriched outgoing event and the topic it must be published on."""

    topic: str
    event: ChatEvent
