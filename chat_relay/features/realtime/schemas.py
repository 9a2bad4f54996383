"""Pydantic schemas for realtime WebSocket frames.

Frame Types:
- Client → Server: message, typing, ping, pong
- Server → Client: connected, event, ping, pong, error
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field

from chat_relay.features.chat.schemas import ChatEvent


class ClientFrameType(str, Enum):
    """Frame types sent from client to server."""

    MESSAGE = "message"
    TYPING = "typing"
    PING = "ping"
    PONG = "pong"


class ServerFrameType(str, Enum):
    """Frame types sent from server to client."""

    CONNECTED = "connected"
    EVENT = "event"
    PING = "ping"
    PONG = "pong"
    ERROR = "error"


class ErrorCode(str, Enum):
    """Codes carried by error frames."""

    INVALID_JSON = "invalid_json"
    INVALID_FRAME = "invalid_frame"
    FRAME_TOO_LARGE = "frame_too_large"
    UNKNOWN_TYPE = "unknown_type"
    INTERNAL_ERROR = "internal_error"


# ──────────────────────────────────────────────────────────────
# Client → Server Frames
# ──────────────────────────────────────────────────────────────


class ChatFrame(BaseModel):
    """A chat or typing event published by a client."""

    type: ClientFrameType
    event: ChatEvent = Field(..., description="Event to route and broadcast")


# ──────────────────────────────────────────────────────────────
# Server → Client Frames
# ──────────────────────────────────────────────────────────────


class ServerFrame(BaseModel):
    """Base model for frames from server to client."""

    type: ServerFrameType

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class ConnectedMessage(ServerFrame):
    """Sent immediately after connection is established."""

    type: Literal[ServerFrameType.CONNECTED] = ServerFrameType.CONNECTED
    connection_id: str = Field(..., description="Unique connection identifier")
    topics: list[str] = Field(default_factory=list, description="Subscribed topics")


class EventMessage(ServerFrame):
    """An enriched chat event fanned out to topic subscribers."""

    type: Literal[ServerFrameType.EVENT] = ServerFrameType.EVENT
    topic: str = Field(..., description="Topic the event was published on")
    event: ChatEvent = Field(..., description="Enriched event")


class ServerPingMessage(ServerFrame):
    """Ping frame from server (heartbeat)."""

    type: Literal[ServerFrameType.PING] = ServerFrameType.PING


class ServerPongMessage(ServerFrame):
    """Pong response to client ping."""

    type: Literal[ServerFrameType.PONG] = ServerFrameType.PONG


class ErrorMessage(ServerFrame):
    """Error frame, sent only to the connection whose frame was rejected."""

    type: Literal[ServerFrameType.ERROR] = ServerFrameType.ERROR
    code: ErrorCode = Field(..., description="Error code")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] | None = Field(None, description="Additional error details")


# ──────────────────────────────────────────────────────────────
# REST API Schemas
# ──────────────────────────────────────────────────────────────


class ConnectionStats(BaseModel):
    """Statistics about WebSocket connections and presence."""

    total_connections: int = Field(..., ge=0)
    total_topics: int = Field(..., ge=0)
    topics: dict[str, int] = Field(
        default_factory=dict,
        description="Topic name to local subscriber count",
    )
    tracked_senders: int = Field(..., ge=0, description="Senders holding an assigned color")
