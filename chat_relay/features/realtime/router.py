"""WebSocket router for the chat relay.

Endpoints:
- GET /ws/chat: WebSocket connection endpoint
- GET /ws/stats: Connection and presence statistics
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, Request, WebSocket, WebSocketDisconnect, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from chat_relay.core.settings import get_websocket_settings
from chat_relay.features.realtime.schemas import (
    ChatFrame,
    ClientFrameType,
    ConnectedMessage,
    ConnectionStats,
    ErrorCode,
    ErrorMessage,
    EventMessage,
    ServerPongMessage,
)
from chat_relay.infra.logging import set_log_context
from chat_relay.infra.metrics.prometheus import (
    chat_events_routed_total,
    chat_presence_tracked_senders,
    websocket_messages_received_total,
)
from chat_relay.infra.realtime import get_connection_manager

if TYPE_CHECKING:
    from starlette.requests import HTTPConnection

    from chat_relay.features.chat import ChatRelay
    from chat_relay.infra.realtime.manager import ConnectionManager

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/ws", tags=["realtime"])

_KNOWN_FRAME_TYPES = frozenset(t.value for t in ClientFrameType)


def _get_manager_safe() -> ConnectionManager | None:
    """Get connection manager, handling not-initialized case."""
    try:
        return get_connection_manager()
    except RuntimeError:
        return None


def _get_relay_safe(connection: HTTPConnection) -> ChatRelay | None:
    """Get the application's chat relay, if the lifespan has built one."""
    return getattr(connection.app.state, "chat_relay", None)


@router.websocket("/chat")
async def websocket_endpoint(websocket: WebSocket) -> None:
    """WebSocket connection endpoint for chat clients.

    Every connection is subscribed to the chat and typing topics. The
    ``connected`` frame lists the subscriptions that were accepted.

    Message Protocol:
        Client → Server:
        - {"type": "message", "event": {"sender": "...", "type": "NEW_USER", ...}}
        - {"type": "typing", "event": {"sender": "...", "type": "TYPING_START"}}
        - {"type": "ping"}
        - {"type": "pong"}

        Server → Client:
        - {"type": "connected", "connection_id": "...", "topics": [...]}
        - {"type": "event", "topic": "chat", "event": {...}}
        - {"type": "ping"}
        - {"type": "pong"}
        - {"type": "error", "code": "...", "message": "...", "details": {...}}
    """
    ws_settings = get_websocket_settings()
    if not ws_settings.enabled:
        await websocket.close(code=status.WS_1013_TRY_AGAIN_LATER, reason="WebSocket disabled")
        return

    manager = _get_manager_safe()
    relay = _get_relay_safe(websocket)
    if manager is None or relay is None:
        await websocket.close(code=status.WS_1013_TRY_AGAIN_LATER, reason="Server not ready")
        return

    connection_id: str | None = None
    try:
        connection_id = await manager.connect(websocket)
        set_log_context(connection_id=connection_id)

        subscribed = [
            topic
            for topic in (relay.message_router.topic, relay.typing_router.topic)
            if await manager.subscribe(connection_id, topic)
        ]

        connected = ConnectedMessage(connection_id=connection_id, topics=subscribed)
        await websocket.send_json(connected.to_wire())

        await _handle_messages(websocket, connection_id, manager, relay)

    except ConnectionRefusedError as e:
        logger.warning("WebSocket connection refused", extra={"reason": str(e)})
        await websocket.close(code=status.WS_1013_TRY_AGAIN_LATER, reason=str(e))

    except WebSocketDisconnect:
        logger.debug("WebSocket client disconnected normally")

    except Exception as e:
        logger.exception("WebSocket error", extra={"error": str(e)})

    finally:
        if connection_id is not None:
            await manager.disconnect(connection_id)


async def _send_error(
    websocket: WebSocket,
    code: ErrorCode,
    message: str,
    details: dict[str, Any] | None = None,
) -> None:
    error = ErrorMessage(code=code, message=message, details=details)
    await websocket.send_json(error.to_wire())


async def _handle_messages(
    websocket: WebSocket,
    connection_id: str,
    manager: ConnectionManager,
    relay: ChatRelay,
) -> None:
    """Handle incoming frames, one at a time, in arrival order."""
    max_size = get_websocket_settings().max_message_size

    async for raw_message in websocket.iter_text():
        try:
            if len(raw_message.encode()) > max_size:
                websocket_messages_received_total.labels(message_type="oversized").inc()
                await _send_error(
                    websocket,
                    ErrorCode.FRAME_TOO_LARGE,
                    f"Frame exceeds {max_size} bytes",
                )
                continue

            message = json.loads(raw_message)
            if not isinstance(message, dict):
                websocket_messages_received_total.labels(message_type="invalid").inc()
                await _send_error(websocket, ErrorCode.INVALID_FRAME, "Frame must be a JSON object")
                continue

            msg_type = message.get("type")
            known = isinstance(msg_type, str) and msg_type in _KNOWN_FRAME_TYPES
            websocket_messages_received_total.labels(
                message_type=msg_type if known else "unknown",
            ).inc()

            if msg_type == ClientFrameType.PING:
                await websocket.send_json(ServerPongMessage().to_wire())

            elif msg_type == ClientFrameType.PONG:
                manager.touch(connection_id)

            elif msg_type in (ClientFrameType.MESSAGE, ClientFrameType.TYPING):
                frame = ChatFrame.model_validate(message)
                await _relay_event(frame, manager, relay)

            else:
                await _send_error(
                    websocket,
                    ErrorCode.UNKNOWN_TYPE,
                    f"Unknown message type: {msg_type}",
                )

        except json.JSONDecodeError:
            await _send_error(websocket, ErrorCode.INVALID_JSON, "Invalid JSON message")

        except ValidationError as e:
            await _send_error(
                websocket,
                ErrorCode.INVALID_FRAME,
                "Malformed frame",
                details={"errors": e.errors(include_url=False, include_context=False)},
            )

        except Exception as e:
            logger.exception("Error handling WebSocket message")
            await _send_error(
                websocket,
                ErrorCode.INTERNAL_ERROR,
                "Internal error processing message",
                details={"error": str(e)},
            )


async def _relay_event(
    frame: ChatFrame,
    manager: ConnectionManager,
    relay: ChatRelay,
) -> int:
    """Route a client event and fan it out to its topic."""
    set_log_context(sender=frame.event.sender)
    if frame.type == ClientFrameType.MESSAGE:
        routed = relay.message_router.route(frame.event)
    else:
        routed = relay.typing_router.route(frame.event)

    chat_events_routed_total.labels(
        topic=routed.topic,
        event_type=routed.event.kind.value,
    ).inc()
    chat_presence_tracked_senders.set(relay.registry.size())

    outgoing = EventMessage(topic=routed.topic, event=routed.event)
    return await manager.broadcast(routed.topic, outgoing.to_wire())


@router.get(
    "/stats",
    response_model=ConnectionStats,
    summary="Get WebSocket connection statistics",
    description="Returns current connection, topic and presence statistics.",
)
async def get_stats(request: Request) -> ConnectionStats | JSONResponse:
    """Get current WebSocket connection statistics."""
    manager = _get_manager_safe()
    if manager is None:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": "WebSocket manager not initialized"},
        )

    relay = _get_relay_safe(request)

    return ConnectionStats(
        total_connections=manager.connection_count,
        total_topics=manager.topic_count,
        topics=manager.topic_stats(),
        tracked_senders=relay.registry.size() if relay is not None else 0,
    )
