"""Realtime WebSocket transport for the chat relay."""

from chat_relay.features.realtime.router import router

__all__ = ["router"]
