"""Realtime infrastructure for WebSocket connections.

This module provides the transport for the chat relay:
- ConnectionManager: Track WebSocket connections and their topic subscriptions
- Redis PubSub: Optional backplane for fan-out across multiple instances
- Broadcasting: Send one frame to every subscriber of a topic

Architecture:
    Client A (Instance 1) ──┐
    Client B (Instance 2) ──┼── Redis PubSub ──► All Clients
    Client C (Instance 1) ──┘

Usage:
    from chat_relay.infra.realtime import get_connection_manager

    manager = get_connection_manager()
    await manager.broadcast("chat", {"type": "event", "topic": "chat", "event": {...}})
"""

from chat_relay.infra.realtime.manager import (
    ConnectionInfo,
    ConnectionManager,
    get_connection_manager,
    start_connection_manager,
    stop_connection_manager,
)

__all__ = [
    "ConnectionInfo",
    "ConnectionManager",
    "get_connection_manager",
    "start_connection_manager",
    "stop_connection_manager",
]
