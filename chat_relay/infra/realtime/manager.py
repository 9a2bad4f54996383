"""WebSocket connection manager with optional Redis PubSub fan-out.

This module provides the transport the chat routers publish through:
- Tracks active WebSocket connections per topic
- Uses Redis PubSub for cross-instance broadcasting when configured
- Handles connection lifecycle (connect, disconnect)
- Sends heartbeat pings and drops connections that stop answering

The manager supports two modes:
1. Local-only: Messages only reach clients on the same instance
2. Redis PubSub: Messages broadcast to all instances

Fan-out is best-effort. A failed send drops that one connection and is never
retried; other subscribers are unaffected.
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
import contextlib
from dataclasses import dataclass, field
import json
import logging
import time
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from chat_relay.core.settings import get_redis_settings, get_websocket_settings
from chat_relay.infra.metrics.prometheus import (
    websocket_broadcast_recipients,
    websocket_connection_duration_seconds,
    websocket_connections_total,
    websocket_messages_sent_total,
)

if TYPE_CHECKING:
    from fastapi import WebSocket
    from redis.asyncio import Redis
    from redis.asyncio.client import PubSub

    from chat_relay.core.settings import WebSocketSettings

logger = logging.getLogger(__name__)


@dataclass
class ConnectionInfo:
    """Metadata about a WebSocket connection."""

    connection_id: str
    websocket: WebSocket
    topics: set[str] = field(default_factory=set)
    connected_at: float = field(default_factory=time.time)
    last_ping: float = field(default_factory=time.time)


class ConnectionManager:
    """Manages WebSocket connections with optional Redis PubSub.

    Example:
        manager = ConnectionManager()
        await manager.start()

        # In WebSocket endpoint
        connection_id = await manager.connect(websocket)
        await manager.subscribe(connection_id, "chat")
        try:
            async for frame in websocket.iter_text():
                ...
        finally:
            await manager.disconnect(connection_id)

        # Fan out to every subscriber of a topic (all instances if Redis enabled)
        await manager.broadcast("chat", {"type": "event", "topic": "chat", "event": {...}})
    """

    def __init__(
        self,
        redis_client: Redis | None = None,
        channel_prefix: str | None = None,
        settings: WebSocketSettings | None = None,
    ) -> None:
        """Initialize the connection manager.

        Args:
            redis_client: Optional Redis client for PubSub. If None, runs in
                          local-only mode (single instance).
            channel_prefix: Prefix for Redis PubSub channels. Defaults to the
                            configured WS_CHANNEL_PREFIX.
            settings: WebSocket settings override (defaults to cached settings).
        """
        self._settings = settings or get_websocket_settings()
        self._redis = redis_client
        self._channel_prefix = (
            channel_prefix if channel_prefix is not None else self._settings.channel_prefix
        )

        # connection_id -> ConnectionInfo
        self._connections: dict[str, ConnectionInfo] = {}
        # topic -> set of connection_ids
        self._topic_connections: dict[str, set[str]] = defaultdict(set)

        self._pubsub: PubSub | None = None
        self._listener_task: asyncio.Task | None = None
        self._heartbeat_task: asyncio.Task | None = None
        self._running = False

    @property
    def is_running(self) -> bool:
        """Whether start() has been called and stop() has not."""
        return self._running

    async def start(self) -> None:
        """Start the PubSub listener (if Redis is configured) and the heartbeat task."""
        if self._running:
            return

        self._running = True

        if self._redis is not None:
            await self._start_pubsub_listener()
            logger.info(
                "Connection manager started with Redis PubSub",
                extra={"channel_prefix": self._channel_prefix},
            )
        else:
            logger.info("Connection manager started in local-only mode")

        if self._settings.heartbeat_interval > 0:
            self._heartbeat_task = asyncio.create_task(self._heartbeat_loop())
            logger.debug(
                "Heartbeat task started",
                extra={"interval": self._settings.heartbeat_interval},
            )

    async def stop(self) -> None:
        """Stop the connection manager and close all connections."""
        self._running = False

        if self._heartbeat_task:
            self._heartbeat_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._heartbeat_task
            self._heartbeat_task = None

        if self._listener_task:
            self._listener_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._listener_task
            self._listener_task = None

        if self._pubsub:
            await self._pubsub.aclose()
            self._pubsub = None

        closed = len(self._connections)
        for conn_info in list(self._connections.values()):
            with contextlib.suppress(Exception):
                await conn_info.websocket.close(code=1001, reason="Server shutdown")

        self._connections.clear()
        self._topic_connections.clear()
        websocket_connections_total.set(0)

        logger.info(
            "Connection manager stopped",
            extra={"connections_closed": closed},
        )

    async def connect(self, websocket: WebSocket) -> str:
        """Accept a new WebSocket connection with no topic subscriptions.

        Args:
            websocket: FastAPI WebSocket instance

        Returns:
            Unique connection ID

        Raises:
            ConnectionRefusedError: If max connections reached
        """
        if len(self._connections) >= self._settings.max_connections:
            logger.warning(
                "Connection refused: max connections reached",
                extra={"max": self._settings.max_connections},
            )
            raise ConnectionRefusedError("Maximum connections reached")

        await websocket.accept()

        connection_id = str(uuid4())
        self._connections[connection_id] = ConnectionInfo(
            connection_id=connection_id,
            websocket=websocket,
        )

        websocket_connections_total.set(len(self._connections))

        logger.info(
            "WebSocket connected",
            extra={
                "connection_id": connection_id,
                "total_connections": len(self._connections),
            },
        )

        return connection_id

    async def disconnect(self, connection_id: str) -> None:
        """Remove a WebSocket connection.

        Args:
            connection_id: ID of the connection to remove
        """
        conn_info = self._connections.pop(connection_id, None)
        if conn_info is None:
            return

        for topic in conn_info.topics:
            self._topic_connections[topic].discard(connection_id)
            if not self._topic_connections[topic]:
                del self._topic_connections[topic]
                # Unsubscribe from Redis PubSub if no more local subscribers
                if self._pubsub:
                    await self._pubsub.unsubscribe(f"{self._channel_prefix}{topic}")

        with contextlib.suppress(Exception):
            await conn_info.websocket.close()

        duration = time.time() - conn_info.connected_at
        websocket_connections_total.set(len(self._connections))
        websocket_connection_duration_seconds.observe(duration)

        logger.info(
            "WebSocket disconnected",
            extra={
                "connection_id": connection_id,
                "duration_seconds": duration,
                "total_connections": len(self._connections),
            },
        )

    async def subscribe(self, connection_id: str, topic: str) -> bool:
        """Subscribe a connection to a topic.

        Args:
            connection_id: ID of the connection
            topic: Topic to subscribe to

        Returns:
            True if subscribed, False if connection not found or at its topic limit
        """
        conn_info = self._connections.get(connection_id)
        if conn_info is None:
            return False

        if topic in conn_info.topics:
            return True

        if len(conn_info.topics) >= self._settings.max_topics_per_connection:
            logger.warning(
                "Topic subscription refused: per-connection limit reached",
                extra={"connection_id": connection_id, "topic": topic},
            )
            return False

        conn_info.topics.add(topic)
        is_first_subscriber = not self._topic_connections.get(topic)
        self._topic_connections[topic].add(connection_id)

        # Subscribe to Redis PubSub if this is the first local subscriber
        if is_first_subscriber and self._pubsub:
            await self._pubsub.subscribe(f"{self._channel_prefix}{topic}")
            self._ensure_listener()
            logger.debug(
                "Subscribed to Redis PubSub channel",
                extra={"topic": topic},
            )

        return True

    async def broadcast(self, topic: str, message: dict[str, Any]) -> int:
        """Broadcast a message to all subscribers of a topic.

        If Redis is configured, the message is published to Redis PubSub,
        reaching all server instances. Otherwise, only local connections
        receive the message.

        Args:
            topic: Topic to broadcast to
            message: Message to send (will be JSON serialized)

        Returns:
            Number of connections the message was sent to (local only)
        """
        if self._redis is not None:
            await self._redis.publish(
                f"{self._channel_prefix}{topic}",
                json.dumps(message),
            )
            # Local delivery happens via the PubSub listener
            return 0

        return await self._send_to_topic(topic, message)

    async def send_to_connection(
        self,
        connection_id: str,
        message: dict[str, Any],
    ) -> bool:
        """Send a message to a specific connection.

        Args:
            connection_id: ID of the connection
            message: Message to send

        Returns:
            True if sent, False if connection not found or the send failed
        """
        conn_info = self._connections.get(connection_id)
        if conn_info is None:
            return False

        try:
            await conn_info.websocket.send_json(message)
        except Exception as e:
            logger.warning(
                "Failed to send message to connection",
                extra={"connection_id": connection_id, "error": str(e)},
            )
            # Connection is likely dead, remove it
            await self.disconnect(connection_id)
            return False

        websocket_messages_sent_total.labels(
            message_type=str(message.get("type", "unknown")),
        ).inc()
        return True

    def touch(self, connection_id: str) -> None:
        """Record a pong for heartbeat bookkeeping."""
        conn_info = self._connections.get(connection_id)
        if conn_info is not None:
            conn_info.last_ping = time.time()

    def topic_stats(self) -> dict[str, int]:
        """Map each active topic to its local subscriber count."""
        return {topic: len(ids) for topic, ids in self._topic_connections.items()}

    @property
    def connection_count(self) -> int:
        """Total number of active connections."""
        return len(self._connections)

    @property
    def topic_count(self) -> int:
        """Number of active topics."""
        return len(self._topic_connections)

    # Private methods

    async def _send_to_topic(self, topic: str, message: dict[str, Any]) -> int:
        """Send message to all local connections in a topic."""
        connection_ids = self._topic_connections.get(topic, set())
        count = 0

        for connection_id in list(connection_ids):
            if await self.send_to_connection(connection_id, message):
                count += 1

        if count:
            websocket_broadcast_recipients.observe(count)
        return count

    async def _start_pubsub_listener(self) -> None:
        """Create the Redis PubSub handle; the listener starts on first subscribe."""
        if self._redis is None:
            return

        self._pubsub = self._redis.pubsub()

    def _ensure_listener(self) -> None:
        # PubSub.listen() returns once no channel is subscribed, so restart on demand
        if self._listener_task is None or self._listener_task.done():
            self._listener_task = asyncio.create_task(self._pubsub_listener())

    async def _pubsub_listener(self) -> None:
        """Listen for Redis PubSub messages and broadcast locally."""
        if self._pubsub is None:
            return

        try:
            async for message in self._pubsub.listen():
                if not self._running:
                    break

                if message["type"] != "message":
                    continue

                try:
                    channel = message["channel"]
                    if isinstance(channel, bytes):
                        channel = channel.decode()

                    topic = channel.removeprefix(self._channel_prefix)

                    data = message["data"]
                    if isinstance(data, bytes):
                        data = data.decode()
                    payload = json.loads(data)

                    await self._send_to_topic(topic, payload)

                except Exception as e:
                    logger.error(
                        "Error processing PubSub message",
                        extra={"error": str(e)},
                    )

        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.error("PubSub listener error", extra={"error": str(e)})

    async def _heartbeat_loop(self) -> None:
        """Send periodic pings to all connections."""
        try:
            while self._running:
                await asyncio.sleep(self._settings.heartbeat_interval)
                await self._heartbeat_once()
        except asyncio.CancelledError:
            pass

    async def _heartbeat_once(self) -> None:
        # Deferred: the realtime feature package imports this module
        from chat_relay.features.realtime.schemas import ServerPingMessage

        ping = ServerPingMessage().to_wire()
        now = time.time()
        timeout = self._settings.connection_timeout

        for conn_id in list(self._connections.keys()):
            conn_info = self._connections.get(conn_id)
            if conn_info is None:
                continue

            if timeout > 0 and (now - conn_info.last_ping) > timeout:
                logger.warning(
                    "Connection timed out",
                    extra={"connection_id": conn_id},
                )
                await self.disconnect(conn_id)
                continue

            await self.send_to_connection(conn_id, ping)


# Global manager instance
_manager: ConnectionManager | None = None


def get_connection_manager() -> ConnectionManager:
    """Get the global connection manager instance.

    Returns:
        ConnectionManager instance

    Raises:
        RuntimeError: If manager not initialized
    """
    if _manager is None:
        raise RuntimeError(
            "Connection manager not initialized. Call start_connection_manager() first."
        )
    return _manager


async def start_connection_manager() -> ConnectionManager:
    """Initialize and start the global connection manager.

    Uses Redis for PubSub if configured, otherwise runs in local-only mode.

    Returns:
        ConnectionManager instance
    """
    global _manager

    redis_settings = get_redis_settings()
    redis_client = None

    if redis_settings.is_configured:
        try:
            from redis.asyncio import ConnectionPool, Redis

            pool: ConnectionPool = ConnectionPool.from_url(
                redis_settings.url,
                **redis_settings.connection_pool_kwargs(),
            )
            redis_client = Redis(connection_pool=pool)
            await redis_client.ping()
            logger.info("WebSocket manager using Redis PubSub for horizontal scaling")
        except Exception as e:
            logger.warning(
                "Failed to connect to Redis for WebSocket PubSub, using local-only mode",
                extra={"error": str(e)},
            )
            redis_client = None

    _manager = ConnectionManager(redis_client=redis_client)
    await _manager.start()

    return _manager


async def stop_connection_manager() -> None:
    """Stop and cleanup the global connection manager."""
    global _manager

    if _manager is not None:
        await _manager.stop()
        _manager = None
