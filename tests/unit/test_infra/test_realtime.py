"""Unit tests for WebSocket realtime infrastructure."""
from __future__ import annotations

import json
import time
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from chat_relay.core.settings import WebSocketSettings
from chat_relay.features.realtime.schemas import ServerPingMessage
from chat_relay.infra.realtime import manager as manager_module
from chat_relay.infra.realtime.manager import ConnectionInfo, ConnectionManager


def _settings(**overrides) -> WebSocketSettings:
    values = {
        "max_connections": 100,
        "heartbeat_interval": 0,  # Disable heartbeat for tests
        "connection_timeout": 0,
    }
    values.update(overrides)
    return WebSocketSettings(**values)


async def _connect(manager: ConnectionManager, websocket, *topics: str) -> str:
    connection_id = await manager.connect(websocket)
    for topic in topics:
        await manager.subscribe(connection_id, topic)
    return connection_id


# ──────────────────────────────────────────────────────────────
# Test ConnectionInfo
# ──────────────────────────────────────────────────────────────


class TestConnectionInfo:
    """Tests for ConnectionInfo dataclass."""

    def test_connection_info_defaults(self):
        mock_ws = MagicMock()
        info = ConnectionInfo(connection_id="conn-789", websocket=mock_ws)

        assert info.topics == set()
        assert info.connected_at > 0
        assert info.last_ping > 0


# ──────────────────────────────────────────────────────────────
# Test ConnectionManager
# ──────────────────────────────────────────────────────────────


class TestConnectionManager:
    """Tests for ConnectionManager in local-only mode."""

    @pytest.fixture
    def manager(self) -> ConnectionManager:
        return ConnectionManager(settings=_settings())

    @pytest.mark.asyncio
    async def test_connect_accepts_websocket(self, manager):
        mock_ws = AsyncMock()

        connection_id = await _connect(manager, mock_ws, "chat")

        assert connection_id
        assert manager.connection_count == 1
        mock_ws.accept.assert_called_once()

    @pytest.mark.asyncio
    async def test_subscriptions_tracked_per_topic(self, manager):
        connection_id = await _connect(manager, AsyncMock(), "chat", "typing")

        assert manager._connections[connection_id].topics == {"chat", "typing"}
        assert manager.topic_stats() == {"chat": 1, "typing": 1}

    @pytest.mark.asyncio
    async def test_disconnect_removes_connection_and_topics(self, manager):
        mock_ws = AsyncMock()
        connection_id = await _connect(manager, mock_ws, "chat")

        await manager.disconnect(connection_id)

        assert manager.connection_count == 0
        assert manager.topic_stats() == {}
        mock_ws.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_disconnect_unknown_is_noop(self, manager):
        await manager.disconnect("does-not-exist")

        assert manager.connection_count == 0

    @pytest.mark.asyncio
    async def test_subscribe_is_idempotent(self, manager):
        connection_id = await manager.connect(AsyncMock())

        assert await manager.subscribe(connection_id, "chat") is True
        assert await manager.subscribe(connection_id, "chat") is True
        assert manager.topic_stats() == {"chat": 1}

    @pytest.mark.asyncio
    async def test_subscribe_unknown_connection(self, manager):
        assert await manager.subscribe("nope", "chat") is False

    @pytest.mark.asyncio
    async def test_topic_limit_per_connection(self):
        manager = ConnectionManager(settings=_settings(max_topics_per_connection=2))
        connection_id = await _connect(manager, AsyncMock(), "a", "b")

        assert await manager.subscribe(connection_id, "c") is False
        assert await manager.subscribe(connection_id, "a") is True
        assert manager._connections[connection_id].topics == {"a", "b"}

    @pytest.mark.asyncio
    async def test_send_to_connection(self, manager):
        mock_ws = AsyncMock()
        connection_id = await manager.connect(mock_ws)

        result = await manager.send_to_connection(connection_id, {"type": "event"})

        assert result is True
        mock_ws.send_json.assert_called_once_with({"type": "event"})

    @pytest.mark.asyncio
    async def test_send_to_nonexistent_connection(self, manager):
        assert await manager.send_to_connection("does-not-exist", {"type": "event"}) is False

    @pytest.mark.asyncio
    async def test_failed_send_drops_connection(self, manager):
        mock_ws = AsyncMock()
        mock_ws.send_json.side_effect = RuntimeError("socket closed")
        connection_id = await _connect(manager, mock_ws, "chat")

        result = await manager.send_to_connection(connection_id, {"type": "event"})

        assert result is False
        assert manager.connection_count == 0
        assert manager.topic_stats() == {}

    @pytest.mark.asyncio
    async def test_broadcast_local_only(self, manager):
        mock_ws1 = AsyncMock()
        mock_ws2 = AsyncMock()
        mock_ws3 = AsyncMock()

        await _connect(manager, mock_ws1, "chat")
        await _connect(manager, mock_ws2, "chat")
        await _connect(manager, mock_ws3, "typing")

        recipients = await manager.broadcast("chat", {"type": "event", "topic": "chat"})

        assert recipients == 2
        mock_ws1.send_json.assert_called_once()
        mock_ws2.send_json.assert_called_once()
        mock_ws3.send_json.assert_not_called()

    @pytest.mark.asyncio
    async def test_broadcast_includes_publisher(self, manager):
        publisher = AsyncMock()
        await _connect(manager, publisher, "chat")

        assert await manager.broadcast("chat", {"type": "event"}) == 1
        publisher.send_json.assert_called_once_with({"type": "event"})

    @pytest.mark.asyncio
    async def test_broadcast_survives_dead_subscriber(self, manager):
        dead = AsyncMock()
        dead.send_json.side_effect = RuntimeError("gone")
        alive = AsyncMock()
        await _connect(manager, dead, "chat")
        await _connect(manager, alive, "chat")

        recipients = await manager.broadcast("chat", {"type": "event"})

        assert recipients == 1
        alive.send_json.assert_called_once()
        assert manager.connection_count == 1

    @pytest.mark.asyncio
    async def test_broadcast_to_empty_topic(self, manager):
        assert await manager.broadcast("nobody-here", {"type": "event"}) == 0

    @pytest.mark.asyncio
    async def test_max_connections_enforcement(self):
        limited = ConnectionManager(settings=_settings(max_connections=2))

        await limited.connect(AsyncMock())
        await limited.connect(AsyncMock())

        rejected = AsyncMock()
        with pytest.raises(ConnectionRefusedError):
            await limited.connect(rejected)
        rejected.accept.assert_not_called()

    @pytest.mark.asyncio
    async def test_touch_updates_last_ping(self, manager):
        connection_id = await manager.connect(AsyncMock())
        conn = manager._connections[connection_id]
        conn.last_ping = 0

        manager.touch(connection_id)

        assert conn.last_ping > 0

    @pytest.mark.asyncio
    async def test_start_and_stop(self, manager):
        mock_ws = AsyncMock()
        await manager.start()
        assert manager.is_running is True

        await _connect(manager, mock_ws, "chat")
        await manager.stop()

        assert manager.is_running is False
        assert manager.connection_count == 0
        mock_ws.close.assert_called_with(code=1001, reason="Server shutdown")


class TestHeartbeat:
    """Tests for heartbeat pings and timeouts."""

    @pytest.mark.asyncio
    async def test_heartbeat_pings_live_connections(self):
        manager = ConnectionManager(settings=_settings(connection_timeout=60))
        mock_ws = AsyncMock()
        await manager.connect(mock_ws)

        await manager._heartbeat_once()

        mock_ws.send_json.assert_called_once_with(ServerPingMessage().to_wire())

    @pytest.mark.asyncio
    async def test_heartbeat_drops_stale_connections(self):
        manager = ConnectionManager(settings=_settings(connection_timeout=5))
        stale_ws = AsyncMock()
        live_ws = AsyncMock()
        stale_id = await manager.connect(stale_ws)
        live_id = await manager.connect(live_ws)
        manager._connections[stale_id].last_ping = time.time() - 60

        await manager._heartbeat_once()

        assert stale_id not in manager._connections
        assert live_id in manager._connections
        stale_ws.send_json.assert_not_called()
        live_ws.send_json.assert_called_once_with({"type": "ping"})


class TestRedisFanOut:
    """Tests for Redis PubSub mode with a mocked client."""

    @pytest.fixture
    def redis_client(self) -> MagicMock:
        client = MagicMock()
        client.publish = AsyncMock(return_value=1)
        pubsub = MagicMock()
        pubsub.subscribe = AsyncMock()
        pubsub.unsubscribe = AsyncMock()
        pubsub.aclose = AsyncMock()
        client.pubsub.return_value = pubsub
        return client

    @pytest.mark.asyncio
    async def test_broadcast_publishes_to_redis(self, redis_client):
        manager = ConnectionManager(redis_client=redis_client, settings=_settings())
        mock_ws = AsyncMock()
        await _connect(manager, mock_ws, "chat")

        recipients = await manager.broadcast("chat", {"type": "event", "topic": "chat"})

        assert recipients == 0
        redis_client.publish.assert_called_once_with(
            "ws:chat", json.dumps({"type": "event", "topic": "chat"}),
        )
        mock_ws.send_json.assert_not_called()

    @pytest.mark.asyncio
    async def test_first_subscriber_subscribes_channel(self, redis_client):
        manager = ConnectionManager(
            redis_client=redis_client,
            channel_prefix="relay:",
            settings=_settings(),
        )
        await manager.start()
        try:
            with patch.object(manager, "_ensure_listener") as ensure_listener:
                conn_id = await _connect(manager, AsyncMock(), "chat")
                await _connect(manager, AsyncMock(), "chat")

            pubsub = redis_client.pubsub.return_value
            pubsub.subscribe.assert_called_once_with("relay:chat")
            ensure_listener.assert_called_once()

            await manager.disconnect(conn_id)
            pubsub.unsubscribe.assert_not_called()
        finally:
            await manager.stop()

    @pytest.mark.asyncio
    async def test_pubsub_message_delivered_locally(self, redis_client):
        manager = ConnectionManager(redis_client=redis_client, settings=_settings())
        manager._running = True
        mock_ws = AsyncMock()
        await _connect(manager, mock_ws, "chat")

        async def listen():
            yield {"type": "subscribe", "channel": "ws:chat", "data": 1}
            yield {
                "type": "message",
                "channel": "ws:chat",
                "data": json.dumps({"type": "event", "topic": "chat"}),
            }

        manager._pubsub = MagicMock()
        manager._pubsub.listen = listen

        await manager._pubsub_listener()

        mock_ws.send_json.assert_called_once_with({"type": "event", "topic": "chat"})


class TestGlobalManager:
    """Tests for the module-level manager lifecycle."""

    @pytest.mark.asyncio
    async def test_get_before_start_raises(self):
        with patch.object(manager_module, "_manager", None):
            with pytest.raises(RuntimeError):
                manager_module.get_connection_manager()

    @pytest.mark.asyncio
    async def test_start_and_stop_local_only(self):
        with patch.object(manager_module, "_manager", None):
            started = await manager_module.start_connection_manager()

            assert manager_module.get_connection_manager() is started
            assert started.is_running is True

            await manager_module.stop_connection_manager()

            assert started.is_running is False
            with pytest.raises(RuntimeError):
                manager_module.get_connection_manager()
