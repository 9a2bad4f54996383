"""Prometheus metrics for monitoring."""

from __future__ import annotations

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram

# Custom registry so tests and multiple app instances don't collide with the default one
REGISTRY = CollectorRegistry()

# WebSocket metrics
websocket_connections_total = Gauge(
    "websocket_connections_total",
    "Current number of active WebSocket connections",
    registry=REGISTRY,
)

websocket_messages_received_total = Counter(
    "websocket_messages_received_total",
    "Total number of WebSocket frames received from clients",
    ["message_type"],
    registry=REGISTRY,
)

websocket_messages_sent_total = Counter(
    "websocket_messages_sent_total",
    "Total number of WebSocket frames sent to clients",
    ["message_type"],
    registry=REGISTRY,
)

websocket_connection_duration_seconds = Histogram(
    "websocket_connection_duration_seconds",
    "Duration of WebSocket connections in seconds",
    buckets=(1, 5, 10, 30, 60, 120, 300, 600, 1800, 3600),
    registry=REGISTRY,
)

websocket_broadcast_recipients = Histogram(
    "websocket_broadcast_recipients",
    "Number of recipients per broadcast message",
    buckets=(1, 5, 10, 25, 50, 100, 250, 500, 1000),
    registry=REGISTRY,
)

# Chat metrics
chat_events_routed_total = Counter(
    "chat_events_routed_total",
    "Total number of chat events routed, by topic and event kind",
    ["topic", "event_type"],
    registry=REGISTRY,
)

chat_presence_tracked_senders = Gauge(
    "chat_presence_tracked_senders",
    "Number of senders currently holding an assigned color",
    registry=REGISTRY,
)

# Application metrics
application_info = Gauge(
    "application_info",
    "Application information",
    ["version", "service", "environment"],
    registry=REGISTRY,
)
