"""Prometheus metrics endpoint.

Endpoints:
    GET /metrics - Prometheus scrape endpoint

Metrics Exposed:
    WebSocket Metrics:
        - websocket_connections_total - Active connections gauge
        - websocket_messages_received_total / websocket_messages_sent_total
        - websocket_connection_duration_seconds - Connection lifetime histogram
        - websocket_broadcast_recipients - Fan-out size histogram

    Chat Metrics:
        - chat_events_routed_total - Routed events by topic and event type
        - chat_presence_tracked_senders - Senders currently holding a color

    Application Info:
        - application_info - Service version, name, and environment labels
"""

from __future__ import annotations

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from chat_relay.infra.metrics.prometheus import REGISTRY

router = APIRouter(tags=["observability"])


@router.get("/metrics")
async def metrics() -> Response:
    """Expose Prometheus metrics in text exposition format."""
    data = generate_latest(REGISTRY)
    return Response(
        content=data,
        media_type=CONTENT_TYPE_LATEST,
        headers={"Cache-Control": "no-cache, no-store, must-revalidate"},
    )
