"""Unit tests for the Prometheus scrape endpoint."""

from __future__ import annotations

from httpx import AsyncClient
import pytest

from chat_relay.infra.metrics.prometheus import chat_events_routed_total


class TestMetricsEndpoint:
    @pytest.mark.asyncio
    async def test_metrics_exposition(self, client: AsyncClient) -> None:
        chat_events_routed_total.labels(topic="chat", event_type="NEW_USER").inc()

        response = await client.get("/metrics")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert response.headers["cache-control"] == "no-cache, no-store, must-revalidate"
        body = response.text
        assert 'chat_events_routed_total{topic="chat",event_type="NEW_USER"}' in body
        assert "websocket_connections_total" in body
        assert "chat_presence_tracked_senders" in body

    @pytest.mark.asyncio
    async def test_metrics_not_under_api_prefix(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/metrics")

        assert response.status_code == 404
