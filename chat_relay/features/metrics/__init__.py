"""Prometheus scrape endpoint."""

from chat_relay.features.metrics.router import router

__all__ = ["router"]
