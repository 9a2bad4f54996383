"""Router registry and setup."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from chat_relay.core.settings import get_app_settings, get_websocket_settings
from chat_relay.features.metrics.router import router as metrics_router

if TYPE_CHECKING:
    from fastapi import FastAPI

    from chat_relay.core.settings.app import AppSettings
    from chat_relay.core.settings.websocket import WebSocketSettings

logger = logging.getLogger(__name__)


def setup_routers(
    app: FastAPI,
    app_settings: AppSettings | None = None,
    websocket_settings: WebSocketSettings | None = None,
) -> None:
    """Register all feature routers with the application.

    Args:
        app: FastAPI application instance.
        app_settings: Optional application settings override for the API prefix.
        websocket_settings: Optional override for realtime/WebSocket behavior.
    """
    app_settings = app_settings or get_app_settings()
    websocket_settings = websocket_settings or get_websocket_settings()

    api_prefix = app_settings.api_prefix

    # Include metrics endpoint (no prefix - accessible at /metrics)
    app.include_router(metrics_router)

    if websocket_settings.enabled:
        from chat_relay.features.realtime.router import router as realtime_router

        app.include_router(realtime_router, prefix=api_prefix)
        logger.info("WebSocket chat router included - endpoints at %s/ws", api_prefix)

    logger.info(
        "Router setup complete",
        extra={"websocket_enabled": websocket_settings.enabled},
    )
