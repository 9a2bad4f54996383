"""Application lifespan management.

Startup Order:
1. Core (logging, application info metric)
2. Chat relay (palette, presence registry, routers) stored on ``app.state``
3. WebSocket connection manager (Redis Pub/Sub when configured)

Shutdown Order: Reverse of startup
"""

from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import TYPE_CHECKING

from chat_relay.core.settings import (
    get_app_settings,
    get_chat_settings,
    get_logging_settings,
    get_redis_settings,
    get_websocket_settings,
)
from chat_relay.features.chat import ChatRelay
from chat_relay.infra.logging import setup_logging
from chat_relay.infra.metrics.prometheus import application_info
from chat_relay.infra.realtime import start_connection_manager, stop_connection_manager

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from fastapi import FastAPI

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifecycle.

    Args:
        app: FastAPI application instance.

    Yields:
        None during application runtime.
    """
    app_settings = get_app_settings()
    log_settings = get_logging_settings()
    chat_settings = get_chat_settings()
    redis_settings = get_redis_settings()
    ws_settings = get_websocket_settings()

    # Core
    setup_logging(log_settings=log_settings, force=True)
    logger.info(
        "Application starting",
        extra={
            "service": app_settings.service_name,
            "environment": app_settings.environment,
        },
    )
    application_info.labels(
        version=app_settings.version,
        service=app_settings.service_name,
        environment=app_settings.environment,
    ).set(1)

    # Chat relay
    app.state.chat_relay = ChatRelay.create(chat_settings)
    logger.info(
        "Chat relay initialized",
        extra={
            "chat_topic": chat_settings.chat_topic,
            "typing_topic": chat_settings.typing_topic,
            "seeded_palette": chat_settings.palette_seed is not None,
        },
    )

    # WebSocket
    websocket_started = False
    if ws_settings.enabled:
        try:
            await start_connection_manager()
            websocket_started = True
            logger.info("WebSocket connection manager initialized")
        except Exception as e:
            logger.warning(
                "Failed to start WebSocket manager, realtime features disabled",
                extra={"error": str(e)},
            )

    logger.info(
        "Application startup complete - listening on %s:%s",
        app_settings.host,
        app_settings.port,
        extra={
            "service": app_settings.service_name,
            "environment": app_settings.environment,
            "websocket_enabled": websocket_started,
            "redis_enabled": redis_settings.is_configured,
        },
    )

    yield

    logger.info("Application shutting down")

    if websocket_started:
        await stop_connection_manager()
        logger.info("WebSocket connection manager stopped")

    logger.info("Application shutdown complete")
