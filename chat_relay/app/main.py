"""FastAPI application factory."""

from __future__ import annotations

from fastapi import FastAPI

from chat_relay.app.lifespan import lifespan
from chat_relay.app.router import setup_routers
from chat_relay.core.settings import get_settings


def create_app() -> FastAPI:
    """Create and configure FastAPI application.

    Uses unified settings from core.settings for all configuration.
    Settings are loaded once and cached via LRU cache.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()
    app_settings = settings.app

    app = FastAPI(
        title=app_settings.title,
        description=app_settings.description,
        version=app_settings.version,
        docs_url=app_settings.docs_url,
        redoc_url=None,
        openapi_url=app_settings.openapi_url,
        debug=app_settings.debug,
        lifespan=lifespan,
    )

    setup_routers(app, app_settings, settings.websocket)

    return app


# Application instance for uvicorn
app = create_app()
