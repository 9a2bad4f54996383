"""Server management commands."""

import subprocess
import sys

import click

from chat_relay.cli.utils import error, info, success, warning
from chat_relay.core.settings import get_app_settings

APP_TARGET = "chat_relay.app.main:app"


@click.group(name="server")
def server() -> None:
    """Server management commands."""


@server.command()
@click.option(
    "--host",
    default=None,
    help="Host to bind (default: from settings or 0.0.0.0)",
)
@click.option(
    "--port",
    default=None,
    type=int,
    help="Port to bind (default: from settings or 8000)",
)
@click.option(
    "--reload/--no-reload",
    default=True,
    help="Enable auto-reload on code changes",
)
@click.option(
    "--workers",
    default=1,
    type=int,
    help="Number of worker processes (disable with --reload)",
)
@click.option(
    "--log-level",
    default="info",
    type=click.Choice(["critical", "error", "warning", "info", "debug", "trace"]),
    help="Log level",
)
def dev(
    host: str | None,
    port: int | None,
    reload: bool,
    workers: int,
    log_level: str,
) -> None:
    """Run development server with auto-reload."""
    info("Starting development server...")

    settings = get_app_settings()
    host = host or settings.host
    port = port or settings.port

    if reload and workers > 1:
        warning("--reload is incompatible with --workers > 1. Setting workers to 1.")
        workers = 1

    info(f"Server will run at: http://{host}:{port}")
    info(f"Chat WebSocket: ws://{host}:{port}{settings.api_prefix}/ws/chat")
    info(f"Environment: {settings.environment}")
    info(f"Auto-reload: {'enabled' if reload else 'disabled'}")

    try:
        cmd = [
            "uvicorn",
            APP_TARGET,
            "--host",
            host,
            "--port",
            str(port),
            "--log-level",
            log_level,
        ]

        if reload:
            cmd.append("--reload")
        else:
            cmd.extend(["--workers", str(workers)])

        success("Starting uvicorn...")
        subprocess.run(cmd, check=False)

    except KeyboardInterrupt:
        info("\nShutting down server...")
    except Exception as e:
        error(f"Failed to start server: {e}")
        sys.exit(1)


@server.command()
@click.option(
    "--host",
    default=None,
    help="Host to bind (default: from settings)",
)
@click.option(
    "--port",
    default=None,
    type=int,
    help="Port to bind (default: from settings)",
)
@click.option(
    "--workers",
    default=1,
    type=int,
    help="Number of worker processes (>1 requires REDIS_URL so presence and fan-out are shared)",
)
@click.option(
    "--access-log/--no-access-log",
    default=True,
    help="Enable access logging",
)
def prod(
    host: str | None,
    port: int | None,
    workers: int,
    access_log: bool,
) -> None:
    """Run production server (no auto-reload)."""
    info("Starting production server...")

    settings = get_app_settings()
    host = host or settings.host
    port = port or settings.port

    if workers > 1:
        warning(
            "Each worker keeps its own presence registry; "
            "senders may see different colors across workers.",
        )

    info(f"Server will run at: http://{host}:{port}")
    info(f"Environment: {settings.environment}")
    info(f"Workers: {workers}")
    info(f"Access log: {'enabled' if access_log else 'disabled'}")

    try:
        cmd = [
            "uvicorn",
            APP_TARGET,
            "--host",
            host,
            "--port",
            str(port),
            "--workers",
            str(workers),
            "--log-level",
            "info",
        ]

        if not access_log:
            cmd.append("--no-access-log")

        success("Starting uvicorn in production mode...")
        subprocess.run(cmd, check=False)

    except KeyboardInterrupt:
        info("\nShutting down server...")
    except Exception as e:
        error(f"Failed to start server: {e}")
        sys.exit(1)
