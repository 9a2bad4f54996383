"""Configuration management commands."""

import json
import sys
from urllib.parse import urlsplit, urlunsplit

import click

from chat_relay.cli.utils import error, info, section, success, warning
from chat_relay.core.settings import get_settings


def _mask_url(url: str | None) -> str | None:
    """Replace the password component of ``url`` with ``***``."""
    if not url:
        return url
    parts = urlsplit(url)
    if parts.password is None:
        return url
    netloc = parts.netloc.replace(f":{parts.password}@", ":***@", 1)
    return urlunsplit(parts._replace(netloc=netloc))


@click.group(name="config")
def config() -> None:
    """Configuration management commands."""


@config.command()
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["json", "table"]),
    default="table",
    help="Output format",
)
@click.option(
    "--show-secrets/--hide-secrets",
    default=False,
    help="Show sensitive values (Redis credentials)",
)
def show(output_format: str, show_secrets: bool) -> None:
    """Display current configuration settings."""
    info("Loading configuration...")

    try:
        settings = get_settings()

        if not show_secrets:
            warning("Secrets are hidden. Use --show-secrets to display them.")

        config_dict: dict[str, dict[str, object]] = {
            "app": {
                "name": settings.app.service_name,
                "version": settings.app.version,
                "environment": settings.app.environment,
                "debug": settings.app.debug,
                "host": settings.app.host,
                "port": settings.app.port,
                "api_prefix": settings.app.api_prefix,
            },
            "chat": {
                "chat_topic": settings.chat.chat_topic,
                "typing_topic": settings.chat.typing_topic,
                "palette_seed": settings.chat.palette_seed,
            },
            "websocket": {
                "enabled": settings.websocket.enabled,
                "max_connections": settings.websocket.max_connections,
                "max_message_size": settings.websocket.max_message_size,
                "heartbeat_interval": settings.websocket.heartbeat_interval,
                "connection_timeout": settings.websocket.connection_timeout,
                "max_topics_per_connection": settings.websocket.max_topics_per_connection,
            },
            "redis": {
                "configured": settings.redis.is_configured,
                "url": settings.redis.url if show_secrets else _mask_url(settings.redis.url),
                "max_connections": settings.redis.max_connections,
            },
            "logging": {
                "level": settings.logging.level,
                "json_logs": settings.logging.json_logs,
                "file_enabled": settings.logging.file_enabled,
            },
        }

        if output_format == "json":
            click.echo(json.dumps(config_dict, indent=2, default=str))
        else:
            section("CONFIGURATION SETTINGS")
            for name, values in config_dict.items():
                click.echo(f"\n[{name.upper()}]")
                for key, value in values.items():
                    click.echo(f"  {key:30} = {value}")

        success("Configuration loaded successfully!")

    except Exception as e:
        error(f"Failed to load configuration: {e}")
        sys.exit(1)
