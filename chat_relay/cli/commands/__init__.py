"""CLI command modules."""

from chat_relay.cli.commands import config, server

__all__ = ["config", "server"]
