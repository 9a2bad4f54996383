"""Main CLI entry point for chat-relay management commands."""

import click

from chat_relay.cli.commands import config, server
from chat_relay.infra.logging.config import setup_logging


@click.group()
@click.version_option(version="1.0.0", prog_name="chat-relay")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Chat Relay CLI - run and inspect the realtime chat relay.

    \b
    Command Groups:
      server     Development and production servers
      config     Configuration management

    \b
    Quick Start:
      chat-relay config show     # Print effective settings
      chat-relay server dev      # Run with auto-reload
    """
    ctx.ensure_object(dict)


cli.add_command(server.server)
cli.add_command(config.config)


def main() -> None:
    """Entry point for CLI."""
    setup_logging()
    cli(obj={})


if __name__ == "__main__":
    main()
