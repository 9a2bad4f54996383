"""CLI utilities for formatting output."""

from chat_relay.cli.utils.formatters import error, info, section, success, warning

__all__ = [
    "error",
    "info",
    "section",
    "success",
    "warning",
]
