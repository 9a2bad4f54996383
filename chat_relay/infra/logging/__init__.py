"""Logging infrastructure.

Provides structured logging with:
- JSONL format for Loki/Elasticsearch ingestion
- Automatic context injection (connection_id, sender, ...)
- QueueHandler + QueueListener for non-blocking I/O
- OpenTelemetry trace correlation

Basic usage:
    from chat_relay.infra.logging import set_log_context
    import logging

    logger = logging.getLogger(__name__)

    set_log_context(connection_id="abc-123")
    logger.info("Frame received")  # Automatically includes connection_id
"""

from chat_relay.infra.logging.config import configure_logging, setup_logging, shutdown
from chat_relay.infra.logging.context import (
    ContextInjectingFilter,
    clear_log_context,
    get_log_context,
    remove_from_log_context,
    set_log_context,
)
from chat_relay.infra.logging.formatters import JSONFormatter

__all__ = [
    "ContextInjectingFilter",
    "JSONFormatter",
    "clear_log_context",
    "configure_logging",
    "get_log_context",
    "remove_from_log_context",
    "set_log_context",
    "setup_logging",
    "shutdown",
]
