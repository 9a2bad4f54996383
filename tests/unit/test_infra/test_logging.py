"""Unit tests for structured logging infrastructure."""
from __future__ import annotations

import asyncio
import json
import logging
import sys
from unittest.mock import patch

import pytest

from chat_relay.core.settings import LoggingSettings
from chat_relay.infra.logging import (
    ContextInjectingFilter,
    JSONFormatter,
    clear_log_context,
    get_log_context,
    remove_from_log_context,
    set_log_context,
)
from chat_relay.infra.logging import config as logging_config


def _record(msg: str = "hello", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="chat_relay.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture(autouse=True)
def _clean_context():
    clear_log_context()
    yield
    clear_log_context()


class TestLogContext:
    def test_set_and_get(self):
        set_log_context(connection_id="c-1")
        set_log_context(sender="alice")

        assert get_log_context() == {"connection_id": "c-1", "sender": "alice"}

    def test_remove_keys(self):
        set_log_context(connection_id="c-1", sender="alice")

        remove_from_log_context("sender", "missing")

        assert get_log_context() == {"connection_id": "c-1"}

    def test_get_returns_copy(self):
        set_log_context(connection_id="c-1")
        get_log_context()["connection_id"] = "tampered"

        assert get_log_context()["connection_id"] == "c-1"

    async def test_tasks_have_isolated_context(self):
        async def bind(value: str) -> dict:
            set_log_context(connection_id=value)
            await asyncio.sleep(0)
            return get_log_context()

        first, second = await asyncio.gather(bind("a"), bind("b"))

        assert first == {"connection_id": "a"}
        assert second == {"connection_id": "b"}
        assert get_log_context() == {}


class TestContextInjectingFilter:
    def test_injects_context(self):
        set_log_context(connection_id="c-9")
        record = _record()

        assert ContextInjectingFilter().filter(record) is True
        assert record.connection_id == "c-9"

    def test_does_not_overwrite_record_attributes(self):
        set_log_context(sender="from-context")
        record = _record(sender="from-extra")

        ContextInjectingFilter().filter(record)

        assert record.sender == "from-extra"


class TestJSONFormatter:
    def test_basic_fields(self):
        output = json.loads(JSONFormatter().format(_record("User joined chat")))

        assert output["level"] == "INFO"
        assert output["logger"] == "chat_relay.test"
        assert output["message"] == "User joined chat"
        assert output["timestamp"].endswith("Z")

    def test_extra_and_static_fields(self):
        formatter = JSONFormatter(static={"service": "chat-relay"})

        output = json.loads(formatter.format(_record(sender="alice", color="#FF5733")))

        assert output["service"] == "chat-relay"
        assert output["sender"] == "alice"
        assert output["color"] == "#FF5733"
        assert "msg" not in output
        assert "args" not in output

    def test_exception_on_one_line(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = _record(exc_info=sys.exc_info())

        line = JSONFormatter().format(record)

        assert "\n" not in line
        assert "RuntimeError: boom" in json.loads(line)["exception"]

    def test_no_trace_ids_without_span(self):
        output = json.loads(JSONFormatter().format(_record()))

        assert "trace_id" not in output
        assert "span_id" not in output

    def test_thread_info_optional(self):
        output = json.loads(JSONFormatter(include_thread_info=True).format(_record()))

        assert "thread_id" in output
        assert "thread_name" in output


class TestSetupLogging:
    def test_uses_settings_kwargs(self):
        settings = LoggingSettings(level="DEBUG", json_logs=False)

        with (
            patch.object(logging_config, "configure_logging") as mock_configure,
            patch.object(logging_config, "_LOGGING_INITIALIZED", False),
        ):
            logging_config.setup_logging(settings)

        kwargs = mock_configure.call_args.kwargs
        assert kwargs["log_level"] == "DEBUG"
        assert kwargs["json_logs"] is False

    def test_idempotent_unless_forced(self):
        settings = LoggingSettings()

        with (
            patch.object(logging_config, "configure_logging") as mock_configure,
            patch.object(logging_config, "_LOGGING_INITIALIZED", True),
        ):
            logging_config.setup_logging(settings)
            assert mock_configure.call_count == 0

            logging_config.setup_logging(settings, force=True)
            assert mock_configure.call_count == 1

    def test_overrides_win(self):
        with (
            patch.object(logging_config, "configure_logging") as mock_configure,
            patch.object(logging_config, "_LOGGING_INITIALIZED", False),
        ):
            logging_config.setup_logging(LoggingSettings(), log_level="ERROR")

        assert mock_configure.call_args.kwargs["log_level"] == "ERROR"


class TestConfigureLogging:
    def test_context_filter_on_queue_handler(self):
        root = logging.getLogger()
        previous_level = root.level
        try:
            logging_config.configure_logging(
                log_level="INFO",
                console_enabled=False,
                capture_warnings=False,
            )

            queue_handler = logging_config._queue_handler
            assert queue_handler in root.handlers
            assert any(isinstance(f, ContextInjectingFilter) for f in queue_handler.filters)
        finally:
            logging_config.shutdown()
            root.setLevel(previous_level)

        assert logging_config._queue_handler is None
