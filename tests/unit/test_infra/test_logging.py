"""Tests for the structured logging helpers."""

from __future__ import annotations

import json
import logging
import sys

from reservation_service.infra.logging import (
    ContextInjectingFilter,
    JSONFormatter,
    clear_log_context,
    get_log_context,
    log_context,
    set_log_context,
)


def _record(msg: str = "hello", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="reservation_service.test",
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


class TestLogContext:
    def setup_method(self) -> None:
        clear_log_context()

    def test_set_and_clear(self) -> None:
        set_log_context(connection_id="abc")
        assert get_log_context() == {"connection_id": "abc"}

        clear_log_context()
        assert get_log_context() == {}

    def test_context_manager_restores_previous(self) -> None:
        set_log_context(request_id="r1")

        with log_context(connection_id="abc"):
            assert get_log_context() == {"request_id": "r1", "connection_id": "abc"}

        assert get_log_context() == {"request_id": "r1"}

    def test_filter_copies_context_onto_record(self) -> None:
        record = _record()

        with log_context(connection_id="abc", origin="http://localhost:3000"):
            assert ContextInjectingFilter().filter(record)

        assert record.connection_id == "abc"
        assert record.origin == "http://localhost:3000"

    def test_filter_keeps_explicit_extra(self) -> None:
        record = _record(connection_id="explicit")

        with log_context(connection_id="from-context"):
            ContextInjectingFilter().filter(record)

        assert record.connection_id == "explicit"


class TestJSONFormatter:
    def test_single_line_with_extras(self) -> None:
        formatter = JSONFormatter(static={"service": "reservation-service"})

        line = formatter.format(_record("frame %s", topic="debug-channel"))

        assert "\n" not in line
        data = json.loads(line)
        assert data["level"] == "INFO"
        assert data["logger"] == "reservation_service.test"
        assert data["message"] == "frame %s"
        assert data["topic"] == "debug-channel"
        assert data["service"] == "reservation-service"
        assert data["timestamp"].endswith("Z")

    def test_exception_is_flattened(self) -> None:
        formatter = JSONFormatter()
        try:
            raise ValueError("boom")
        except ValueError:
            record = _record()
            record.exc_info = sys.exc_info()

        data = json.loads(formatter.format(record))

        assert "ValueError: boom" in data["exception"]
        assert "\n" not in data["exception"]
