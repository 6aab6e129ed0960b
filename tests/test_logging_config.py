"""
Tests for parkdesk.logging_config module.
"""

import json
import logging

import pytest


def _record(msg="lots_listed", **extra):
    record = logging.LogRecord("parkdesk.test", logging.INFO, __file__, 10, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestStructuredFormatter:
    def test_json_line_carries_extra_and_context(self):
        from parkdesk.logging_config import LogContextManager, StructuredFormatter

        formatter = StructuredFormatter(environment="test")
        with LogContextManager(request_id="rid-1", page="lots"):
            line = formatter.format(_record(result_count=3, statuses=frozenset({"FOR_SALE", "FOR_RENT"})))

        entry = json.loads(line)
        assert entry["message"] == "lots_listed"
        assert entry["level"] == "INFO"
        assert entry["environment"] == "test"
        assert entry["request_id"] == "rid-1"
        assert entry["page"] == "lots"
        assert entry["result_count"] == 3
        assert entry["statuses"] == "FOR_RENT,FOR_SALE"

    def test_context_cleared_after_block(self):
        from parkdesk.logging_config import LogContext, LogContextManager

        with LogContextManager(user_id="u-1"):
            assert LogContext.get("user_id") == "u-1"
        assert LogContext.get_all() == dict.fromkeys(LogContext.FIELDS)

    def test_unknown_context_field(self):
        from parkdesk.logging_config import LogContext

        with pytest.raises(KeyError):
            LogContext.set("tenant", "x")


class TestConsoleFormatter:
    def test_extras_are_appended(self):
        from parkdesk.logging_config import ConsoleFormatter

        line = ConsoleFormatter().format(_record("upload_parsed", row_count=12))
        assert "upload_parsed" in line
        assert "row_count=12" in line


class TestHelpers:
    def test_log_event_level(self, caplog):
        from parkdesk.logging_config import LogLevel, log_event

        with caplog.at_level(logging.INFO):
            log_event("cache_invalidated", level=LogLevel.WARNING, dropped=2)

        record = caplog.records[-1]
        assert record.levelno == logging.WARNING
        assert record.getMessage() == "cache_invalidated"
        assert record.dropped == 2

    def test_log_error_records_exception(self, caplog):
        from parkdesk.logging_config import log_error

        try:
            raise ValueError("bad price")
        except ValueError as exc:
            with caplog.at_level(logging.INFO):
                log_error("ui_unexpected_error", exc)

        record = caplog.records[-1]
        assert record.levelno == logging.ERROR
        assert record.error_type == "ValueError"
        assert record.error_message == "bad price"
        assert record.exc_info is not None

    def test_performance_tracker_reports_failure(self, caplog):
        from parkdesk.logging_config import PerformanceTracker

        with caplog.at_level(logging.INFO):
            with pytest.raises(RuntimeError):
                with PerformanceTracker("lots_fetch", limit=10):
                    raise RuntimeError("timeout")

        record = caplog.records[-1]
        assert record.getMessage() == "lots_fetch_failed"
        assert record.error == "timeout"
        assert record.limit == 10
        assert record.duration_ms >= 0
