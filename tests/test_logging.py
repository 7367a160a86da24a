"""Tests for the structured logging helpers."""

import json
import logging

from censo_lookup.utils.logging import (
    PerformanceLogger,
    clear_execution_context,
    digest,
    get_logger,
    request_id,
    set_execution_context,
)


def _events(caplog):
    return [json.loads(record.getMessage()) for record in caplog.records]


class TestStructuredLogger:
    def test_renders_event_and_extra_as_json(self, caplog):
        logger = get_logger("censo_lookup.test")

        with caplog.at_level(logging.INFO):
            logger.info("endpoint_marked_failed", extra={"endpoint": "https://a", "lineno": 1})

        event = _events(caplog)[0]
        assert event["event"] == "endpoint_marked_failed"
        assert event["endpoint"] == "https://a"
        assert event["module"] == "censo_lookup.test"
        assert "lineno" not in event

    def test_includes_request_id_and_context(self, caplog):
        logger = get_logger("censo_lookup.test")
        token = request_id.set("abc123")
        set_execution_context(command="lookup")
        try:
            with caplog.at_level(logging.INFO):
                logger.info("lookup_cache_hit")
        finally:
            request_id.reset(token)
            clear_execution_context()

        event = _events(caplog)[0]
        assert event["request_id"] == "abc123"
        assert event["context"] == {"command": "lookup"}


class TestPerformanceLogger:
    def test_logs_completion_with_metadata(self, caplog):
        logger = get_logger("censo_lookup.test")

        with caplog.at_level(logging.INFO):
            with PerformanceLogger("perform_lookup", logger, threshold_ms=10_000) as perf:
                perf.add_metadata(found=True)

        event = _events(caplog)[-1]
        assert event["event"] == "perform_lookup_completed"
        assert event["status"] == "completed"
        assert event["found"] is True

    def test_logs_failure(self, caplog):
        logger = get_logger("censo_lookup.test")

        with caplog.at_level(logging.INFO):
            try:
                with PerformanceLogger("refresh", logger):
                    raise ValueError("boom")
            except ValueError:
                pass

        event = _events(caplog)[-1]
        assert event["status"] == "failed"
        assert event["error_type"] == "ValueError"


def test_digest_is_stable_and_short():
    assert digest("123456") == digest("123456")
    assert digest("123456") != digest("123457")
    assert len(digest("123456")) == 12
