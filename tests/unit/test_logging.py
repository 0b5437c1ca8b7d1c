"""
Unit tests for structured logging utilities.
"""

import json
import logging
from io import StringIO

import pytest

from teamcity_relay.utils.logging import (
    get_logger,
    JSONFormatter,
    log_build_event,
    log_api_call,
    log_error_with_context,
)


def _capture(logger, level=logging.INFO):
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(JSONFormatter())
    logger.logger.addHandler(handler)
    logger.logger.setLevel(level)
    return stream


def test_json_formatter():
    """Test JSON formatter produces valid JSON output."""
    formatter = JSONFormatter()

    logger = logging.getLogger("test_json_formatter")
    logger.setLevel(logging.INFO)

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    logger.info("Test message", extra={"build_id": "1042", "team_id": "T1", "attempt": 2})

    log_data = json.loads(stream.getvalue())

    assert "timestamp" in log_data
    assert log_data["level"] == "INFO"
    assert log_data["logger"] == "test_json_formatter"
    assert log_data["message"] == "Test message"
    assert log_data["build_id"] == "1042"
    assert log_data["team_id"] == "T1"
    assert log_data["context"] == {"attempt": 2}
    assert "source" in log_data


def test_get_logger_with_context():
    """Test getting logger with context."""
    logger = get_logger("test_module", build_id="1042", team_id="T1")

    assert logger.extra["build_id"] == "1042"
    assert logger.extra["team_id"] == "T1"


def test_with_context_does_not_change_parent():
    logger = get_logger("test_with_context", build_id="1042")

    child = logger.with_context(team_id="T1")

    assert child.extra == {"build_id": "1042", "team_id": "T1"}
    assert logger.extra == {"build_id": "1042"}


def test_adapter_context_in_output():
    logger = get_logger("test_adapter_context", build_id="1042").with_context(team_id="T9")
    stream = _capture(logger)

    logger.info("Delivered")

    log_data = json.loads(stream.getvalue())
    assert log_data["build_id"] == "1042"
    assert log_data["team_id"] == "T9"


def test_log_build_event():
    """Test build occurrence logging."""
    logger = get_logger("test_log_build_event")
    stream = _capture(logger)

    log_build_event(logger, build_id="1042", build_type_id="bt1", phase="SUCCESS", team_count=2)

    log_data = json.loads(stream.getvalue())
    assert log_data["build_id"] == "1042"
    assert log_data["build_type_id"] == "bt1"
    assert log_data["phase"] == "SUCCESS"
    assert log_data["context"]["team_count"] == 2


def test_log_api_call():
    """Test API call logging."""
    logger = get_logger("test_log_api_call")
    stream = _capture(logger)

    log_api_call(
        logger,
        service="event_ingestion",
        endpoint="https://ingest.example.com/teams/T1",
        method="POST",
        status_code=200,
        duration_ms=150.5
    )

    log_data = json.loads(stream.getvalue())
    assert log_data["context"]["service"] == "event_ingestion"
    assert log_data["context"]["method"] == "POST"
    assert log_data["context"]["status_code"] == 200
    assert log_data["context"]["duration_ms"] == 150.5


def test_log_api_call_with_error():
    """Test API call logging with error."""
    logger = get_logger("test_log_api_call_with_error")
    stream = _capture(logger, logging.ERROR)

    log_api_call(
        logger,
        service="event_ingestion",
        endpoint="https://ingest.example.com/teams/T1",
        method="POST",
        error="Connection refused"
    )

    log_data = json.loads(stream.getvalue())
    assert log_data["level"] == "ERROR"
    assert log_data["context"]["error"] == "Connection refused"


def test_log_error_with_context():
    logger = get_logger("test_log_error_with_context")
    stream = _capture(logger, logging.ERROR)

    try:
        raise ValueError("bad ref")
    except ValueError as e:
        log_error_with_context(logger, "Refusing to send", e, team_id="T1")

    log_data = json.loads(stream.getvalue())
    assert log_data["team_id"] == "T1"
    assert log_data["error"]["type"] == "ValueError"
    assert log_data["error"]["message"] == "bad ref"
    assert log_data["context"]["error_type"] == "ValueError"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
