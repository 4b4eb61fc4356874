"""Tests for sensitive data filtering and JSON formatting in logs."""

from __future__ import annotations

import json
import logging
from io import StringIO

import pytest

from throttle_service.core.logging import (
    JsonFormatter,
    RequestIdFilter,
    SensitiveDataFilter,
    clear_request_id,
    set_request_id,
)


@pytest.fixture
def capture():
    """Logger wired with the production filters and formatter."""

    logger = logging.getLogger("test_redaction")
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(RequestIdFilter())
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(JsonFormatter(service="request-throttle"))
    logger.addHandler(handler)

    yield logger, stream

    logger.handlers.clear()
    clear_request_id()


def test_sensitive_filter_redacts_identities(capture):
    logger, stream = capture

    logger.info(
        "rate_limit.allowed",
        extra={
            "identifier": "financial:user:123",
            "client_ip": "203.0.113.7",
            "user_id": "123",
            "key_hash": "abc123",
        },
    )

    output = stream.getvalue()
    assert "financial:user:123" not in output
    assert "203.0.113.7" not in output
    assert "[REDACTED]" in output
    assert "abc123" in output


def test_sensitive_filter_redacts_nested_headers(capture):
    logger, stream = capture

    logger.info(
        "nested_event",
        extra={
            "headers": {"X-Forwarded-For": "198.51.100.1", "user-agent": "pytest"},
        },
    )

    output = stream.getvalue()
    assert "198.51.100.1" not in output
    assert "pytest" in output


def test_json_formatter_emits_one_object_with_extras(capture):
    logger, stream = capture

    logger.warning(
        "rate_limit.exceeded",
        extra={"policy": "tips", "limit": 20, "remaining": 0, "retry_after_s": 31},
    )

    record = json.loads(stream.getvalue())
    assert record["message"] == "rate_limit.exceeded"
    assert record["level"] == "warning"
    assert record["service"] == "request-throttle"
    assert record["policy"] == "tips"
    assert record["retry_after_s"] == 31


def test_request_id_from_context_is_attached(capture):
    logger, stream = capture
    set_request_id("req-123")

    logger.info("safe_event", extra={"route": "/v1/policies", "status": 200})

    record = json.loads(stream.getvalue())
    assert record["request_id"] == "req-123"
    assert record["route"] == "/v1/policies"
    assert "[REDACTED]" not in stream.getvalue()
