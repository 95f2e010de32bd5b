"""Tests for sensitive data filtering and JSON log output."""

from __future__ import annotations

import json
import logging
from io import StringIO

import pytest

from reqlimit.core.logging import (
    JsonFormatter,
    SensitiveDataFilter,
    clear_request_id,
    set_request_id,
)


@pytest.fixture
def log_stream():
    logger = logging.getLogger("test_reqlimit_logging")
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)

    yield logger, stream

    logger.handlers.clear()
    clear_request_id()


def test_store_password_is_redacted(log_stream):
    logger, stream = log_stream

    logger.info(
        "store.connected",
        extra={"host": "redis:6379", "password": "cr4b", "pool_size": 25},
    )

    output = stream.getvalue()
    assert "cr4b" not in output
    assert "[REDACTED]" in output
    assert "redis:6379" in output


def test_nested_secrets_are_redacted(log_stream):
    logger, stream = log_stream

    logger.info(
        "request.headers",
        extra={"headers": {"Authorization": "Bearer abc", "user-agent": "pytest"}},
    )

    output = stream.getvalue()
    assert "Bearer abc" not in output
    assert "pytest" in output


def test_limiter_fields_pass_through(log_stream):
    logger, stream = log_stream

    logger.warning(
        "rate_limit.exceeded",
        extra={"limiter": "rps", "identity_hash": "0123456789abcdef", "count": 21, "limit": 20},
    )

    payload = json.loads(stream.getvalue())
    assert payload["message"] == "rate_limit.exceeded"
    assert payload["level"] == "warning"
    assert payload["limiter"] == "rps"
    assert payload["count"] == 21
    assert "[REDACTED]" not in stream.getvalue()


def test_request_id_from_context(log_stream):
    logger, stream = log_stream

    set_request_id("req-123")
    logger.info("limiter.registered")

    assert json.loads(stream.getvalue())["request_id"] == "req-123"
