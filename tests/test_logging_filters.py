"""Tests for log redaction, JSON output and request correlation."""

from __future__ import annotations

import json
import logging
from io import StringIO

import pytest

from app.core.logging import (
    JsonFormatter,
    RequestIdFilter,
    SensitiveDataFilter,
    clear_request_id,
    hash_identifier,
    set_request_id,
)


@pytest.fixture
def capture():
    """Logger wired like production, writing JSON lines into a buffer."""

    logger = logging.getLogger("test_gateway_logging")
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(RequestIdFilter())
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)

    yield logger, stream

    logger.handlers.clear()
    clear_request_id()


def _last_line(stream: StringIO) -> dict:
    return json.loads(stream.getvalue().strip().splitlines()[-1])


def test_client_addresses_are_redacted(capture) -> None:
    logger, stream = capture

    logger.info(
        "rate_limit.allowed",
        extra={
            "client_identity": "203.0.113.7",
            "x-forwarded-for": "203.0.113.7, 10.0.0.1",
            "count": 3,
        },
    )

    output = stream.getvalue()
    assert "203.0.113.7" not in output
    payload = _last_line(stream)
    assert payload["client_identity"] == "[REDACTED]"
    assert payload["count"] == 3


def test_nested_sensitive_fields_are_redacted(capture) -> None:
    logger, stream = capture

    logger.info(
        "updater.configured",
        extra={
            "updater": {"webhook_url": "https://user:pw@refresh.internal", "timeout": 30},
            "headers": [{"Authorization": "Bearer abc"}],
        },
    )

    payload = _last_line(stream)
    assert payload["updater"] == {"webhook_url": "[REDACTED]", "timeout": 30}
    assert payload["headers"] == [{"Authorization": "[REDACTED]"}]


def test_safe_fields_pass_through(capture) -> None:
    logger, stream = capture

    logger.info(
        "update.dispatched",
        extra={"package": "real-plugin", "identity_hash": hash_identifier("203.0.113.7")},
    )

    payload = _last_line(stream)
    assert payload["message"] == "update.dispatched"
    assert payload["level"] == "info"
    assert payload["package"] == "real-plugin"
    assert payload["identity_hash"] == hash_identifier("203.0.113.7")
    assert "[REDACTED]" not in stream.getvalue()


def test_request_id_from_context(capture) -> None:
    logger, stream = capture
    set_request_id("req-42")

    logger.info("search.executed")

    assert _last_line(stream)["request_id"] == "req-42"


def test_hash_identifier_is_stable_and_short() -> None:
    digest = hash_identifier("198.51.100.1")

    assert digest == hash_identifier("198.51.100.1")
    assert digest != hash_identifier("198.51.100.2")
    assert len(digest) == 16
    assert hash_identifier("") != ""
