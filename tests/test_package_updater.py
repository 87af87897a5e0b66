"""Tests for the metadata refresh adapters."""

import json
import logging

import httpx
import pytest

from app.adapters.updater import (
    LoggingPackageUpdater,
    WebhookPackageUpdater,
    create_package_updater,
)
from app.core.config import UpdaterSettings
from app.core.errors import ValidationAppError

WEBHOOK = "http://refresher.internal/refresh"


def _updater(handler) -> WebhookPackageUpdater:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return WebhookPackageUpdater(WEBHOOK, client=client)


def test_webhook_posts_package_name() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(202)

    _updater(handler).update("real-plugin")

    assert len(seen) == 1
    assert seen[0].method == "POST"
    assert str(seen[0].url) == WEBHOOK
    assert json.loads(seen[0].content) == {"name": "real-plugin"}


def test_webhook_bad_status_is_logged_not_raised(caplog) -> None:
    updater = _updater(lambda request: httpx.Response(500))

    with caplog.at_level(logging.ERROR, logger="app.adapters.updater.webhook"):
        updater.update("real-plugin")

    assert any(r.getMessage() == "updater.failed" for r in caplog.records)
    assert caplog.records[-1].status_code == 500


def test_webhook_transport_error_is_logged_not_raised(caplog) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with caplog.at_level(logging.ERROR, logger="app.adapters.updater.webhook"):
        _updater(handler).update("real-plugin")

    assert caplog.records[-1].reason == "transport_error"


def test_factory_without_url_returns_logging_updater() -> None:
    updater = create_package_updater(UpdaterSettings(webhook_url=None))

    assert isinstance(updater, LoggingPackageUpdater)
    updater.update("real-plugin")


def test_factory_with_url_returns_webhook_updater() -> None:
    updater = create_package_updater(UpdaterSettings(webhook_url=WEBHOOK, timeout_seconds=5))

    assert isinstance(updater, WebhookPackageUpdater)
    assert updater.url == WEBHOOK
    updater.close()


def test_factory_rejects_non_http_url() -> None:
    with pytest.raises(ValidationAppError):
        create_package_updater(UpdaterSettings(webhook_url="ftp://example.org/refresh"))
