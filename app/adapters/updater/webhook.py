"""Webhook updater: asks the refresh service to rebuild one package."""

from __future__ import annotations

import logging
import time

import httpx

from app.adapters.updater.base import AbstractPackageUpdater

logger = logging.getLogger(__name__)


class WebhookPackageUpdater(AbstractPackageUpdater):
    """POSTs ``{"name": <package>}`` to a refresh endpoint and waits for it.

    The call is synchronous and bounded by ``timeout_seconds``. Transport
    errors and non-2xx answers are logged, not raised.
    """

    def __init__(
        self,
        url: str,
        *,
        timeout_seconds: float = 30.0,
        client: httpx.Client | None = None,
    ) -> None:
        """Initialize the updater.

        Args:
            url: Refresh endpoint.
            timeout_seconds: Timeout for one refresh call.
            client: Optional pre-built client (tests inject a mock transport).
        """
        self.url = url
        self.client = client or httpx.Client(timeout=timeout_seconds)

    def update(self, name: str) -> None:
        start = time.perf_counter()
        try:
            response = self.client.post(self.url, json={"name": name})
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "updater.failed",
                extra={
                    "package": name,
                    "status_code": exc.response.status_code,
                    "reason": "bad_status",
                },
            )
            return
        except httpx.HTTPError as exc:
            logger.error(
                "updater.failed",
                extra={
                    "package": name,
                    "error_type": type(exc).__name__,
                    "reason": "transport_error",
                },
            )
            return

        logger.info(
            "updater.completed",
            extra={
                "package": name,
                "status_code": response.status_code,
                "duration_ms": round((time.perf_counter() - start) * 1000, 2),
            },
        )

    def close(self) -> None:
        self.client.close()
