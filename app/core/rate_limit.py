"""Rate limiting wiring for the HTTP layer.

- Builds one process-wide RateLimiter around the configured store backend.
- Derives the client identity the limiter keys on.

Client identity:
- First entry of X-Forwarded-For (trimmed) when the header is present and
  non-empty, otherwise the direct peer address.
- The forwarded entry is trusted as-is. Any client that can reach the
  service directly can spoof it; deploy behind a proxy that overwrites the
  header if that matters.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Annotated

from fastapi import Header, Request

from app.adapters.rate_limit.base import AbstractRateLimitStore
from app.adapters.rate_limit.in_memory import InMemoryRateLimitStore
from app.adapters.rate_limit.sql import SqlRateLimitStore
from app.core.config import settings
from app.db.session import get_session_factory
from app.services.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

UNKNOWN_PEER = "unknown"

_limiter: RateLimiter | None = None
_limiter_config: tuple[str, int, int] | None = None


def build_rate_limit_store(backend: str) -> AbstractRateLimitStore:
    """Create the counter store for a backend name ("sql" or "memory")."""

    if backend == "memory":
        return InMemoryRateLimitStore()
    return SqlRateLimitStore(get_session_factory())


def get_rate_limiter() -> RateLimiter:
    """Return the process-wide rate limiter.

    The instance is cached in-module so in-memory counters survive across
    requests. If configuration changes (primarily in tests), it is rebuilt.
    """

    global _limiter, _limiter_config

    config = (
        settings.app.rate_limit_backend,
        settings.app.rate_limit_max_requests,
        settings.app.rate_limit_window_seconds,
    )

    if _limiter is None or _limiter_config != config:
        _limiter = RateLimiter(
            build_rate_limit_store(settings.app.rate_limit_backend),
            limit=settings.app.rate_limit_max_requests,
            window=timedelta(seconds=settings.app.rate_limit_window_seconds),
        )
        _limiter_config = config
        logger.info(
            "rate_limit.configured",
            extra={
                "backend": config[0],
                "limit": config[1],
                "window_s": config[2],
            },
        )

    return _limiter


def resolve_client_identity(forwarded_for: str | None, peer_host: str | None) -> str:
    """Pick the identity a request is rate limited under.

    Args:
        forwarded_for: Raw X-Forwarded-For header value, if any.
        peer_host: Address of the directly connected peer, if known.

    Returns:
        The identity string; may be empty for a malformed forwarded header.

    Examples:
        >>> resolve_client_identity("203.0.113.7, 10.0.0.1", "10.0.0.2")
        '203.0.113.7'
        >>> resolve_client_identity(None, "10.0.0.2")
        '10.0.0.2'
        >>> resolve_client_identity("", None)
        'unknown'
    """

    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return peer_host or UNKNOWN_PEER


async def get_client_identity(
    request: Request,
    x_forwarded_for: Annotated[str | None, Header(alias="X-Forwarded-For")] = None,
) -> str:
    """FastAPI dependency returning the caller's rate-limit identity."""

    peer_host = request.client.host if request.client else None
    return resolve_client_identity(x_forwarded_for, peer_host)
