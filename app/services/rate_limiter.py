"""Per-client rate limiting for the package update action.

Policy:
- Fixed window per client identity, anchored at the identity's first request
  after its previous record expired. Allowed requests never move the anchor.
- The first request of a window counts 1; each allowed request adds exactly 1.
- Once the stored count reaches the limit, further requests are denied and
  not counted.
- Every check first prunes expired records of *all* identities, so the table
  stays bounded without a background sweeper.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from app.adapters.rate_limit.base import AbstractRateLimitStore
from app.core.clock import Clock, utc_now
from app.core.logging import hash_identifier

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10
DEFAULT_WINDOW = timedelta(hours=1)


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a rate limit check.

    Attributes:
        allowed: Whether the request may proceed.
        count: Requests counted in the identity's current window.
        limit: Max requests per window.
        remaining: Requests left in the window (0 when blocked).
        reset_at: When the identity's current window expires (UTC).
    """

    allowed: bool
    count: int
    limit: int
    remaining: int
    reset_at: datetime


class RateLimiter:
    """Decides whether a client identity may trigger another update."""

    def __init__(
        self,
        store: AbstractRateLimitStore,
        *,
        limit: int = DEFAULT_LIMIT,
        window: timedelta = DEFAULT_WINDOW,
        clock: Clock = utc_now,
    ) -> None:
        """Initialize the limiter.

        Args:
            store: Counter storage shared by all requests.
            limit: Allowed requests per identity per window.
            window: Window length.
            clock: Time source returning aware UTC datetimes.

        Raises:
            ValueError: If limit or window are invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window <= timedelta(0):
            raise ValueError("window must be positive")

        self._store = store
        self._limit = limit
        self._window = window
        self._clock = clock

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window(self) -> timedelta:
        return self._window

    def check(self, identity: str | None) -> RateLimitDecision:
        """Count a request for ``identity`` and decide whether it is allowed.

        A missing identity is treated as the empty-string identity rather than
        rejected; supplying a meaningful identity is the caller's job.

        Args:
            identity: Client identity (usually an address).

        Returns:
            RateLimitDecision for this request.

        Raises:
            StorageAppError: If the counter storage is unreachable.
        """
        identity = identity or ""
        now = self._clock()
        cutoff = now - self._window

        pruned = self._store.prune_expired(cutoff)
        if pruned:
            logger.debug("rate_limit.pruned", extra={"pruned": pruned})

        outcome = self._store.increment(identity, now=now, cutoff=cutoff, limit=self._limit)
        record = outcome.record
        decision = RateLimitDecision(
            allowed=outcome.applied,
            count=record.count,
            limit=self._limit,
            remaining=max(0, self._limit - record.count) if outcome.applied else 0,
            reset_at=record.window_start + self._window,
        )

        logger.log(
            logging.INFO if decision.allowed else logging.WARNING,
            "rate_limit.allowed" if decision.allowed else "rate_limit.exceeded",
            extra={
                "identity_hash": hash_identifier(identity),
                "count": decision.count,
                "limit": decision.limit,
                "remaining": decision.remaining,
                "window_s": int(self._window.total_seconds()),
            },
        )
        return decision
