"""Rate-limit storage interface.

The limiter depends on this abstraction, not on a concrete table, so the
counters can live in the shared database or in process memory.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class RateRecord:
    """Request counter for one client identity.

    Attributes:
        identity: Client identity the counter belongs to.
        window_start: When the identity's current window opened (UTC).
        count: Requests counted in the window (always >= 1).
    """

    identity: str
    window_start: datetime
    count: int


@dataclass(frozen=True)
class IncrementOutcome:
    """Result of a conditional increment.

    Attributes:
        record: The identity's record after the operation.
        applied: False when the record was already at the limit and left untouched.
    """

    record: RateRecord
    applied: bool


class AbstractRateLimitStore(ABC):
    """Counter table keyed by client identity."""

    @abstractmethod
    def prune_expired(self, cutoff: datetime) -> int:
        """Delete every record whose window started before ``cutoff``.

        Only expired records are touched, so this is safe to run while other
        identities are being incremented.

        Returns:
            Number of records removed.
        """
        raise NotImplementedError

    @abstractmethod
    def increment(
        self,
        identity: str,
        *,
        now: datetime,
        cutoff: datetime,
        limit: int,
    ) -> IncrementOutcome:
        """Atomically count one request for ``identity``.

        - No live record (missing, or window_start < cutoff): start a new
          window at ``now`` with count 1.
        - Live record below ``limit``: add exactly 1.
        - Live record at ``limit``: leave it unchanged (applied=False).

        Concurrent calls for the same identity are serialized; calls for
        different identities are independent.
        """
        raise NotImplementedError

    @abstractmethod
    def get(self, identity: str) -> RateRecord | None:
        """Return the stored record for ``identity`` (expired or not)."""
        raise NotImplementedError

    @abstractmethod
    def list_records(self) -> list[RateRecord]:
        """Return every stored record."""
        raise NotImplementedError
