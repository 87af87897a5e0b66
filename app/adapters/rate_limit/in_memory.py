"""In-memory rate-limit store.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Increments are serialized per identity through a fixed set of striped
  locks, so unrelated identities rarely wait on each other.
"""

from __future__ import annotations

import threading
import zlib
from dataclasses import replace
from datetime import datetime

from app.adapters.rate_limit.base import AbstractRateLimitStore, IncrementOutcome, RateRecord


class InMemoryRateLimitStore(AbstractRateLimitStore):
    """Rate-limit counters held in a dict guarded by locks.

    Important:
        Counters are lost on restart and not shared between workers. Use the
        SQL store wherever more than one process serves requests.
    """

    def __init__(self, *, stripes: int = 64) -> None:
        """Initialize an empty store.

        Args:
            stripes: Number of per-identity lock stripes.

        Raises:
            ValueError: If stripes is not positive.
        """
        if stripes < 1:
            raise ValueError("stripes must be >= 1")

        self._records: dict[str, RateRecord] = {}
        # Short critical sections on the dict itself
        self._guard = threading.Lock()
        self._stripes = tuple(threading.Lock() for _ in range(stripes))

    def _stripe_for(self, identity: str) -> threading.Lock:
        index = zlib.crc32(identity.encode("utf-8", errors="replace")) % len(self._stripes)
        return self._stripes[index]

    def prune_expired(self, cutoff: datetime) -> int:
        with self._guard:
            expired = [
                identity
                for identity, record in self._records.items()
                if record.window_start < cutoff
            ]
            for identity in expired:
                del self._records[identity]
        return len(expired)

    def increment(
        self,
        identity: str,
        *,
        now: datetime,
        cutoff: datetime,
        limit: int,
    ) -> IncrementOutcome:
        with self._stripe_for(identity):
            with self._guard:
                current = self._records.get(identity)

            if current is None or current.window_start < cutoff:
                updated = RateRecord(identity=identity, window_start=now, count=1)
            elif current.count < limit:
                updated = replace(current, count=current.count + 1)
            else:
                return IncrementOutcome(record=current, applied=False)

            with self._guard:
                self._records[identity] = updated
            return IncrementOutcome(record=updated, applied=True)

    def get(self, identity: str) -> RateRecord | None:
        with self._guard:
            return self._records.get(identity)

    def list_records(self) -> list[RateRecord]:
        with self._guard:
            return list(self._records.values())
