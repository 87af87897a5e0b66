"""SQL-backed rate-limit store (table ``requests``).

Every mutation is a single conditional statement, so correctness does not
depend on holding locks in Python:
- the increment only matches a live row below the limit, which the database
  serializes per row;
- the prune only matches rows whose window already expired.
"""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.adapters.rate_limit.base import AbstractRateLimitStore, IncrementOutcome, RateRecord
from app.core.clock import as_utc
from app.core.errors import StorageAppError
from app.db.models import RequestCounterRow

logger = logging.getLogger(__name__)


def _to_db(value: datetime) -> datetime:
    return as_utc(value).replace(tzinfo=None)


def _to_record(row: RequestCounterRow) -> RateRecord:
    return RateRecord(
        identity=row.identity,
        window_start=as_utc(row.window_start),
        count=row.request_count,
    )


class SqlRateLimitStore(AbstractRateLimitStore):
    """Rate-limit counters persisted through SQLAlchemy.

    Each operation runs in its own short transaction, independent of any
    request-scoped session.
    """

    def __init__(self, session_factory: sessionmaker[Session], *, max_attempts: int = 3) -> None:
        """Initialize the store.

        Args:
            session_factory: Factory producing sessions bound to the database.
            max_attempts: Retries when a concurrent first request for the same
                identity wins the insert race.

        Raises:
            ValueError: If max_attempts is not positive.
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")

        self._session_factory = session_factory
        self._max_attempts = max_attempts

    def prune_expired(self, cutoff: datetime) -> int:
        try:
            with self._session_factory.begin() as session:
                result = session.execute(
                    delete(RequestCounterRow)
                    .where(RequestCounterRow.window_start < _to_db(cutoff))
                    .execution_options(synchronize_session=False)
                )
                return result.rowcount or 0
        except SQLAlchemyError as exc:
            raise StorageAppError(
                code="storage_unavailable",
                message="Rate limit storage is unavailable",
                details={"operation": "prune_expired"},
            ) from exc

    def _try_increment(
        self,
        session: Session,
        identity: str,
        *,
        now: datetime,
        cutoff: datetime,
        limit: int,
    ) -> IncrementOutcome | None:
        """One attempt at the conditional increment; None means retry."""
        bumped = session.execute(
            update(RequestCounterRow)
            .where(
                RequestCounterRow.identity == identity,
                RequestCounterRow.window_start >= cutoff,
                RequestCounterRow.request_count < limit,
            )
            .values(request_count=RequestCounterRow.request_count + 1)
            .execution_options(synchronize_session=False)
        )
        if bumped.rowcount == 1:
            row = session.execute(
                select(RequestCounterRow).where(RequestCounterRow.identity == identity)
            ).scalar_one()
            return IncrementOutcome(record=_to_record(row), applied=True)

        row = session.execute(
            select(RequestCounterRow).where(RequestCounterRow.identity == identity)
        ).scalar_one_or_none()
        if row is not None and row.window_start >= cutoff:
            return IncrementOutcome(record=_to_record(row), applied=False)

        if row is not None:
            # Expired row the prune has not reached yet: restart its window
            restarted = session.execute(
                update(RequestCounterRow)
                .where(
                    RequestCounterRow.identity == identity,
                    RequestCounterRow.window_start < cutoff,
                )
                .values(window_start=now, request_count=1)
                .execution_options(synchronize_session=False)
            )
            if restarted.rowcount != 1:
                return None
        else:
            session.add(RequestCounterRow(identity=identity, window_start=now, request_count=1))
            session.flush()

        return IncrementOutcome(
            record=RateRecord(identity=identity, window_start=as_utc(now), count=1),
            applied=True,
        )

    def increment(
        self,
        identity: str,
        *,
        now: datetime,
        cutoff: datetime,
        limit: int,
    ) -> IncrementOutcome:
        db_now = _to_db(now)
        db_cutoff = _to_db(cutoff)

        for attempt in range(1, self._max_attempts + 1):
            try:
                with self._session_factory.begin() as session:
                    outcome = self._try_increment(
                        session, identity, now=db_now, cutoff=db_cutoff, limit=limit
                    )
                if outcome is not None:
                    return outcome
                logger.debug("rate_limit.restart_conflict", extra={"attempt": attempt})
            except IntegrityError:
                # Another request created the row first; re-run against it
                logger.debug("rate_limit.insert_conflict", extra={"attempt": attempt})
            except SQLAlchemyError as exc:
                raise StorageAppError(
                    code="storage_unavailable",
                    message="Rate limit storage is unavailable",
                    details={"operation": "increment"},
                ) from exc

        raise StorageAppError(
            code="storage_conflict",
            message="Rate limit counter could not be updated",
            details={"operation": "increment"},
        )

    def get(self, identity: str) -> RateRecord | None:
        try:
            with self._session_factory() as session:
                row = session.get(RequestCounterRow, identity)
                return _to_record(row) if row is not None else None
        except SQLAlchemyError as exc:
            raise StorageAppError(
                code="storage_unavailable",
                message="Rate limit storage is unavailable",
                details={"operation": "get"},
            ) from exc

    def list_records(self) -> list[RateRecord]:
        try:
            with self._session_factory() as session:
                rows = session.execute(select(RequestCounterRow)).scalars().all()
                return [_to_record(row) for row in rows]
        except SQLAlchemyError as exc:
            raise StorageAppError(
                code="storage_unavailable",
                message="Rate limit storage is unavailable",
                details={"operation": "list_records"},
            ) from exc
