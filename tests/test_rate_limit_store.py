"""Tests for the rate-limit store backends (in-memory and SQL)."""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from app.adapters.rate_limit.in_memory import InMemoryRateLimitStore
from app.adapters.rate_limit.sql import SqlRateLimitStore
from app.core.errors import StorageAppError

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
HOUR = timedelta(hours=1)


@pytest.fixture(params=["memory", "sql"])
def store(request, session_factory):
    if request.param == "memory":
        return InMemoryRateLimitStore()
    return SqlRateLimitStore(session_factory)


def _increment(store, identity, now=NOW, limit=10):
    return store.increment(identity, now=now, cutoff=now - HOUR, limit=limit)


def test_first_increment_opens_window(store) -> None:
    outcome = _increment(store, "198.51.100.1")

    assert outcome.applied is True
    assert outcome.record.count == 1
    assert outcome.record.window_start == NOW
    assert store.get("198.51.100.1") == outcome.record


def test_increment_adds_one_and_keeps_anchor(store) -> None:
    _increment(store, "k")
    later = NOW + timedelta(minutes=20)

    outcome = _increment(store, "k", now=later)

    assert outcome.applied is True
    assert outcome.record.count == 2
    assert outcome.record.window_start == NOW


def test_increment_stops_at_limit(store) -> None:
    for _ in range(3):
        assert _increment(store, "k", limit=3).applied is True

    blocked = _increment(store, "k", limit=3)

    assert blocked.applied is False
    assert blocked.record.count == 3
    assert store.get("k").count == 3


def test_expired_record_is_replaced(store) -> None:
    for _ in range(3):
        _increment(store, "k", limit=3)
    later = NOW + HOUR + timedelta(seconds=1)

    outcome = _increment(store, "k", now=later, limit=3)

    assert outcome.applied is True
    assert outcome.record.count == 1
    assert outcome.record.window_start == later


def test_record_exactly_one_window_old_is_still_live(store) -> None:
    _increment(store, "k")

    outcome = _increment(store, "k", now=NOW + HOUR)

    assert outcome.record.count == 2
    assert outcome.record.window_start == NOW


def test_prune_removes_only_expired_records(store) -> None:
    _increment(store, "old", now=NOW)
    _increment(store, "fresh", now=NOW + timedelta(minutes=50))

    removed = store.prune_expired(NOW + timedelta(minutes=90) - HOUR)

    assert removed == 1
    assert store.get("old") is None
    assert store.get("fresh") is not None
    assert [r.identity for r in store.list_records()] == ["fresh"]


def test_identities_are_isolated(store) -> None:
    for _ in range(2):
        _increment(store, "a", limit=2)

    assert _increment(store, "a", limit=2).applied is False
    assert _increment(store, "b", limit=2).applied is True


def test_empty_identity_is_accepted(store) -> None:
    outcome = _increment(store, "")

    assert outcome.applied is True
    assert store.get("") is not None


def test_in_memory_rejects_invalid_stripes() -> None:
    with pytest.raises(ValueError):
        InMemoryRateLimitStore(stripes=0)


def test_sql_store_wraps_database_errors() -> None:
    session_factory = MagicMock()
    session_factory.begin.side_effect = OperationalError("DELETE", {}, Exception("down"))
    store = SqlRateLimitStore(session_factory)

    with pytest.raises(StorageAppError) as exc_info:
        store.prune_expired(NOW)
    assert exc_info.value.code == "storage_unavailable"

    with pytest.raises(StorageAppError):
        _increment(store, "k")


def test_sql_store_returns_aware_timestamps(session_factory) -> None:
    store = SqlRateLimitStore(session_factory)
    _increment(store, "k")

    record = store.get("k")

    assert record.window_start.tzinfo is not None
    assert record.window_start == NOW
