"""Tests for the update rate limiting policy."""

from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest

from app.adapters.rate_limit.in_memory import InMemoryRateLimitStore
from app.adapters.rate_limit.sql import SqlRateLimitStore
from app.services.rate_limiter import RateLimiter


@pytest.fixture(params=["memory", "sql"])
def store(request, session_factory):
    if request.param == "memory":
        return InMemoryRateLimitStore()
    return SqlRateLimitStore(session_factory)


@pytest.fixture
def limiter(store, clock) -> RateLimiter:
    return RateLimiter(store, clock=clock)


def test_allows_ten_then_denies(limiter, store) -> None:
    decisions = [limiter.check("203.0.113.5") for _ in range(10)]

    assert all(d.allowed for d in decisions)
    assert [d.count for d in decisions] == list(range(1, 11))

    denied = limiter.check("203.0.113.5")
    assert denied.allowed is False
    assert denied.remaining == 0
    assert store.get("203.0.113.5").count == 10


def test_denied_requests_are_not_counted(limiter, store) -> None:
    for _ in range(10):
        limiter.check("k")

    for _ in range(5):
        assert limiter.check("k").allowed is False

    assert store.get("k").count == 10


def test_window_is_fixed_not_sliding(limiter, clock) -> None:
    first = limiter.check("k")
    clock.advance(minutes=59)
    later = limiter.check("k")

    assert later.count == 2
    assert later.reset_at == first.reset_at == clock() - timedelta(minutes=59) + timedelta(hours=1)


def test_fresh_window_after_expiry(limiter, clock) -> None:
    for _ in range(11):
        limiter.check("k")

    clock.advance(hours=1, seconds=1)
    decision = limiter.check("k")

    assert decision.allowed is True
    assert decision.count == 1


def test_boundary_burst_is_allowed(limiter, clock) -> None:
    for _ in range(10):
        assert limiter.check("k").allowed is True

    clock.advance(hours=1, seconds=1)
    for _ in range(10):
        assert limiter.check("k").allowed is True


def test_every_check_prunes_all_expired_records(limiter, store, clock) -> None:
    limiter.check("a")
    limiter.check("b")
    clock.advance(minutes=30)
    limiter.check("c")
    clock.advance(minutes=31)

    limiter.check("d")

    remaining = {record.identity for record in store.list_records()}
    assert remaining == {"c", "d"}
    cutoff = clock() - timedelta(hours=1)
    assert all(record.window_start >= cutoff for record in store.list_records())


def test_missing_identity_is_a_degenerate_identity(limiter, store) -> None:
    assert limiter.check(None).allowed is True
    assert limiter.check("").count == 2
    assert store.get("") is not None


def test_custom_limit_and_window(store, clock) -> None:
    limiter = RateLimiter(store, limit=2, window=timedelta(minutes=5), clock=clock)

    assert limiter.check("k").allowed is True
    assert limiter.check("k").allowed is True
    assert limiter.check("k").allowed is False

    clock.advance(minutes=5, seconds=1)
    assert limiter.check("k").allowed is True


@pytest.mark.parametrize(
    "kwargs",
    [
        {"limit": 0},
        {"window": timedelta(0)},
    ],
)
def test_invalid_constructor_args(kwargs: dict) -> None:
    with pytest.raises(ValueError):
        RateLimiter(InMemoryRateLimitStore(), **kwargs)


def test_concurrent_checks_never_exceed_limit(clock) -> None:
    store = InMemoryRateLimitStore()
    limiter = RateLimiter(store, clock=clock)

    with ThreadPoolExecutor(max_workers=16) as pool:
        decisions = list(pool.map(lambda _: limiter.check("same-client"), range(200)))

    assert sum(1 for d in decisions if d.allowed) == 10
    assert store.get("same-client").count == 10


def test_concurrent_identities_are_counted_independently(clock) -> None:
    store = InMemoryRateLimitStore(stripes=4)
    limiter = RateLimiter(store, clock=clock)
    identities = [f"client-{i % 8}" for i in range(160)]

    with ThreadPoolExecutor(max_workers=16) as pool:
        decisions = list(pool.map(limiter.check, identities))

    assert sum(1 for d in decisions if d.allowed) == 80
    assert all(record.count == 10 for record in store.list_records())
