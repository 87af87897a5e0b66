"""Tests for deriving the rate-limit identity of a request."""

import pytest

from app.core.rate_limit import UNKNOWN_PEER, resolve_client_identity


@pytest.mark.parametrize(
    ("forwarded_for", "peer", "expected"),
    [
        ("203.0.113.7", "10.0.0.2", "203.0.113.7"),
        ("203.0.113.7, 10.0.0.1, 10.0.0.2", "10.0.0.2", "203.0.113.7"),
        ("  203.0.113.7  ,10.0.0.1", "10.0.0.2", "203.0.113.7"),
        (None, "10.0.0.2", "10.0.0.2"),
        ("", "10.0.0.2", "10.0.0.2"),
        (None, None, UNKNOWN_PEER),
        # Not validated: whatever the first entry holds is the identity
        ("not-an-address", "10.0.0.2", "not-an-address"),
        (", 10.0.0.1", "10.0.0.2", ""),
    ],
)
def test_resolve_client_identity(forwarded_for, peer, expected) -> None:
    assert resolve_client_identity(forwarded_for, peer) == expected
