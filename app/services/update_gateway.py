"""Rate-limited "refresh this package" action.

A request moves through

    received -> validated -> resolved -> rate_checked -> dispatched -> completed

and leaves early as rejected_input, rejected_not_found or rejected_throttled.
Rejections are raised as AppError subclasses so the HTTP layer maps them to
400 / 404 / 403; a completed request yields the redirect target.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from urllib.parse import urlencode

from app.adapters.updater.base import AbstractPackageUpdater
from app.core.errors import PackageNotFoundAppError, ThrottledAppError, ValidationAppError
from app.core.logging import hash_identifier
from app.services.package_lookup import PackageLookup
from app.services.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

THROTTLED_MESSAGE = "Too many requests. Try again in an hour."


class UpdateState(str, Enum):
    RECEIVED = "received"
    VALIDATED = "validated"
    RESOLVED = "resolved"
    RATE_CHECKED = "rate_checked"
    DISPATCHED = "dispatched"
    COMPLETED = "completed"
    REJECTED_INPUT = "rejected_input"
    REJECTED_NOT_FOUND = "rejected_not_found"
    REJECTED_THROTTLED = "rejected_throttled"


@dataclass(frozen=True)
class UpdateOutcome:
    """Result of a completed update request.

    Attributes:
        canonical_name: Package name as stored (used for dispatch and redirect).
        redirect_to: Search URL showing the refreshed package.
        state: Always UpdateState.COMPLETED.
    """

    canonical_name: str
    redirect_to: str
    state: UpdateState = UpdateState.COMPLETED


class UpdateGateway:
    """Validates, rate limits and dispatches package refresh requests."""

    def __init__(
        self,
        *,
        lookup: PackageLookup,
        limiter: RateLimiter,
        updater: AbstractPackageUpdater,
        search_path: str = "/search",
    ) -> None:
        self._lookup = lookup
        self._limiter = limiter
        self._updater = updater
        self._search_path = search_path

    def redirect_for(self, canonical_name: str) -> str:
        return f"{self._search_path}?{urlencode({'q': canonical_name})}"

    def trigger(self, raw_name: str | None, identity: str | None) -> UpdateOutcome:
        """Run one refresh request end to end.

        Args:
            raw_name: Package name exactly as the client sent it.
            identity: Client identity for rate limiting.

        Returns:
            UpdateOutcome with the canonical name and redirect target.

        Raises:
            ValidationAppError: Name missing or blank.
            PackageNotFoundAppError: No package with that exact name.
            ThrottledAppError: Client exceeded the rate limit.
            StorageAppError: Package or rate-limit storage unreachable.
        """
        if raw_name is None or not raw_name.strip():
            self._log_rejection(UpdateState.REJECTED_INPUT, identity)
            raise ValidationAppError(
                code="invalid_request",
                message="Invalid Request",
                details={"field": "name", "hint": "Provide a non-empty package name"},
            )

        package = self._lookup.resolve(raw_name)
        if package is None:
            self._log_rejection(UpdateState.REJECTED_NOT_FOUND, identity)
            raise PackageNotFoundAppError(
                code="package_not_found",
                message="Not Found",
            )
        canonical_name = package.name

        decision = self._limiter.check(identity)
        if not decision.allowed:
            self._log_rejection(UpdateState.REJECTED_THROTTLED, identity, package=canonical_name)
            raise ThrottledAppError(
                code="rate_limited",
                message=THROTTLED_MESSAGE,
                details={"hint": "try again in an hour"},
            )

        self._updater.update(canonical_name)
        logger.info(
            "update.dispatched",
            extra={
                "package": canonical_name,
                "identity_hash": hash_identifier(identity or ""),
                "state": UpdateState.DISPATCHED.value,
            },
        )

        return UpdateOutcome(
            canonical_name=canonical_name,
            redirect_to=self.redirect_for(canonical_name),
        )

    def _log_rejection(
        self,
        state: UpdateState,
        identity: str | None,
        *,
        package: str | None = None,
    ) -> None:
        logger.info(
            "update.rejected",
            extra={
                "state": state.value,
                "package": package,
                "identity_hash": hash_identifier(identity or ""),
            },
        )
