"""Application-level exception types.

Every failure the gateway reports to a client is one of these, so the HTTP
layer can map them to status codes in one place (see exception_handlers).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    hint: str
    field: str
    page: int
    operation: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when client input is missing or malformed."""


class PackageNotFoundAppError(AppError):
    """Raised when no package matches the requested name."""


class ThrottledAppError(AppError):
    """Raised when a client exceeded the update rate limit."""


class StorageAppError(AppError):
    """Raised when the package or rate-limit tables cannot be reached."""
