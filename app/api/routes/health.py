from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import StorageAppError
from app.db.session import get_db_session

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness check used by load balancers; never touches storage."""

    return {"status": "ok"}


@router.get("/health/ready")
def readiness_check(session: Session = Depends(get_db_session)) -> dict:
    """Readiness check: the package and rate-limit tables must be reachable.

    Raises:
        StorageAppError: If the database cannot be queried (503).
    """

    try:
        session.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        raise StorageAppError(
            code="storage_unavailable",
            message="Database is unavailable",
            details={"operation": "readiness"},
        ) from exc
    return {"status": "ok", "database": "ok"}
