"""FastAPI dependencies assembling the services behind the routes.

Routes depend on these providers only, so tests can swap any piece through
``app.dependency_overrides``.
"""

from __future__ import annotations

from fastapi import Depends
from sqlalchemy.orm import Session

from app.adapters.packages.base import AbstractPackageRepository
from app.adapters.packages.sql import SqlPackageRepository
from app.adapters.updater.base import AbstractPackageUpdater
from app.adapters.updater.factory import create_package_updater
from app.core.config import settings
from app.core.rate_limit import get_rate_limiter
from app.db.session import get_db_session
from app.services.package_lookup import PackageLookup
from app.services.rate_limiter import RateLimiter
from app.services.search_ranker import SearchRanker
from app.services.update_gateway import UpdateGateway

_updater: AbstractPackageUpdater | None = None


def get_package_repository(
    session: Session = Depends(get_db_session),
) -> AbstractPackageRepository:
    return SqlPackageRepository(session)


def get_package_updater() -> AbstractPackageUpdater:
    """Return the process-wide updater (its HTTP client is reused)."""

    global _updater
    if _updater is None:
        _updater = create_package_updater()
    return _updater


def get_search_ranker() -> SearchRanker:
    return SearchRanker(page_size=settings.app.search_page_size)


def get_update_gateway(
    repository: AbstractPackageRepository = Depends(get_package_repository),
    limiter: RateLimiter = Depends(get_rate_limiter),
    updater: AbstractPackageUpdater = Depends(get_package_updater),
) -> UpdateGateway:
    return UpdateGateway(
        lookup=PackageLookup(repository),
        limiter=limiter,
        updater=updater,
        search_path=settings.app.search_path,
    )
