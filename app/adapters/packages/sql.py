"""SQL package catalogue (table ``packages``)."""

from __future__ import annotations

import logging

from sqlalchemy import Select, case, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.adapters.packages.base import (
    AbstractPackageRepository,
    OrderKey,
    PackageRecord,
    PackageType,
    SearchPage,
    SearchPlan,
)
from app.core.clock import as_utc
from app.core.errors import StorageAppError
from app.db.models import PackageRow

logger = logging.getLogger(__name__)

_LIKE_ESCAPE = "\\"


def escape_like(text: str) -> str:
    """Escape LIKE wildcards so ``text`` matches literally."""
    return (
        text.replace(_LIKE_ESCAPE, _LIKE_ESCAPE * 2)
        .replace("%", _LIKE_ESCAPE + "%")
        .replace("_", _LIKE_ESCAPE + "_")
    )


def _to_record(row: PackageRow) -> PackageRecord:
    return PackageRecord(
        name=row.name,
        display_name=row.display_name,
        package_type=PackageType(row.class_name),
        is_active=row.is_active,
        last_committed=as_utc(row.last_committed) if row.last_committed else None,
    )


def build_search_statement(plan: SearchPlan) -> Select:
    """Translate a search plan into an unpaginated SELECT.

    Args:
        plan: Plan produced by the search ranker.

    Returns:
        SELECT over PackageRow with filters and ordering applied.
    """

    stmt = select(PackageRow)

    if plan.package_type is not None:
        stmt = stmt.where(PackageRow.class_name == plan.package_type.value)
    if plan.active_only:
        stmt = stmt.where(PackageRow.is_active.is_(True))
    if plan.text:
        contains = f"%{escape_like(plan.text)}%"
        stmt = stmt.where(
            or_(
                PackageRow.name.like(contains, escape=_LIKE_ESCAPE),
                PackageRow.display_name.like(contains, escape=_LIKE_ESCAPE),
            )
        )

    ordering = []
    for key in plan.order_by:
        if key is OrderKey.ACTIVE_FIRST:
            ordering.append(PackageRow.is_active.desc())
        elif key is OrderKey.NAME_PREFIX_FIRST:
            prefix = f"{escape_like(plan.text or '')}%"
            ordering.append(
                case((PackageRow.name.like(prefix, escape=_LIKE_ESCAPE), 0), else_=1)
            )
        elif key is OrderKey.NAME_ASC:
            ordering.append(PackageRow.name.asc())
        elif key is OrderKey.LAST_COMMITTED_DESC:
            ordering.append(PackageRow.last_committed.desc().nulls_last())

    return stmt.order_by(*ordering)


class SqlPackageRepository(AbstractPackageRepository):
    """Package lookups and searches over a request-scoped session."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_by_name(self, name: str) -> PackageRecord | None:
        try:
            row = self._session.execute(
                select(PackageRow).where(PackageRow.name == name)
            ).scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise StorageAppError(
                code="storage_unavailable",
                message="Package storage is unavailable",
                details={"operation": "get_by_name"},
            ) from exc

        # Case-insensitive collations (MySQL defaults) would otherwise match
        if row is None or row.name != name:
            return None
        return _to_record(row)

    def search(self, plan: SearchPlan) -> SearchPage:
        stmt = build_search_statement(plan)
        count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())

        try:
            total = self._session.execute(count_stmt).scalar_one()
            rows = (
                self._session.execute(stmt.offset(plan.offset).limit(plan.page_size))
                .scalars()
                .all()
            )
        except SQLAlchemyError as exc:
            raise StorageAppError(
                code="storage_unavailable",
                message="Package storage is unavailable",
                details={"operation": "search"},
            ) from exc

        logger.debug(
            "packages.search",
            extra={"total": total, "page": plan.page, "returned": len(rows)},
        )
        return SearchPage(items=[_to_record(row) for row in rows], total=total)
