"""Build catalogue search plans from user queries.

Ordering rules:
- text given: names starting with the text first, then name ascending
- no text: active packages first (unless active_only), then most recently
  committed first
"""

from __future__ import annotations

from dataclasses import dataclass

from app.adapters.packages.base import OrderKey, PackageType, SearchPlan
from app.core.errors import ValidationAppError

DEFAULT_PAGE_SIZE = 30


@dataclass(frozen=True)
class SearchQuery:
    """Search request as received from the client.

    Attributes:
        text: Free text to match; blank counts as absent.
        package_type: Restrict to plugins or themes (None = both).
        active_only: Only return active packages.
        page: 1-based page number.
    """

    text: str | None = None
    package_type: PackageType | None = None
    active_only: bool = False
    page: int = 1

    @classmethod
    def from_params(
        cls,
        *,
        q: str | None = None,
        type: str | None = None,
        active_only: bool = False,
        page: int = 1,
    ) -> "SearchQuery":
        """Build a query from raw request parameters.

        Args:
            q: Search text.
            type: "any", "plugin" or "theme" (None = "any").
            active_only: Active filter flag.
            page: Page number.

        Raises:
            ValidationAppError: If type is unknown.
        """
        package_type: PackageType | None = None
        if type and type != "any":
            try:
                package_type = PackageType(type)
            except ValueError as exc:
                raise ValidationAppError(
                    code="invalid_package_type",
                    message=f"Unknown package type: '{type}'. Expected any, plugin or theme",
                    details={"field": "type"},
                ) from exc
        return cls(text=q, package_type=package_type, active_only=active_only, page=page)


class SearchRanker:
    """Turns a SearchQuery into a SearchPlan for the catalogue to execute."""

    def __init__(self, *, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        if page_size < 1:
            raise ValueError("page_size must be >= 1")
        self._page_size = page_size

    @property
    def page_size(self) -> int:
        return self._page_size

    def plan(self, query: SearchQuery) -> SearchPlan:
        """Derive filters, ordering and paging for ``query``.

        Raises:
            ValidationAppError: If the page number is below 1.
        """
        if query.page < 1:
            raise ValidationAppError(
                code="invalid_page",
                message="Page numbers start at 1",
                details={"field": "page", "page": query.page},
            )

        text = (query.text or "").strip() or None

        if text is not None:
            order_by: tuple[OrderKey, ...] = (OrderKey.NAME_PREFIX_FIRST, OrderKey.NAME_ASC)
        elif query.active_only:
            order_by = (OrderKey.LAST_COMMITTED_DESC,)
        else:
            order_by = (OrderKey.ACTIVE_FIRST, OrderKey.LAST_COMMITTED_DESC)

        return SearchPlan(
            text=text,
            package_type=query.package_type,
            active_only=query.active_only,
            order_by=order_by,
            page=query.page,
            page_size=self._page_size,
        )
