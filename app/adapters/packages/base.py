"""Package catalogue interface and the types exchanged with it."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class PackageType(str, Enum):
    PLUGIN = "plugin"
    THEME = "theme"


@dataclass(frozen=True)
class PackageRecord:
    """Read-only view of a catalogue entry.

    Attributes:
        name: Canonical, unique package name.
        display_name: Human-readable title.
        package_type: Plugin or theme.
        is_active: Whether the package is still maintained upstream.
        last_committed: Time of the most recent upstream commit (UTC), if known.
    """

    name: str
    display_name: str
    package_type: PackageType
    is_active: bool
    last_committed: datetime | None


class OrderKey(str, Enum):
    """Ordering terms a search plan can request, applied in sequence."""

    ACTIVE_FIRST = "active_first"
    NAME_PREFIX_FIRST = "name_prefix_first"
    NAME_ASC = "name_asc"
    LAST_COMMITTED_DESC = "last_committed_desc"


@dataclass(frozen=True)
class SearchPlan:
    """Filters, ordering and page window for one catalogue search.

    Attributes:
        text: Substring to match against name or display name (None = any).
        package_type: Restrict to one type (None = any).
        active_only: Restrict to active packages.
        order_by: Ordering terms, most significant first.
        page: 1-based page number.
        page_size: Results per page.
    """

    text: str | None
    package_type: PackageType | None
    active_only: bool
    order_by: tuple[OrderKey, ...]
    page: int
    page_size: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


@dataclass(frozen=True)
class SearchPage:
    """One page of search results plus the total match count."""

    items: list[PackageRecord] = field(default_factory=list)
    total: int = 0


class AbstractPackageRepository(ABC):
    """Read access to the package catalogue."""

    @abstractmethod
    def get_by_name(self, name: str) -> PackageRecord | None:
        """Return the package whose stored name equals ``name`` exactly."""
        raise NotImplementedError

    @abstractmethod
    def search(self, plan: SearchPlan) -> SearchPage:
        """Execute a search plan and return the requested page."""
        raise NotImplementedError
