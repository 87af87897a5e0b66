"""Pydantic schemas for package search responses."""

from __future__ import annotations

from datetime import datetime
from typing import List, Literal

from pydantic import BaseModel, Field

from app.adapters.packages.base import PackageRecord


class PackageOut(BaseModel):
    """One package in a search result."""

    name: str = Field(..., description="Canonical package name.")
    display_name: str = Field(..., description="Human-readable title.")
    type: Literal["plugin", "theme"] = Field(..., description="Package type.")
    is_active: bool = Field(..., description="Whether the package is still maintained.")
    last_committed: datetime | None = Field(
        default=None, description="Most recent upstream commit (UTC)."
    )

    @classmethod
    def from_record(cls, record: PackageRecord) -> "PackageOut":
        return cls(
            name=record.name,
            display_name=record.display_name,
            type=record.package_type.value,
            is_active=record.is_active,
            last_committed=record.last_committed,
        )


class SearchResponse(BaseModel):
    """A page of search results with pagination metadata."""

    q: str | None = Field(default=None, description="Search text as applied (trimmed).")
    type: Literal["any", "plugin", "theme"] = Field("any", description="Type filter.")
    active_only: bool = Field(False, description="Whether inactive packages were excluded.")
    page: int = Field(..., description="1-based page number.")
    page_size: int = Field(..., description="Maximum results per page.")
    total: int = Field(..., description="Total number of matching packages.")
    total_pages: int = Field(..., description="Number of pages for this query.")
    results: List[PackageOut] = Field(
        default_factory=list,
        description="Packages on this page (empty when the page is out of range).",
    )
