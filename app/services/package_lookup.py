"""Resolve client-supplied package names to catalogue records."""

from __future__ import annotations

import logging

from app.adapters.packages.base import AbstractPackageRepository, PackageRecord

logger = logging.getLogger(__name__)


class PackageLookup:
    """Exact-match package resolution.

    The raw name is used verbatim: no trimming, no case folding. A miss is a
    routine outcome and returns None.
    """

    def __init__(self, repository: AbstractPackageRepository) -> None:
        self._repository = repository

    def resolve(self, raw_name: str) -> PackageRecord | None:
        record = self._repository.get_by_name(raw_name)
        if record is None:
            logger.debug("package_lookup.miss", extra={"package": raw_name})
        return record
