"""Interface to the external metadata refresh operation."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class AbstractPackageUpdater(ABC):
    """Refreshes the stored metadata of one package.

    Implementations own their failure handling: errors are logged internally
    and never raised to the caller.
    """

    @abstractmethod
    def update(self, name: str) -> None:
        """Refresh the package with canonical name ``name``.

        Args:
            name: Canonical package name as stored in the catalogue.
        """
        ...


class LoggingPackageUpdater(AbstractPackageUpdater):
    """Updater used when no refresh backend is configured; only logs."""

    def update(self, name: str) -> None:
        logger.info("updater.skipped", extra={"package": name, "reason": "no_backend"})
