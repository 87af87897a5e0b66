"""Metadata refresh adapters - abstracts over how a package refresh is run."""

from app.adapters.updater.base import AbstractPackageUpdater, LoggingPackageUpdater
from app.adapters.updater.factory import create_package_updater
from app.adapters.updater.webhook import WebhookPackageUpdater

__all__ = [
    "AbstractPackageUpdater",
    "LoggingPackageUpdater",
    "WebhookPackageUpdater",
    "create_package_updater",
]
