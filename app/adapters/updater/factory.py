"""Factory for the configured metadata refresh backend."""

from app.adapters.updater.base import AbstractPackageUpdater, LoggingPackageUpdater
from app.adapters.updater.webhook import WebhookPackageUpdater
from app.core.config import UpdaterSettings, settings
from app.core.errors import ValidationAppError


def create_package_updater(updater_settings: UpdaterSettings | None = None) -> AbstractPackageUpdater:
    """Instantiate the updater described by configuration.

    Args:
        updater_settings: Optional settings; defaults to the global settings.

    Returns:
        WebhookPackageUpdater when a webhook URL is set, otherwise a
        LoggingPackageUpdater.

    Raises:
        ValidationAppError: If the webhook URL is not an http(s) URL.
    """
    cfg = updater_settings or settings.updater

    if not cfg.webhook_url:
        return LoggingPackageUpdater()

    if not cfg.webhook_url.startswith(("http://", "https://")):
        raise ValidationAppError(
            code="updater_invalid_url",
            message="UPDATER_WEBHOOK_URL must be an http(s) URL",
        )

    return WebhookPackageUpdater(
        cfg.webhook_url,
        timeout_seconds=cfg.timeout_seconds,
    )
