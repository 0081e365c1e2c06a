"""Convenience factory for wiring the notification stack from config."""

from __future__ import annotations

import structlog

from serverhealth.core.config import NotificationConfig
from serverhealth.notify.exceptions import ProviderValidationError
from serverhealth.notify.http import SharedSession
from serverhealth.notify.manager import NotificationManager
from serverhealth.notify.providers import build_provider

logger = structlog.get_logger(__name__)


def create_notification_manager(
    configs: list[NotificationConfig],
    session: SharedSession | None = None,
) -> NotificationManager:
    """Build a manager holding every enabled, valid provider in *configs*.

    Invalid entries are logged and skipped; they never block startup.
    """
    shared = session or SharedSession()
    manager = NotificationManager(session=shared)

    for index, config in enumerate(configs):
        if not config.enabled:
            continue
        try:
            manager.add_provider(build_provider(config, session=shared))
        except ProviderValidationError as exc:
            logger.error(
                "provider_rejected",
                index=index,
                provider=config.type,
                error=str(exc),
            )

    return manager
