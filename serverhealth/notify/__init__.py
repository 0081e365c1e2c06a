"""Notification dispatch — providers, fan-out manager and retrying HTTP."""

from serverhealth.notify.exceptions import (
    DeliveryError,
    NotificationError,
    ProviderValidationError,
)
from serverhealth.notify.factory import create_notification_manager
from serverhealth.notify.http import SharedSession, post_json
from serverhealth.notify.manager import NotificationManager
from serverhealth.notify.providers import (
    PROVIDER_TYPES,
    DiscordProvider,
    NotificationProvider,
    SlackProvider,
    TelegramProvider,
    build_provider,
)
from serverhealth.notify.types import NotificationLevel, NotificationMessage, ProviderKind

__all__ = [
    "DeliveryError",
    "DiscordProvider",
    "NotificationError",
    "NotificationLevel",
    "NotificationManager",
    "NotificationMessage",
    "NotificationProvider",
    "PROVIDER_TYPES",
    "ProviderKind",
    "ProviderValidationError",
    "SharedSession",
    "SlackProvider",
    "TelegramProvider",
    "build_provider",
    "create_notification_manager",
    "post_json",
]
