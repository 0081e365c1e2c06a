"""Exception hierarchy for notification delivery."""

from __future__ import annotations


class NotificationError(Exception):
    """Base exception for all notification errors."""


class ProviderValidationError(NotificationError):
    """Provider configuration is unusable (bad URL, missing credential)."""


class DeliveryError(NotificationError):
    """A message could not be delivered after exhausting all attempts."""

    def __init__(self, message: str, attempts: int, status: int | None = None) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.status = status
