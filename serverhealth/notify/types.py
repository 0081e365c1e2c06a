"""Domain types for the notification subsystem."""

from __future__ import annotations

import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class NotificationLevel(StrEnum):
    """Alert severity attached to every message."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class ProviderKind(StrEnum):
    """Supported chat-service integrations."""

    SLACK = "slack"
    TELEGRAM = "telegram"
    DISCORD = "discord"


def _local_now() -> datetime.datetime:
    return datetime.datetime.now().astimezone()


class NotificationMessage(BaseModel):
    """Provider-agnostic alert payload. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    level: NotificationLevel
    title: str
    message: str = ""
    hostname: str = ""
    ip: str = ""
    timestamp: datetime.datetime = Field(default_factory=_local_now)
    metric: str = ""
    value: str = ""
    threshold: str = ""

    @property
    def has_metric(self) -> bool:
        return bool(self.metric and self.value)
