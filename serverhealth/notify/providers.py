"""Notification providers — Slack, Telegram and Discord delivery."""

from __future__ import annotations

import abc
from typing import Any
from urllib.parse import urlparse

import structlog

from serverhealth.core.config import NotificationConfig
from serverhealth.notify.exceptions import ProviderValidationError
from serverhealth.notify.http import (
    MAX_ATTEMPTS,
    RETRY_DELAY_SECS,
    REQUEST_TIMEOUT_SECS,
    SharedSession,
    post_json,
)
from serverhealth.notify.types import NotificationLevel, NotificationMessage, ProviderKind

logger = structlog.get_logger(__name__)

_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

_SLACK_EMOJI: dict[NotificationLevel, str] = {
    NotificationLevel.INFO: ":information_source:",
    NotificationLevel.WARNING: ":warning:",
    NotificationLevel.ERROR: ":x:",
}

_TELEGRAM_EMOJI: dict[NotificationLevel, str] = {
    NotificationLevel.INFO: "ℹ️",
    NotificationLevel.WARNING: "⚠️",
    NotificationLevel.ERROR: "❌",
}

# Discord embed colours keyed by level.
_DISCORD_COLORS: dict[NotificationLevel, int] = {
    NotificationLevel.INFO: 0x00FF00,     # green
    NotificationLevel.WARNING: 0xFFFF00,  # yellow
    NotificationLevel.ERROR: 0xFF0000,    # red
}


def _metric_line(msg: NotificationMessage) -> str:
    if not msg.has_metric:
        return ""
    line = f"\n*Metric:* {msg.metric} = {msg.value}"
    if msg.threshold:
        line += f" (threshold: {msg.threshold})"
    return line


def _validate_webhook_url(url: str, domains: tuple[str, ...]) -> None:
    if not url:
        raise ProviderValidationError("webhook URL is required")
    try:
        parsed = urlparse(url)
    except ValueError as exc:
        raise ProviderValidationError(f"invalid URL format: {exc}") from exc
    if parsed.scheme != "https":
        raise ProviderValidationError("webhook URL must use HTTPS")
    host = (parsed.hostname or "").lower()
    if not any(host == d or host.endswith("." + d) for d in domains):
        raise ProviderValidationError(
            f"webhook URL must be from {' or '.join(domains)}"
        )


class NotificationProvider(abc.ABC):
    """Base class for alert delivery providers.

    Subclasses build a wire payload in ``build_payload`` and name their
    endpoint in ``endpoint``; the base class owns the retrying POST.
    """

    kind: ProviderKind

    def __init__(
        self,
        session: SharedSession | None = None,
        max_attempts: int = MAX_ATTEMPTS,
        retry_delay: float = RETRY_DELAY_SECS,
        timeout: float = REQUEST_TIMEOUT_SECS,
    ) -> None:
        self._owns_session = session is None
        self._session = session or SharedSession()
        self._max_attempts = max_attempts
        self._retry_delay = retry_delay
        self._timeout = timeout

    @abc.abstractmethod
    def validate(self) -> None:
        """Check credentials/URL without touching the network.

        Raises:
            ProviderValidationError: naming the invalid field.
        """

    @abc.abstractmethod
    def build_payload(self, msg: NotificationMessage) -> dict[str, Any]:
        """Format *msg* into this provider's JSON body."""

    @property
    @abc.abstractmethod
    def endpoint(self) -> str:
        """URL the payload is POSTed to."""

    def redacted_endpoint(self) -> str:
        """Endpoint safe for logs — webhook paths and bot tokens are secrets."""
        parsed = urlparse(self.endpoint)
        return f"{parsed.scheme}://{parsed.hostname}/..."

    async def send(self, msg: NotificationMessage) -> None:
        """Deliver *msg*, retrying on failure.

        Raises:
            DeliveryError: all attempts failed.
        """
        await post_json(
            self._session.get(),
            self.endpoint,
            self.build_payload(msg),
            max_attempts=self._max_attempts,
            retry_delay=self._retry_delay,
            timeout=self._timeout,
            log_url=self.redacted_endpoint(),
        )

    async def close(self) -> None:
        """Close the HTTP session if this provider created it."""
        if self._owns_session:
            await self._session.close()


class SlackProvider(NotificationProvider):
    """Delivers alerts to a Slack incoming webhook as plain mrkdwn text."""

    kind = ProviderKind.SLACK
    allowed_domains = ("hooks.slack.com",)

    def __init__(self, webhook_url: str, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.webhook_url = webhook_url

    def validate(self) -> None:
        _validate_webhook_url(self.webhook_url, self.allowed_domains)

    @property
    def endpoint(self) -> str:
        return self.webhook_url

    def build_payload(self, msg: NotificationMessage) -> dict[str, Any]:
        text = (
            f"{_SLACK_EMOJI[msg.level]} *{msg.title}*\n{msg.message}\n\n"
            f"*Server:* {msg.hostname} ({msg.ip})\n"
            f"*Time:* {msg.timestamp.strftime(_TIME_FORMAT)}"
        )
        text += _metric_line(msg)
        return {"text": text}


class TelegramProvider(NotificationProvider):
    """Delivers alerts via the Telegram Bot API (Markdown parse mode)."""

    kind = ProviderKind.TELEGRAM
    api_host = "api.telegram.org"

    def __init__(self, bot_token: str, chat_id: str, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.bot_token = bot_token
        self.chat_id = chat_id

    def validate(self) -> None:
        if not self.bot_token:
            raise ProviderValidationError("bot token is required")
        if not self.chat_id:
            raise ProviderValidationError("chat ID is required")

    @property
    def endpoint(self) -> str:
        return f"https://{self.api_host}/bot{self.bot_token}/sendMessage"

    def build_payload(self, msg: NotificationMessage) -> dict[str, Any]:
        text = (
            f"{_TELEGRAM_EMOJI[msg.level]} *{msg.title}*\n\n{msg.message}\n\n"
            f"*Server:* {msg.hostname} ({msg.ip})\n"
            f"*Time:* {msg.timestamp.strftime(_TIME_FORMAT)}"
        )
        text += _metric_line(msg)
        return {
            "chat_id": self.chat_id,
            "text": text,
            "parse_mode": "Markdown",
        }


class DiscordProvider(NotificationProvider):
    """Delivers alerts via a Discord webhook with colour-coded embeds."""

    kind = ProviderKind.DISCORD
    allowed_domains = ("discord.com", "discordapp.com")

    def __init__(self, webhook_url: str, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.webhook_url = webhook_url

    def validate(self) -> None:
        _validate_webhook_url(self.webhook_url, self.allowed_domains)

    @property
    def endpoint(self) -> str:
        return self.webhook_url

    def build_payload(self, msg: NotificationMessage) -> dict[str, Any]:
        fields = [
            {"name": "Server", "value": f"{msg.hostname} ({msg.ip})", "inline": True},
        ]
        if msg.metric:
            fields.append({"name": "Metric", "value": msg.metric, "inline": True})
        if msg.value:
            fields.append({"name": "Value", "value": msg.value, "inline": True})
        if msg.threshold:
            fields.append({"name": "Threshold", "value": msg.threshold, "inline": True})

        embed = {
            "title": msg.title,
            "description": msg.message,
            "color": _DISCORD_COLORS[msg.level],
            "fields": fields,
            "timestamp": msg.timestamp.isoformat(),
        }
        return {"embeds": [embed]}


PROVIDER_TYPES: dict[ProviderKind, type[NotificationProvider]] = {
    ProviderKind.SLACK: SlackProvider,
    ProviderKind.TELEGRAM: TelegramProvider,
    ProviderKind.DISCORD: DiscordProvider,
}


def build_provider(
    config: NotificationConfig,
    session: SharedSession | None = None,
) -> NotificationProvider:
    """Instantiate the provider class named by ``config.type``.

    The returned provider is not yet validated.

    Raises:
        ProviderValidationError: unknown provider type.
    """
    try:
        kind = ProviderKind(config.type.lower())
    except ValueError:
        raise ProviderValidationError(
            f"unknown notification provider type: {config.type!r}"
        ) from None

    if kind is ProviderKind.TELEGRAM:
        return TelegramProvider(
            bot_token=config.bot_token.get_secret_value(),
            chat_id=config.chat_id,
            session=session,
        )
    return PROVIDER_TYPES[kind](
        webhook_url=config.webhook_url.get_secret_value(),
        session=session,
    )
