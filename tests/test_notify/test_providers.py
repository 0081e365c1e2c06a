"""Tests for notification providers — validation, wire formats, delivery."""

from __future__ import annotations

import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic import SecretStr

from serverhealth.core.config import NotificationConfig
from serverhealth.notify.exceptions import DeliveryError, ProviderValidationError
from serverhealth.notify.http import SharedSession
from serverhealth.notify.providers import (
    DiscordProvider,
    SlackProvider,
    TelegramProvider,
    build_provider,
)
from serverhealth.notify.types import NotificationLevel, NotificationMessage, ProviderKind

SLACK_URL = "https://hooks.slack.com/services/T000/B000/XXXX"
DISCORD_URL = "https://discord.com/api/webhooks/123/abc"

_TS = datetime.datetime(2025, 6, 15, 14, 30, 5, tzinfo=datetime.timezone.utc)


# ── Helpers ─────────────────────────────────────────────────────


def _msg(**kw: object) -> NotificationMessage:
    defaults: dict[str, object] = {
        "level": NotificationLevel.WARNING,
        "title": "CPU Usage Alert",
        "message": "CPU usage has exceeded the threshold of 80%.",
        "hostname": "web-01",
        "ip": "10.0.0.5",
        "timestamp": _TS,
        "metric": "CPU",
        "value": "85%",
        "threshold": "80%",
    }
    defaults.update(kw)
    return NotificationMessage(**defaults)  # type: ignore[arg-type]


def _mock_response(status: int = 200, text: str = "ok") -> AsyncMock:
    resp = AsyncMock()
    resp.status = status
    resp.text = AsyncMock(return_value=text)
    resp.__aenter__ = AsyncMock(return_value=resp)
    resp.__aexit__ = AsyncMock(return_value=False)
    return resp


def _shared(status: int = 200) -> tuple[SharedSession, MagicMock]:
    mock_session = MagicMock()
    mock_session.post = MagicMock(return_value=_mock_response(status))
    mock_session.closed = False
    shared = SharedSession()
    shared._session = mock_session
    return shared, mock_session


# ── Validation ─────────────────────────────────────────────────


class TestSlackValidation:
    def test_valid_url(self) -> None:
        SlackProvider(SLACK_URL).validate()

    def test_empty_url(self) -> None:
        with pytest.raises(ProviderValidationError, match="webhook URL is required"):
            SlackProvider("").validate()

    def test_http_rejected(self) -> None:
        with pytest.raises(ProviderValidationError, match="HTTPS"):
            SlackProvider("http://hooks.slack.com/services/x").validate()

    def test_wrong_host_rejected(self) -> None:
        with pytest.raises(ProviderValidationError, match="hooks.slack.com"):
            SlackProvider("https://not-slack.example/x").validate()

    def test_plain_http_other_host_rejected(self) -> None:
        with pytest.raises(ProviderValidationError):
            SlackProvider("http://not-slack.example/x").validate()

    def test_userinfo_does_not_count_as_host(self) -> None:
        with pytest.raises(ProviderValidationError, match="hooks.slack.com"):
            SlackProvider("https://hooks.slack.com@attacker.example/services/x").validate()

    def test_lookalike_suffix_rejected(self) -> None:
        with pytest.raises(ProviderValidationError):
            SlackProvider("https://hooks.slack.com.attacker.example/services/x").validate()

    def test_port_allowed(self) -> None:
        SlackProvider("https://hooks.slack.com:443/services/x").validate()


class TestDiscordValidation:
    def test_discord_com(self) -> None:
        DiscordProvider(DISCORD_URL).validate()

    def test_discordapp_com(self) -> None:
        DiscordProvider("https://discordapp.com/api/webhooks/1/a").validate()

    def test_wrong_host_names_both_domains(self) -> None:
        with pytest.raises(ProviderValidationError) as exc_info:
            DiscordProvider("https://example.com/api/webhooks/1/a").validate()
        assert "discord.com or discordapp.com" in str(exc_info.value)

    def test_http_rejected(self) -> None:
        with pytest.raises(ProviderValidationError, match="HTTPS"):
            DiscordProvider("http://discord.com/api/webhooks/1/a").validate()

    def test_userinfo_does_not_count_as_host(self) -> None:
        with pytest.raises(ProviderValidationError):
            DiscordProvider("https://discord.com:x@evil.example/api/webhooks/1").validate()

    def test_subdomain_accepted(self) -> None:
        DiscordProvider("https://canary.discord.com/api/webhooks/1/a").validate()


class TestTelegramValidation:
    def test_valid(self) -> None:
        TelegramProvider("123:abc", "42").validate()

    def test_missing_token(self) -> None:
        with pytest.raises(ProviderValidationError, match="bot token"):
            TelegramProvider("", "42").validate()

    def test_missing_chat_id(self) -> None:
        with pytest.raises(ProviderValidationError, match="chat ID"):
            TelegramProvider("123:abc", "").validate()


# ── Slack formatting ───────────────────────────────────────────


class TestSlackPayload:
    def test_full_text(self) -> None:
        payload = SlackProvider(SLACK_URL).build_payload(_msg())
        assert payload == {
            "text": (
                ":warning: *CPU Usage Alert*\n"
                "CPU usage has exceeded the threshold of 80%.\n\n"
                "*Server:* web-01 (10.0.0.5)\n"
                "*Time:* 2025-06-15 14:30:05\n"
                "*Metric:* CPU = 85% (threshold: 80%)"
            )
        }

    @pytest.mark.parametrize(
        ("level", "emoji"),
        [
            (NotificationLevel.INFO, ":information_source:"),
            (NotificationLevel.WARNING, ":warning:"),
            (NotificationLevel.ERROR, ":x:"),
        ],
    )
    def test_emoji_by_level(self, level: NotificationLevel, emoji: str) -> None:
        payload = SlackProvider(SLACK_URL).build_payload(_msg(level=level))
        assert payload["text"].startswith(f"{emoji} *")

    def test_no_metric_line_without_metric(self) -> None:
        payload = SlackProvider(SLACK_URL).build_payload(_msg(metric="", value=""))
        assert "*Metric:*" not in payload["text"]

    def test_metric_line_without_threshold(self) -> None:
        payload = SlackProvider(SLACK_URL).build_payload(_msg(threshold=""))
        assert payload["text"].endswith("*Metric:* CPU = 85%")


# ── Telegram formatting ────────────────────────────────────────


class TestTelegramPayload:
    def test_payload_shape(self) -> None:
        provider = TelegramProvider("123:abc", "-1001")
        payload = provider.build_payload(_msg(level=NotificationLevel.ERROR))
        assert payload["chat_id"] == "-1001"
        assert payload["parse_mode"] == "Markdown"
        assert payload["text"] == (
            "❌ *CPU Usage Alert*\n\n"
            "CPU usage has exceeded the threshold of 80%.\n\n"
            "*Server:* web-01 (10.0.0.5)\n"
            "*Time:* 2025-06-15 14:30:05\n"
            "*Metric:* CPU = 85% (threshold: 80%)"
        )

    def test_endpoint_built_from_token(self) -> None:
        provider = TelegramProvider("123:abc", "42")
        assert provider.endpoint == "https://api.telegram.org/bot123:abc/sendMessage"

    def test_redacted_endpoint_hides_token(self) -> None:
        provider = TelegramProvider("123:abc", "42")
        assert "123:abc" not in provider.redacted_endpoint()

    def test_redacted_endpoint_drops_userinfo(self) -> None:
        provider = SlackProvider("https://user:pw@hooks.slack.com/services/T/B/X")
        assert provider.redacted_endpoint() == "https://hooks.slack.com/..."

    @pytest.mark.parametrize(
        ("level", "emoji"),
        [
            (NotificationLevel.INFO, "ℹ️"),
            (NotificationLevel.WARNING, "⚠️"),
            (NotificationLevel.ERROR, "❌"),
        ],
    )
    def test_emoji_by_level(self, level: NotificationLevel, emoji: str) -> None:
        payload = TelegramProvider("t", "c").build_payload(_msg(level=level))
        assert payload["text"].startswith(emoji)


# ── Discord formatting ─────────────────────────────────────────


class TestDiscordPayload:
    def test_embed_shape(self) -> None:
        payload = DiscordProvider(DISCORD_URL).build_payload(_msg())
        assert len(payload["embeds"]) == 1
        embed = payload["embeds"][0]
        assert embed["title"] == "CPU Usage Alert"
        assert embed["description"] == "CPU usage has exceeded the threshold of 80%."
        assert embed["timestamp"] == "2025-06-15T14:30:05+00:00"
        assert embed["fields"] == [
            {"name": "Server", "value": "web-01 (10.0.0.5)", "inline": True},
            {"name": "Metric", "value": "CPU", "inline": True},
            {"name": "Value", "value": "85%", "inline": True},
            {"name": "Threshold", "value": "80%", "inline": True},
        ]

    def test_color_by_level(self) -> None:
        provider = DiscordProvider(DISCORD_URL)
        for level, expected in [
            (NotificationLevel.INFO, 0x00FF00),
            (NotificationLevel.WARNING, 0xFFFF00),
            (NotificationLevel.ERROR, 0xFF0000),
        ]:
            payload = provider.build_payload(_msg(level=level))
            assert payload["embeds"][0]["color"] == expected

    def test_server_only_without_metric(self) -> None:
        payload = DiscordProvider(DISCORD_URL).build_payload(
            _msg(metric="", value="", threshold="")
        )
        names = [f["name"] for f in payload["embeds"][0]["fields"]]
        assert names == ["Server"]


# ── Delivery ───────────────────────────────────────────────────


class TestSend:
    async def test_slack_posts_to_webhook(self) -> None:
        shared, mock_session = _shared(200)
        await SlackProvider(SLACK_URL, session=shared).send(_msg())
        url = mock_session.post.call_args[0][0]
        assert url == SLACK_URL
        assert "text" in mock_session.post.call_args[1]["json"]

    async def test_telegram_posts_to_bot_endpoint(self) -> None:
        shared, mock_session = _shared(200)
        await TelegramProvider("tok", "42", session=shared).send(_msg())
        url = mock_session.post.call_args[0][0]
        assert url == "https://api.telegram.org/bottok/sendMessage"

    async def test_discord_204_success(self) -> None:
        shared, mock_session = _shared(204)
        await DiscordProvider(DISCORD_URL, session=shared).send(_msg())
        mock_session.post.assert_called_once()

    async def test_failure_raises_after_retries(self) -> None:
        shared, mock_session = _shared(500)
        provider = SlackProvider(SLACK_URL, session=shared, retry_delay=0)
        with pytest.raises(DeliveryError):
            await provider.send(_msg())
        assert mock_session.post.call_count == 3


class TestProviderClose:
    async def test_closes_session_it_created(self) -> None:
        provider = SlackProvider(SLACK_URL)
        provider._session.close = AsyncMock()  # type: ignore[method-assign]
        await provider.close()
        provider._session.close.assert_awaited_once()

    async def test_leaves_injected_session_open(self) -> None:
        shared = SharedSession()
        shared.close = AsyncMock()  # type: ignore[method-assign]
        await SlackProvider(SLACK_URL, session=shared).close()
        shared.close.assert_not_awaited()


# ── Registry ───────────────────────────────────────────────────


class TestBuildProvider:
    def test_slack(self) -> None:
        provider = build_provider(
            NotificationConfig(type="slack", webhook_url=SecretStr(SLACK_URL))
        )
        assert isinstance(provider, SlackProvider)
        assert provider.kind is ProviderKind.SLACK
        assert provider.webhook_url == SLACK_URL

    def test_telegram(self) -> None:
        provider = build_provider(
            NotificationConfig(type="telegram", bot_token=SecretStr("t"), chat_id="1")
        )
        assert isinstance(provider, TelegramProvider)
        assert provider.bot_token == "t"
        assert provider.chat_id == "1"

    def test_discord_case_insensitive(self) -> None:
        provider = build_provider(
            NotificationConfig(type="Discord", webhook_url=SecretStr(DISCORD_URL))
        )
        assert isinstance(provider, DiscordProvider)

    def test_unknown_type(self) -> None:
        with pytest.raises(ProviderValidationError, match="unknown"):
            build_provider(NotificationConfig(type="pagerduty"))

    def test_shared_session_passed_through(self) -> None:
        shared = SharedSession()
        provider = build_provider(
            NotificationConfig(type="slack", webhook_url=SecretStr(SLACK_URL)),
            session=shared,
        )
        assert provider._session is shared
