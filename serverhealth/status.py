"""Human-readable configuration summary and the test-notification helper."""

from __future__ import annotations

import structlog

from serverhealth.core.config import NotificationConfig, Settings
from serverhealth.core.types import HostInfo, MetricName
from serverhealth.notify.manager import NotificationManager
from serverhealth.notify.types import NotificationLevel, NotificationMessage

logger = structlog.get_logger(__name__)


def _mask(value: str, keep: int = 30) -> str:
    if len(value) <= keep:
        return value
    return value[:keep] + "..."


def describe_provider(config: NotificationConfig) -> str:
    """One-line provider description with credentials truncated."""
    if config.type.lower() == "telegram":
        return f"telegram: bot token configured (chat {config.chat_id})"
    return f"{config.type}: {_mask(config.webhook_url.get_secret_value())}"


def render_status(settings: Settings) -> str:
    lines = ["ServerHealth configuration", "", "Monitoring:"]
    for metric in MetricName:
        cfg = settings.monitoring(metric)
        if not cfg.enabled:
            lines.append(f"  - {metric.display_name}: disabled")
            continue
        lines.append(
            f"  - {metric.display_name}: threshold {cfg.threshold}%, "
            f"every {cfg.check_interval_secs:g}s, "
            f"max {cfg.max_daily_alerts} alerts/day"
        )

    lines += ["", "Notification providers:"]
    enabled = [n for n in settings.notifications if n.enabled]
    if not enabled:
        lines.append("  - none configured")
    lines += [f"  - {describe_provider(n)}" for n in enabled]
    return "\n".join(lines)


def build_test_message(host: HostInfo) -> NotificationMessage:
    return NotificationMessage(
        level=NotificationLevel.INFO,
        title="ServerHealth Test Notification",
        message="Notifications are configured correctly.",
        hostname=host.hostname,
        ip=host.ip,
    )


async def send_test_notification(manager: NotificationManager, host: HostInfo) -> bool:
    """Send an info-level message to every provider and wait for delivery.

    Returns False when there is no provider to send to.
    """
    if not manager.providers:
        return False
    manager.send(build_test_message(host))
    await manager.wait_idle()
    logger.info("test_notification_done", providers=len(manager.providers))
    return True
