"""Threshold + daily-quota evaluation for a single metric."""

from __future__ import annotations

import asyncio
import datetime
from decimal import ROUND_DOWN, Decimal
from typing import Callable

import structlog

from serverhealth.alerting.state import AlertState
from serverhealth.core.config import MonitoringConfig
from serverhealth.core.types import HostInfo, MetricName
from serverhealth.notify.manager import NotificationManager
from serverhealth.notify.types import NotificationLevel, NotificationMessage
from serverhealth.sources.metrics import MetricSource

logger = structlog.get_logger(__name__)

# Fixed cut-point; independent of the configured threshold.
ERROR_USAGE_PCT = 95.0

Clock = Callable[[], datetime.datetime]


def local_now() -> datetime.datetime:
    return datetime.datetime.now().astimezone()


def classify_severity(usage: float) -> NotificationLevel:
    """``error`` at or above 95%, ``warning`` otherwise."""
    if usage >= ERROR_USAGE_PCT:
        return NotificationLevel.ERROR
    return NotificationLevel.WARNING


def format_percent(value: float) -> str:
    """85 -> "85%", 85.3 -> "85.3%", 85.129 -> "85.12%".

    Truncates rather than rounds: 94.999 -> "94.99%".
    """
    cents = Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_DOWN)
    text = f"{cents:f}".rstrip("0").rstrip(".")
    return f"{text}%"


class AlertEvaluator:
    """Samples one metric and raises an alert when it breaches its threshold.

    Each :meth:`evaluate` call is one cycle:

    1. roll the daily counter over if the date changed;
    2. stop silently if today's quota is used up;
    3. sample (errors are logged, the cycle is skipped, no quota is used);
    4. below threshold -> nothing; otherwise build a message, hand it to the
       manager and count it, whether or not delivery later succeeds.
    """

    def __init__(
        self,
        metric: MetricName,
        config: MonitoringConfig,
        source: MetricSource,
        manager: NotificationManager,
        host: HostInfo,
        state: AlertState | None = None,
        clock: Clock = local_now,
    ) -> None:
        self.metric = metric
        self.config = config
        self._source = source
        self._manager = manager
        self._host = host
        self._clock = clock
        self.state = state or AlertState(reset_date=clock().date())

    async def sample(self) -> float:
        result = self._source()
        if asyncio.iscoroutine(result):
            result = await result
        return float(result)  # type: ignore[arg-type]

    def reset_if_new_day(self) -> bool:
        reset = self.state.reset_if_new_day(self._clock().date())
        if reset:
            logger.info("alert_count_reset", metric=str(self.metric))
        return reset

    async def evaluate(self) -> bool:
        """Run one cycle. Returns True when an alert was dispatched."""
        self.reset_if_new_day()

        if self.state.quota_exhausted(self.config.max_daily_alerts):
            logger.debug(
                "alert_quota_exhausted",
                metric=str(self.metric),
                sent_today=self.state.sent_count,
            )
            return False

        try:
            usage = await self.sample()
        except Exception as exc:
            logger.warning("metric_sample_failed", metric=str(self.metric), error=str(exc))
            return False

        logger.debug("metric_sampled", metric=str(self.metric), usage=usage)

        if usage < self.config.threshold:
            return False

        msg = self.build_message(usage)
        self._manager.send(msg)
        self.state.record_alert()
        logger.info(
            "alert_raised",
            metric=str(self.metric),
            level=str(msg.level),
            usage=msg.value,
            threshold=msg.threshold,
            sent_today=self.state.sent_count,
        )
        return True

    def build_message(self, usage: float) -> NotificationMessage:
        name = self.metric.display_name
        threshold = f"{self.config.threshold}%"
        return NotificationMessage(
            level=classify_severity(usage),
            title=f"{name} Usage Alert",
            message=f"{name} usage has exceeded the threshold of {threshold}.",
            hostname=self._host.hostname,
            ip=self._host.ip,
            timestamp=self._clock(),
            metric=name,
            value=format_percent(usage),
            threshold=threshold,
        )
