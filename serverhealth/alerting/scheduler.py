"""Per-metric evaluation loops and the daily quota reset."""

from __future__ import annotations

import asyncio

import structlog

from serverhealth.alerting.evaluator import AlertEvaluator
from serverhealth.core.config import Settings
from serverhealth.core.types import HostInfo, MetricName
from serverhealth.notify.manager import NotificationManager
from serverhealth.sources.metrics import MetricSource

logger = structlog.get_logger(__name__)


class MonitorScheduler:
    """Runs every evaluator on its own interval until stopped.

    One task per evaluator plus one reset task; all wait on the same stop
    event, so :meth:`stop` wakes every loop at once.

    Usage::

        scheduler = MonitorScheduler(evaluators)
        await scheduler.start()
        # ...
        await scheduler.stop()
    """

    def __init__(
        self,
        evaluators: list[AlertEvaluator],
        reset_check_secs: float = 60.0,
    ) -> None:
        self._evaluators = evaluators
        self._reset_check_secs = reset_check_secs
        self._stop_event = asyncio.Event()
        self._tasks: list[asyncio.Task[None]] = []
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    @property
    def evaluators(self) -> list[AlertEvaluator]:
        return list(self._evaluators)

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._stop_event.clear()
        for ev in self._evaluators:
            self._tasks.append(
                asyncio.create_task(self._metric_loop(ev), name=f"monitor-{ev.metric}")
            )
        self._tasks.append(asyncio.create_task(self._reset_loop(), name="alert-reset"))
        logger.info(
            "monitoring_started",
            metrics=[str(ev.metric) for ev in self._evaluators],
        )

    async def stop(self) -> None:
        self._running = False
        self._stop_event.set()
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        if tasks:
            logger.info("monitoring_stopped")

    async def run_until_stopped(self, stop_event: asyncio.Event) -> None:
        """Start, block until *stop_event* is set, then stop."""
        await self.start()
        try:
            await stop_event.wait()
        finally:
            await self.stop()

    # ── Internal loops ──────────────────────────────────────────

    async def _wait_or_stop(self, secs: float) -> bool:
        """Sleep *secs*; return True early if the stop event fires."""
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=secs)
        except asyncio.TimeoutError:
            return False
        return True

    async def _metric_loop(self, ev: AlertEvaluator) -> None:
        interval = ev.config.check_interval_secs
        while not self._stop_event.is_set():
            try:
                await ev.evaluate()
            except asyncio.CancelledError:
                return
            except Exception:
                logger.exception("evaluation_cycle_error", metric=str(ev.metric))
            if await self._wait_or_stop(interval):
                return

    async def _reset_loop(self) -> None:
        while not await self._wait_or_stop(self._reset_check_secs):
            reset = [str(ev.metric) for ev in self._evaluators if ev.reset_if_new_day()]
            if reset:
                logger.info("alert_counts_reset", metrics=reset)


def build_evaluators(
    settings: Settings,
    manager: NotificationManager,
    host: HostInfo,
    sources: dict[MetricName, MetricSource],
) -> list[AlertEvaluator]:
    """One evaluator per enabled metric that has a source."""
    evaluators: list[AlertEvaluator] = []
    for metric in MetricName:
        config = settings.monitoring(metric)
        if not config.enabled:
            continue
        source = sources.get(metric)
        if source is None:
            logger.warning("metric_source_missing", metric=str(metric))
            continue
        evaluators.append(
            AlertEvaluator(
                metric=metric,
                config=config,
                source=source,
                manager=manager,
                host=host,
            )
        )
    return evaluators
