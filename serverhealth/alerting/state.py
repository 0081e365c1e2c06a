"""Per-metric daily alert counter."""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field


def _today() -> datetime.date:
    return datetime.date.today()


@dataclass
class AlertState:
    """Today's sent-alert count for one metric.

    Mutated only on the event loop thread, by the metric's evaluator and by
    the scheduler's reset task.
    """

    sent_count: int = 0
    reset_date: datetime.date = field(default_factory=_today)

    def quota_exhausted(self, max_daily_alerts: int) -> bool:
        return self.sent_count >= max_daily_alerts

    def record_alert(self) -> None:
        self.sent_count += 1

    def reset_if_new_day(self, today: datetime.date) -> bool:
        """Zero the counter once per calendar day. Returns True if reset."""
        if today == self.reset_date:
            return False
        self.sent_count = 0
        self.reset_date = today
        return True
