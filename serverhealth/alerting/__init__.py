"""Threshold evaluation, daily quotas and the monitoring scheduler."""

from serverhealth.alerting.evaluator import (
    ERROR_USAGE_PCT,
    AlertEvaluator,
    classify_severity,
    format_percent,
)
from serverhealth.alerting.scheduler import MonitorScheduler, build_evaluators
from serverhealth.alerting.state import AlertState

__all__ = [
    "ERROR_USAGE_PCT",
    "AlertEvaluator",
    "AlertState",
    "MonitorScheduler",
    "build_evaluators",
    "classify_severity",
    "format_percent",
]
