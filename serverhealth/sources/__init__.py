"""Metric sources and host identity."""

from serverhealth.sources.exceptions import MetricSampleError
from serverhealth.sources.host import get_server_info
from serverhealth.sources.metrics import (
    MetricSource,
    cpu_usage,
    default_sources,
    disk_usage,
    memory_usage,
)

__all__ = [
    "MetricSampleError",
    "MetricSource",
    "cpu_usage",
    "default_sources",
    "disk_usage",
    "get_server_info",
    "memory_usage",
]
