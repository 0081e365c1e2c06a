"""psutil-backed utilisation readers for disk, CPU and memory."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

import psutil

from serverhealth.core.types import MetricName
from serverhealth.sources.exceptions import MetricSampleError

# A source returns a percentage in [0, 100] or raises MetricSampleError.
MetricSource = Callable[[], float | Awaitable[float]]


def _checked(metric: MetricName, value: float) -> float:
    if not 0.0 <= value <= 100.0:
        raise MetricSampleError(f"{metric} reading out of range: {value}")
    return float(value)


def disk_usage(path: str = "/") -> float:
    """Percentage of *path*'s filesystem in use."""
    try:
        return _checked(MetricName.DISK, psutil.disk_usage(path).percent)
    except (OSError, psutil.Error) as exc:
        raise MetricSampleError(f"failed to read disk usage for {path}: {exc}") from exc


def memory_usage() -> float:
    """Percentage of physical memory in use."""
    try:
        return _checked(MetricName.MEMORY, psutil.virtual_memory().percent)
    except (OSError, psutil.Error) as exc:
        raise MetricSampleError(f"failed to read memory usage: {exc}") from exc


async def cpu_usage(interval: float = 1.0) -> float:
    """System-wide CPU utilisation measured over *interval* seconds.

    ``psutil.cpu_percent`` blocks for the interval, so it runs in a worker
    thread.
    """
    try:
        value = await asyncio.to_thread(psutil.cpu_percent, interval)
    except (OSError, psutil.Error) as exc:
        raise MetricSampleError(f"failed to read CPU usage: {exc}") from exc
    return _checked(MetricName.CPU, value)


def default_sources(disk_path: str = "/") -> dict[MetricName, MetricSource]:
    return {
        MetricName.DISK: lambda: disk_usage(disk_path),
        MetricName.CPU: cpu_usage,
        MetricName.MEMORY: memory_usage,
    }
