"""Shared domain types."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel


class MetricName(StrEnum):
    """Monitored host metrics."""

    DISK = "disk"
    CPU = "cpu"
    MEMORY = "memory"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES: dict[MetricName, str] = {
    MetricName.DISK: "Disk",
    MetricName.CPU: "CPU",
    MetricName.MEMORY: "Memory",
}


class HostInfo(BaseModel):
    """Identity of the monitored host, embedded in every alert."""

    hostname: str = "Unknown Host"
    ip: str = "Unknown IP"
