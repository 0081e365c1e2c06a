"""Metric sampling exceptions."""

from __future__ import annotations


class MetricSampleError(Exception):
    """A metric source could not produce a reading."""
