"""Metric kinds accepted by the ingestion routes."""

from __future__ import annotations

from enum import Enum

from metricmemory.registry.errors import InvalidMetricKindError


class MetricKind(str, Enum):
    """Closed set of aggregate kinds; the value doubles as the route segment."""

    GAUGE = "gauge"
    COUNTER = "counter"
    HISTOGRAM = "histogram"
    SUMMARY = "summary"

    @classmethod
    def parse(cls, value: str) -> "MetricKind":
        try:
            return cls(value)
        except ValueError as exc:
            raise InvalidMetricKindError(value) from exc

    def __str__(self) -> str:
        return self.value
