"""In-memory metric registry: kinds, aggregates, creation and action dispatch."""

from metricmemory.registry.actions import ACTIONS, apply_action, legal_actions
from metricmemory.registry.aggregates import (
    Aggregate,
    CounterAggregate,
    GaugeAggregate,
    HistogramAggregate,
    SummaryAggregate,
)
from metricmemory.registry.errors import (
    InvalidActionError,
    InvalidLabelError,
    InvalidMetricKindError,
    InvalidValueError,
    MeasurementDecodeError,
    MetricConflictError,
    MetricError,
)
from metricmemory.registry.kinds import MetricKind
from metricmemory.registry.registry import MetricRegistry

__all__ = [
    "ACTIONS",
    "Aggregate",
    "CounterAggregate",
    "GaugeAggregate",
    "HistogramAggregate",
    "InvalidActionError",
    "InvalidLabelError",
    "InvalidMetricKindError",
    "InvalidValueError",
    "MeasurementDecodeError",
    "MetricConflictError",
    "MetricError",
    "MetricKind",
    "MetricRegistry",
    "SummaryAggregate",
    "apply_action",
    "legal_actions",
]
