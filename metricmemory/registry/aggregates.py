"""Live aggregates backing each metric identity.

Every aggregate is a ``prometheus_client`` custom collector. It owns its state
behind a private lock: mutations and scrapes both take that lock, so a scrape
sees the value from before or after a mutation and never a partial update.
"""

from __future__ import annotations

import bisect
import math
import threading
from abc import abstractmethod
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import ClassVar

from prometheus_client import Histogram
from prometheus_client.core import (
    CounterMetricFamily,
    GaugeMetricFamily,
    HistogramMetricFamily,
    SummaryMetricFamily,
)
from prometheus_client.metrics_core import Metric
from prometheus_client.registry import Collector
from prometheus_client.utils import INF, floatToGoString

from metricmemory.registry.errors import InvalidLabelError, InvalidValueError
from metricmemory.registry.kinds import MetricKind

DEFAULT_BUCKETS: tuple[float, ...] = tuple(Histogram.DEFAULT_BUCKETS)


def normalize_buckets(buckets: Iterable[float]) -> tuple[float, ...]:
    """Validate histogram upper bounds and terminate them with ``+Inf``."""

    bounds = [float(bound) for bound in buckets]
    if not bounds:
        raise ValueError("at least one bucket bound is required")
    if any(math.isnan(bound) for bound in bounds):
        raise ValueError("bucket bounds must be numbers")
    if any(lower >= upper for lower, upper in zip(bounds, bounds[1:])):
        raise ValueError("bucket bounds must be strictly increasing")
    if bounds[-1] != INF:
        bounds.append(INF)
    return tuple(bounds)


@dataclass(frozen=True)
class HistogramSnapshot:
    buckets: tuple[tuple[float, int], ...]
    count: int
    sum: float


@dataclass(frozen=True)
class SummarySnapshot:
    count: int
    sum: float


class Aggregate(Collector):
    """Accumulating state for one ``(kind, name)`` identity.

    ``help`` and ``labels`` are fixed at construction and never change, so
    they are read without taking the lock.
    """

    kind: ClassVar[MetricKind]
    # label names the exposition format writes for this kind itself
    reserved_labels: ClassVar[frozenset[str]] = frozenset()

    def __init__(self, name: str, help_text: str = "", labels: Mapping[str, str] | None = None) -> None:
        for label in labels or {}:
            if label in self.reserved_labels:
                raise InvalidLabelError(label, self.kind.value)
        self.name = name
        self.help = help_text
        self.labels: Mapping[str, str] = MappingProxyType(dict(sorted((labels or {}).items())))
        self._lock = threading.Lock()

    @property
    def identity(self) -> tuple[MetricKind, str]:
        return self.kind, self.name

    @property
    def label_names(self) -> list[str]:
        return list(self.labels)

    @property
    def label_values(self) -> list[str]:
        return list(self.labels.values())

    def describe(self) -> Iterable[Metric]:
        return [self._family()]

    def collect(self) -> Iterable[Metric]:
        family = self._family()
        with self._lock:
            self._add_samples(family)
        return [family]

    @abstractmethod
    def snapshot(self) -> object:
        """Return the current state, read under the lock."""

    @abstractmethod
    def _family(self) -> Metric:
        """Return an empty metric family carrying name, help and label names."""

    @abstractmethod
    def _add_samples(self, family: Metric) -> None:
        """Append current samples to ``family``; called with the lock held."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r} labels={dict(self.labels)!r}>"


class GaugeAggregate(Aggregate):
    kind = MetricKind.GAUGE

    def __init__(self, name: str, help_text: str = "", labels: Mapping[str, str] | None = None) -> None:
        super().__init__(name, help_text, labels)
        self._value = 0.0

    def set(self, value: float) -> None:
        with self._lock:
            self._value = float(value)

    def inc(self, amount: float = 1.0) -> None:
        with self._lock:
            self._value += amount

    def dec(self, amount: float = 1.0) -> None:
        with self._lock:
            self._value -= amount

    def snapshot(self) -> float:
        with self._lock:
            return self._value

    def _family(self) -> Metric:
        return GaugeMetricFamily(self.name, self.help, labels=self.label_names)

    def _add_samples(self, family: Metric) -> None:
        family.add_metric(self.label_values, self._value)  # type: ignore[attr-defined]


class CounterAggregate(Aggregate):
    """Monotonic accumulator; exposed with a ``_total`` sample suffix."""

    kind = MetricKind.COUNTER

    def __init__(self, name: str, help_text: str = "", labels: Mapping[str, str] | None = None) -> None:
        super().__init__(name, help_text, labels)
        self._value = 0.0

    def inc(self, amount: float = 1.0) -> None:
        if amount < 0:
            raise InvalidValueError("counter cannot decrease")
        with self._lock:
            self._value += amount

    def snapshot(self) -> float:
        with self._lock:
            return self._value

    def _family(self) -> Metric:
        return CounterMetricFamily(self.name, self.help, labels=self.label_names)

    def _add_samples(self, family: Metric) -> None:
        family.add_metric(self.label_values, self._value)  # type: ignore[attr-defined]


class HistogramAggregate(Aggregate):
    kind = MetricKind.HISTOGRAM
    reserved_labels = frozenset({"le"})

    def __init__(
        self,
        name: str,
        help_text: str = "",
        labels: Mapping[str, str] | None = None,
        *,
        buckets: Iterable[float] = DEFAULT_BUCKETS,
    ) -> None:
        super().__init__(name, help_text, labels)
        self.buckets = normalize_buckets(buckets)
        self._counts = [0] * len(self.buckets)
        self._sum = 0.0

    def observe(self, value: float) -> None:
        # first bucket whose upper bound is >= value ("le" semantics)
        index = bisect.bisect_left(self.buckets, value)
        with self._lock:
            self._counts[index] += 1
            self._sum += value

    def snapshot(self) -> HistogramSnapshot:
        with self._lock:
            counts = list(self._counts)
            total = self._sum
        cumulative = []
        running = 0
        for bound, count in zip(self.buckets, counts):
            running += count
            cumulative.append((bound, running))
        return HistogramSnapshot(buckets=tuple(cumulative), count=running, sum=total)

    def _family(self) -> Metric:
        return HistogramMetricFamily(self.name, self.help, labels=self.label_names)

    def _add_samples(self, family: Metric) -> None:
        running = 0
        buckets = []
        for bound, count in zip(self.buckets, self._counts):
            running += count
            buckets.append((floatToGoString(bound), running))
        family.add_metric(self.label_values, buckets, self._sum)  # type: ignore[attr-defined]


class SummaryAggregate(Aggregate):
    """Count and sum of observations; no quantile objectives are tracked."""

    kind = MetricKind.SUMMARY
    reserved_labels = frozenset({"quantile"})

    def __init__(self, name: str, help_text: str = "", labels: Mapping[str, str] | None = None) -> None:
        super().__init__(name, help_text, labels)
        self._count = 0
        self._sum = 0.0

    def observe(self, value: float) -> None:
        with self._lock:
            self._count += 1
            self._sum += value

    def snapshot(self) -> SummarySnapshot:
        with self._lock:
            return SummarySnapshot(count=self._count, sum=self._sum)

    def _family(self) -> Metric:
        return SummaryMetricFamily(self.name, self.help, labels=self.label_names)

    def _add_samples(self, family: Metric) -> None:
        family.add_metric(self.label_values, self._count, self._sum)  # type: ignore[attr-defined]


AGGREGATE_TYPES: dict[MetricKind, type[Aggregate]] = {
    MetricKind.GAUGE: GaugeAggregate,
    MetricKind.COUNTER: CounterAggregate,
    MetricKind.HISTOGRAM: HistogramAggregate,
    MetricKind.SUMMARY: SummaryAggregate,
}
