"""Thread-safe registry of live aggregates keyed by metric kind and name."""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable, Mapping
from functools import partial

from prometheus_client import CollectorRegistry

from metricmemory.lib.logger import get_logger
from metricmemory.registry.aggregates import (
    AGGREGATE_TYPES,
    DEFAULT_BUCKETS,
    Aggregate,
    HistogramAggregate,
    normalize_buckets,
)
from metricmemory.registry.errors import MetricConflictError
from metricmemory.registry.kinds import MetricKind

logger = get_logger(__name__)

AggregateFactory = Callable[[str, str, Mapping[str, str]], Aggregate]


class MetricRegistry:
    """Own one name -> aggregate table per kind and the scrape-facing collector registry.

    Creation is serialized by a single lock held across the whole
    check-construct-register-store sequence, so concurrent first use of an
    identity constructs and registers exactly one aggregate. Mutation of an
    existing aggregate does not touch this lock; each aggregate guards its own
    state.
    """

    def __init__(
        self,
        *,
        histogram_buckets: Iterable[float] | None = None,
        collector_registry: CollectorRegistry | None = None,
    ) -> None:
        self._lock = threading.Lock()
        self._tables: dict[MetricKind, dict[str, Aggregate]] = {kind: {} for kind in MetricKind}
        self._collector_registry = collector_registry if collector_registry is not None else CollectorRegistry()
        self.histogram_buckets = normalize_buckets(
            histogram_buckets if histogram_buckets is not None else DEFAULT_BUCKETS
        )
        self._factories: dict[MetricKind, AggregateFactory] = dict(AGGREGATE_TYPES)
        self._factories[MetricKind.HISTOGRAM] = partial(HistogramAggregate, buckets=self.histogram_buckets)

    @property
    def collector_registry(self) -> CollectorRegistry:
        return self._collector_registry

    def get_or_create(
        self,
        kind: MetricKind,
        name: str,
        help_text: str = "",
        labels: Mapping[str, str] | None = None,
    ) -> Aggregate:
        """Return the aggregate for ``(kind, name)``, creating and registering it on first use.

        ``help_text`` and ``labels`` only matter for the call that creates the
        aggregate; later calls get the existing instance untouched.

        Raises ``MetricConflictError`` when ``name`` is already held by another
        kind or would expose a sample name another metric already exposes.
        """

        with self._lock:
            table = self._tables[kind]
            existing = table.get(name)
            if existing is not None:
                return existing

            for other_kind, other_table in self._tables.items():
                if other_kind is not kind and name in other_table:
                    raise MetricConflictError(name, kind.value, other_kind.value)

            aggregate = self._factories[kind](name, help_text, labels or {})
            try:
                self._collector_registry.register(aggregate)
            except ValueError as exc:
                raise MetricConflictError(name, kind.value) from exc
            table[name] = aggregate

        logger.info(
            "metric.created",
            extra={
                "kind": kind.value,
                "metric": name,
                "labels": dict(aggregate.labels),
            },
        )
        return aggregate

    def get(self, kind: MetricKind, name: str) -> Aggregate | None:
        with self._lock:
            return self._tables[kind].get(name)

    def identities(self) -> list[tuple[MetricKind, str]]:
        """Return every registered ``(kind, name)`` pair, ordered by kind then name."""

        with self._lock:
            return [(kind, name) for kind, table in self._tables.items() for name in sorted(table)]

    def __len__(self) -> int:
        with self._lock:
            return sum(len(table) for table in self._tables.values())

    def __contains__(self, identity: object) -> bool:
        if not isinstance(identity, tuple) or len(identity) != 2:
            return False
        kind, name = identity
        with self._lock:
            table = self._tables.get(kind)  # type: ignore[call-overload]
            return table is not None and name in table
