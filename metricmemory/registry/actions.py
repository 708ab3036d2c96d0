"""Per-kind action table and the dispatcher that applies it."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from metricmemory.registry.aggregates import Aggregate
from metricmemory.registry.errors import InvalidActionError, InvalidMetricKindError
from metricmemory.registry.kinds import MetricKind

Mutation = Callable[[Any, float], None]

# Action names are matched literally (case sensitive).
ACTIONS: dict[MetricKind, dict[str, Mutation]] = {
    MetricKind.GAUGE: {
        "set": lambda gauge, value: gauge.set(value),
        "inc": lambda gauge, _value: gauge.inc(),
        "dec": lambda gauge, _value: gauge.dec(),
        "add": lambda gauge, value: gauge.inc(value),
        "sub": lambda gauge, value: gauge.dec(value),
    },
    MetricKind.COUNTER: {
        "inc": lambda counter, _value: counter.inc(),
        "add": lambda counter, value: counter.inc(value),
    },
    MetricKind.HISTOGRAM: {
        "observe": lambda histogram, value: histogram.observe(value),
    },
    MetricKind.SUMMARY: {
        "observe": lambda summary, value: summary.observe(value),
    },
}


def legal_actions(kind: MetricKind) -> tuple[str, ...]:
    return tuple(ACTIONS.get(kind, {}))


def apply_action(aggregate: Aggregate, action: str, value: float) -> None:
    """Apply ``action`` with ``value`` to ``aggregate``.

    Raises ``InvalidActionError`` without touching the aggregate when the
    action is not listed for the aggregate's kind. A legal action may still
    raise ``InvalidValueError`` (e.g. a negative counter increment).
    """

    handlers = ACTIONS.get(aggregate.kind)
    if handlers is None:
        raise InvalidMetricKindError(str(aggregate.kind))
    mutation = handlers.get(action)
    if mutation is None:
        raise InvalidActionError(action, aggregate.kind.value)
    mutation(aggregate, value)
