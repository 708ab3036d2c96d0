"""Apply pushed measurements to the metric registry."""

from __future__ import annotations

from metricmemory.lib.logger import get_logger
from metricmemory.registry import Aggregate, MetricKind, MetricRegistry, apply_action
from metricmemory.store.schemas import IncomingMeasurement

logger = get_logger(__name__)


def store_measurement(
    registry: MetricRegistry,
    kind: MetricKind,
    measurement: IncomingMeasurement,
) -> Aggregate:
    """Resolve the measurement's aggregate and apply its action.

    The aggregate is created before the action is validated, so a rejected
    action can still leave a freshly created metric (at its initial value)
    behind. Errors from the registry or dispatcher propagate unchanged.
    """

    aggregate = registry.get_or_create(kind, measurement.key, measurement.help, measurement.labels)

    if aggregate.help != measurement.help or dict(aggregate.labels) != measurement.labels:
        logger.debug(
            "metric.metadata_ignored",
            extra={
                "kind": kind.value,
                "metric": measurement.key,
                "labels": measurement.labels,
                "registered_labels": dict(aggregate.labels),
            },
        )

    apply_action(aggregate, measurement.action, measurement.value)
    logger.debug(
        "metric.stored",
        extra={
            "kind": kind.value,
            "metric": measurement.key,
            "action": measurement.action,
            "value": measurement.value,
        },
    )
    return aggregate
