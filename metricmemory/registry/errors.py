"""Measurement rejections surfaced to ingestion callers."""

from __future__ import annotations


class MetricError(ValueError):
    """Base class for any measurement the registry refuses to apply."""


class MeasurementDecodeError(MetricError):
    """Raised when a request body is not a valid measurement document."""


class InvalidMetricKindError(MetricError):
    """Raised when a measurement targets a kind outside the supported set."""

    def __init__(self, kind: str) -> None:
        self.kind = kind
        super().__init__("invalid metric type")


class InvalidActionError(MetricError):
    """Raised when an action is not legal for the targeted metric kind."""

    def __init__(self, action: str, kind: str) -> None:
        self.action = action
        self.kind = kind
        super().__init__("invalid action")


class InvalidValueError(MetricError):
    """Raised when a value cannot be applied by an otherwise legal action."""


class MetricConflictError(MetricError):
    """Raised when a metric name is already held by an aggregate of another kind."""

    def __init__(self, name: str, kind: str, existing_kind: str | None = None) -> None:
        self.name = name
        self.kind = kind
        self.existing_kind = existing_kind
        if existing_kind is not None:
            message = f"metric {name!r} is already registered as a {existing_kind}"
        else:
            message = f"metric {name!r} collides with an existing metric"
        super().__init__(message)


class InvalidLabelError(MetricError):
    """Raised when a constant label name is reserved by the metric kind."""

    def __init__(self, label: str, kind: str) -> None:
        self.label = label
        self.kind = kind
        super().__init__(f"invalid metric: label {label!r} is reserved for {kind} metrics")
