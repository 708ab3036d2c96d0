"""Pydantic schema for measurements pushed to the store routes."""

from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel, Field, ValidationError, ValidationInfo, field_validator

from metricmemory.registry.errors import MeasurementDecodeError

_METRIC_NAME_RE = re.compile(r"^[a-zA-Z_:][a-zA-Z0-9_:]*$")
_LABEL_NAME_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")

# Errors meaning the body was not a JSON object at all.
_UNDECODABLE_ERROR_TYPES = {"json_invalid", "json_type", "model_type", "model_attributes_type"}


class IncomingMeasurement(BaseModel):
    """One measurement: which metric, what value, and what to do with it.

    ``help`` and ``labels`` only take effect when the measurement creates its
    metric. Unknown fields are ignored.
    """

    key: str = Field(..., min_length=1, description="Metric name")
    value: float = Field(default=0.0, strict=True, allow_inf_nan=False)
    labels: dict[str, str] = Field(default_factory=dict, description="Constant labels fixed at creation")
    help: str = Field(default="", description="Help text fixed at creation")
    action: str = Field(default="", description="Operation to apply, e.g. set, inc, observe")

    @field_validator("labels", "help", mode="before")
    @classmethod
    def null_as_empty(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return {} if info.field_name == "labels" else ""
        return value

    @field_validator("key")
    @classmethod
    def validate_metric_name(cls, value: str) -> str:
        if not _METRIC_NAME_RE.fullmatch(value):
            raise ValueError("key must be a valid metric name ([a-zA-Z_:][a-zA-Z0-9_:]*)")
        return value

    @field_validator("labels")
    @classmethod
    def validate_label_names(cls, value: dict[str, str]) -> dict[str, str]:
        for name in value:
            if not _LABEL_NAME_RE.fullmatch(name) or name.startswith("__"):
                raise ValueError(f"invalid label name {name!r}")
        return value


def decode_measurement(body: bytes) -> IncomingMeasurement:
    """Parse a raw request body into a measurement.

    Raises ``MeasurementDecodeError`` with ``invalid JSON format`` when the
    body is not a JSON object, or ``invalid metric: ...`` when it is one but
    does not match the schema.
    """

    try:
        return IncomingMeasurement.model_validate_json(body)
    except ValidationError as exc:
        errors = exc.errors()
        if any(err["type"] in _UNDECODABLE_ERROR_TYPES and not err["loc"] for err in errors):
            raise MeasurementDecodeError("invalid JSON format") from exc
        reasons = "; ".join(_describe(err) for err in errors)
        raise MeasurementDecodeError(f"invalid metric: {reasons}") from exc


def _describe(err: Any) -> str:
    location = ".".join(str(part) for part in err["loc"])
    return f"{location}: {err['msg']}" if location else err["msg"]
