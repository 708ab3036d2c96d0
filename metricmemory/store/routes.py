"""Write-only routes accepting one measurement per request."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import PlainTextResponse

from metricmemory.lib.logger import get_logger
from metricmemory.registry import MetricError, MetricKind, MetricRegistry
from metricmemory.store.schemas import IncomingMeasurement, decode_measurement
from metricmemory.store.service import store_measurement

logger = get_logger(__name__)

router = APIRouter()


async def get_registry(request: Request) -> MetricRegistry:
    registry: MetricRegistry | None = getattr(request.app.state, "registry", None)
    if registry is None:
        raise RuntimeError("Metric registry not configured on application state")
    return registry


async def read_measurement(request: Request) -> IncomingMeasurement:
    """Decode the raw body regardless of its declared content type."""

    body = await request.body()
    try:
        return decode_measurement(body)
    except MetricError as exc:
        logger.warning(
            "metric.rejected",
            extra={"kind": request.path_params.get("kind"), "reason": str(exc)},
        )
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.post("/{kind}", response_class=PlainTextResponse, summary="Store one measurement")
def store_metric_endpoint(
    kind: str,
    measurement: IncomingMeasurement = Depends(read_measurement),
    registry: MetricRegistry = Depends(get_registry),
) -> PlainTextResponse:
    """Create the metric on first use and apply the requested action.

    Declared as a plain function so concurrent requests run on the threadpool
    against the shared registry.
    """

    try:
        store_measurement(registry, MetricKind.parse(kind), measurement)
    except MetricError as exc:
        logger.warning(
            "metric.rejected",
            extra={
                "kind": kind,
                "metric": measurement.key,
                "action": measurement.action,
                "reason": str(exc),
            },
        )
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return PlainTextResponse("metric stored\n")
