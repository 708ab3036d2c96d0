"""FastAPI application entrypoint for the metricmemory ingestion service."""

from __future__ import annotations

from fastapi import APIRouter, FastAPI
from fastapi.requests import Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from prometheus_client.exposition import choose_encoder
from starlette.exceptions import HTTPException as StarletteHTTPException

from metricmemory import __version__
from metricmemory.config import Settings, get_settings
from metricmemory.lib.logger import configure_logging
from metricmemory.registry import MetricRegistry
from metricmemory.store import router as store_router

system_router = APIRouter(tags=["system"])


@system_router.get("/health", summary="Health check")
async def health_check(request: Request) -> JSONResponse:
    """Return liveness response for uptime monitoring."""

    registry: MetricRegistry = request.app.state.registry
    payload = {"ok": True, "data": {"status": "healthy", "metrics": len(registry)}}
    return JSONResponse(content=payload)


@system_router.get("/metrics", summary="Prometheus exposition endpoint")
def metrics_endpoint(request: Request) -> Response:
    """Render every registered metric; OpenMetrics when the scraper asks for it."""

    registry: MetricRegistry = request.app.state.registry
    encoder, content_type = choose_encoder(request.headers.get("accept", ""))
    return Response(content=encoder(registry.collector_registry), media_type=content_type)


async def plain_text_http_error(request: Request, exc: StarletteHTTPException) -> PlainTextResponse:
    """Render HTTP errors as plain text lines instead of JSON envelopes."""

    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return PlainTextResponse(f"{detail}\n", status_code=exc.status_code, headers=exc.headers)


def create_app(settings: Settings | None = None, registry: MetricRegistry | None = None) -> FastAPI:
    """Build the application around one registry shared by every request handler."""

    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="metricmemory", version=__version__)
    app.state.settings = settings
    if registry is None:
        registry = MetricRegistry(histogram_buckets=settings.histogram_buckets)
    app.state.registry = registry

    app.add_exception_handler(StarletteHTTPException, plain_text_http_error)  # type: ignore[arg-type]
    app.include_router(store_router, prefix="/store", tags=["store"])
    app.include_router(system_router)
    return app


app = create_app()
