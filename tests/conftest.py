"""Pytest fixtures for metricmemory tests."""

from collections.abc import AsyncIterator, Awaitable, Callable
import os

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from prometheus_client.parser import text_string_to_metric_families

os.environ.setdefault("METRICMEMORY_LOG_LEVEL", "DEBUG")

from metricmemory.config import Settings
from metricmemory.main import create_app
from metricmemory.registry import MetricRegistry

SampleKey = tuple[str, tuple[tuple[str, str], ...]]


def parse_samples(text: str) -> dict[SampleKey, float]:
    """Flatten exposition text into ``{(sample_name, sorted_labels): value}``."""

    return {
        (sample.name, tuple(sorted(sample.labels.items()))): sample.value
        for family in text_string_to_metric_families(text)
        for sample in family.samples
    }


@pytest.fixture()
def registry() -> MetricRegistry:
    """Return a fresh registry so each test starts with nothing registered."""
    return MetricRegistry()


@pytest.fixture()
def app(registry: MetricRegistry) -> FastAPI:
    """Return an application instance bound to the test registry."""
    return create_app(Settings(), registry=registry)


@pytest_asyncio.fixture()
async def async_client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """Provide an `httpx.AsyncClient` configured for the FastAPI app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        yield client


@pytest.fixture()
def scrape(async_client: AsyncClient) -> Callable[[], Awaitable[dict[SampleKey, float]]]:
    """Return a coroutine function that pulls /metrics and parses the samples."""

    async def _scrape() -> dict[SampleKey, float]:
        response = await async_client.get("/metrics")
        assert response.status_code == 200
        return parse_samples(response.text)

    return _scrape


@pytest.fixture()
def registrations(registry: MetricRegistry, monkeypatch: pytest.MonkeyPatch) -> list[object]:
    """Record every collector registered into the exposition surface."""

    calls: list[object] = []
    collector_registry = registry.collector_registry
    original = collector_registry.register

    def counting_register(collector: object) -> None:
        calls.append(collector)
        original(collector)  # type: ignore[arg-type]

    monkeypatch.setattr(collector_registry, "register", counting_register)
    return calls
