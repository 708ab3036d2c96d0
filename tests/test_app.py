"""Application wiring: health, exposition, configuration, logging and the entry point."""

import json
import logging

import pytest
from httpx import AsyncClient
from pydantic import ValidationError

import metricmemory.__main__ as cli
from metricmemory.config import DEFAULT_PORT, Settings
from metricmemory.lib.logger import JsonFormatter
from metricmemory.main import create_app
from metricmemory.registry import MetricKind, MetricRegistry


@pytest.mark.asyncio
async def test_health_endpoint(async_client: AsyncClient, registry: MetricRegistry) -> None:
    """Health route should report liveness and the number of registered metrics."""
    registry.get_or_create(MetricKind.GAUGE, "temp")

    response = await async_client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"ok": True, "data": {"status": "healthy", "metrics": 1}}


@pytest.mark.asyncio
async def test_metrics_endpoint_empty_registry(async_client: AsyncClient) -> None:
    response = await async_client.get("/metrics")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert response.text == ""


@pytest.mark.asyncio
async def test_metrics_endpoint_renders_help_and_type(async_client: AsyncClient) -> None:
    await async_client.post(
        "/store/gauge",
        json={"key": "temp", "value": 5, "action": "set", "help": "Room temperature", "labels": {"room": "lab"}},
    )

    text = (await async_client.get("/metrics")).text

    assert "# HELP temp Room temperature" in text
    assert "# TYPE temp gauge" in text
    assert 'temp{room="lab"} 5.0' in text


@pytest.mark.asyncio
async def test_metrics_endpoint_negotiates_openmetrics(async_client: AsyncClient) -> None:
    await async_client.post("/store/counter", json={"key": "hits_total", "action": "inc"})

    response = await async_client.get(
        "/metrics",
        headers={"accept": "application/openmetrics-text; version=1.0.0"},
    )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/openmetrics-text")
    assert "hits_total 1.0" in response.text
    assert response.text.endswith("# EOF\n")


@pytest.mark.asyncio
async def test_metrics_endpoint_is_read_only(async_client: AsyncClient) -> None:
    response = await async_client.post("/metrics", json={"key": "temp", "action": "set"})

    assert response.status_code == 405


def test_create_app_builds_registry_from_settings() -> None:
    app = create_app(Settings(histogram_buckets=[1, 2]))

    registry = app.state.registry
    assert isinstance(registry, MetricRegistry)
    assert registry.histogram_buckets == (1.0, 2.0, float("inf"))


def test_settings_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("METRICMEMORY_HOST", "METRICMEMORY_PORT", "METRICMEMORY_HISTOGRAM_BUCKETS"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings()

    assert settings.host == "0.0.0.0"
    assert settings.port == DEFAULT_PORT == 8080
    assert settings.histogram_buckets[-1] == float("inf")


def test_settings_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("METRICMEMORY_PORT", "9100")
    monkeypatch.setenv("METRICMEMORY_LOG_LEVEL", "warning")
    monkeypatch.setenv("METRICMEMORY_HISTOGRAM_BUCKETS", "[0.1, 1, 10]")

    settings = Settings()

    assert settings.port == 9100
    assert settings.log_level == "WARNING"
    assert settings.histogram_buckets == (0.1, 1.0, 10.0, float("inf"))


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("METRICMEMORY_PORT", "0"),
        ("METRICMEMORY_PORT", "70000"),
        ("METRICMEMORY_LOG_LEVEL", "chatty"),
        ("METRICMEMORY_HISTOGRAM_BUCKETS", "[5, 1]"),
    ],
)
def test_settings_reject_invalid_values(monkeypatch: pytest.MonkeyPatch, name: str, value: str) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(ValidationError):
        Settings()


@pytest.fixture()
def served(monkeypatch: pytest.MonkeyPatch) -> dict[str, object]:
    """Capture uvicorn.run calls made by the entry point."""

    calls: dict[str, object] = {}

    def fake_run(app, **kwargs):
        calls["app"] = app
        calls.update(kwargs)

    monkeypatch.setattr(cli.uvicorn, "run", fake_run)
    monkeypatch.setattr(cli, "get_settings", lambda: Settings(host="127.0.0.1", port=8181))
    return calls


def test_cli_port_argument_selects_port(served: dict[str, object]) -> None:
    cli.main(["9100"])

    assert served["port"] == 9100
    assert served["host"] == "127.0.0.1"
    assert served["log_config"] is None
    assert isinstance(served["app"].state.registry, MetricRegistry)  # type: ignore[attr-defined]


def test_cli_falls_back_to_settings(served: dict[str, object]) -> None:
    cli.main(["--host", "::1"])

    assert served["port"] == 8181
    assert served["host"] == "::1"


@pytest.mark.parametrize("argument", ["http", "0", "65536"])
def test_cli_rejects_invalid_port(served: dict[str, object], argument: str) -> None:
    with pytest.raises(SystemExit):
        cli.main([argument])

    assert served == {}


def test_json_formatter_includes_extra_fields() -> None:
    record = logging.LogRecord("metricmemory.test", logging.WARNING, __file__, 1, "metric.rejected", (), None)
    record.kind = "gauge"
    record.labels = {"room": "lab"}
    record.unserializable = object()

    payload = json.loads(JsonFormatter().format(record))

    assert payload["level"] == "WARNING"
    assert payload["logger"] == "metricmemory.test"
    assert payload["message"] == "metric.rejected"
    assert payload["kind"] == "gauge"
    assert payload["labels"] == {"room": "lab"}
    assert payload["unserializable"].startswith("<object object")
    assert "lineno" not in payload


@pytest.mark.asyncio
async def test_rejections_are_logged(async_client: AsyncClient, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="metricmemory"):
        await async_client.post("/store/gauge", json={"key": "temp", "action": "bogus"})

    rejected = [record for record in caplog.records if record.getMessage() == "metric.rejected"]
    assert rejected
    assert rejected[0].reason == "invalid action"  # type: ignore[attr-defined]
    assert rejected[0].metric == "temp"  # type: ignore[attr-defined]
