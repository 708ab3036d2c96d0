"""Process entry point: ``python -m metricmemory [PORT]``."""

from __future__ import annotations

import argparse
from collections.abc import Sequence

import uvicorn

from metricmemory.config import get_settings
from metricmemory.lib.logger import get_logger
from metricmemory.main import create_app

logger = get_logger(__name__)


def _port(value: str) -> int:
    try:
        port = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid port: {value!r}") from exc
    if not 1 <= port <= 65535:
        raise argparse.ArgumentTypeError(f"port out of range: {port}")
    return port


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="metricmemory",
        description="Accept pushed measurements over HTTP and expose them for Prometheus scraping.",
    )
    parser.add_argument(
        "port",
        nargs="?",
        type=_port,
        default=None,
        help="TCP port to bind (default: METRICMEMORY_PORT or 8080)",
    )
    parser.add_argument("--host", default=None, help="Interface to bind (default: METRICMEMORY_HOST or 0.0.0.0)")
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    host = args.host or settings.host
    port = args.port if args.port is not None else settings.port

    app = create_app(settings)
    logger.info("metricmemory.starting", extra={"host": host, "port": port})
    # log_config=None keeps uvicorn on the root JSON handler
    uvicorn.run(app, host=host, port=port, log_config=None)


if __name__ == "__main__":
    main()
