"""Ingestion routes turning pushed measurements into registry mutations."""

from metricmemory.store.routes import router
from metricmemory.store.schemas import IncomingMeasurement, decode_measurement
from metricmemory.store.service import store_measurement

__all__ = ["IncomingMeasurement", "decode_measurement", "router", "store_measurement"]
