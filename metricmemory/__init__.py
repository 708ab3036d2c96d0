"""HTTP ingestion of pushed measurements into a Prometheus-scrapable registry."""

__version__ = "0.1.0"
