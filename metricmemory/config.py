"""Application configuration loading via Pydantic settings."""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from metricmemory.registry.aggregates import DEFAULT_BUCKETS, normalize_buckets

DEFAULT_PORT = 8080

LogLevel = Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"]


class Settings(BaseSettings):
    """Runtime configuration sourced from ``METRICMEMORY_*`` environment variables."""

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    log_level: LogLevel = Field(default="INFO")
    histogram_buckets: tuple[float, ...] = Field(
        default=DEFAULT_BUCKETS,
        description="Histogram upper bounds as a JSON list; +Inf is appended when missing.",
    )

    model_config = {
        "env_prefix": "METRICMEMORY_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator("histogram_buckets")
    @classmethod
    def validate_buckets(cls, value: tuple[float, ...]) -> tuple[float, ...]:
        return normalize_buckets(value)


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()
