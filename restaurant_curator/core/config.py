"""Application configuration helpers."""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, TypeVar

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ConfigError(RuntimeError):
    """Raised when a configuration value cannot be parsed."""


@dataclass(frozen=True)
class Settings:
    google_maps_api_key: str
    database_url: str
    worker_port: int = 9000
    bias_radius_meters: int = 50000
    # 5 km/h walking speed
    walk_minutes_to_km: float = 5 / 60
    max_walk_minutes: int = 20
    city_cache_ttl_seconds: float = 300.0
    geocode_pause_seconds: float = 1.0
    request_timeout: int = 10


def _parse_env(name: str, default: T, cast: Callable[[str], T]) -> T:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw.strip())
    except ValueError as exc:
        raise ConfigError(f"{name} must be a valid {cast.__name__}, got {raw!r}") from exc


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""
    load_dotenv()

    google_maps_api_key = os.getenv("GOOGLE_MAPS_API_KEY", "")
    database_url = os.getenv("DATABASE_URL", "")

    if not database_url:
        logger.warning("DATABASE_URL is not set; catalog queries will fail.")
    if not google_maps_api_key:
        logger.warning("GOOGLE_MAPS_API_KEY is not configured; geocoding requests will fail.")

    return Settings(
        google_maps_api_key=google_maps_api_key,
        database_url=database_url,
        worker_port=_parse_env("WORKER_PORT", 9000, int),
        bias_radius_meters=_parse_env("GEOCODE_BIAS_RADIUS_METERS", 50000, int),
        walk_minutes_to_km=_parse_env("WALK_MINUTES_TO_KM", 5 / 60, float),
        max_walk_minutes=_parse_env("MAX_WALK_MINUTES", 20, int),
        city_cache_ttl_seconds=_parse_env("CITY_CACHE_TTL_SECONDS", 300.0, float),
        geocode_pause_seconds=_parse_env("GEOCODE_PAUSE_SECONDS", 1.0, float),
        request_timeout=_parse_env("REQUEST_TIMEOUT", 10, int),
    )
