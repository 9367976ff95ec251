"""Client utilities for the Google Geocoding API."""

import logging
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)
_SESSION = requests.Session()
_BASE_URL = "https://maps.googleapis.com/maps/api/geocode"


class GoogleGeocodingError(RuntimeError):
    """Raised when the Geocoding API returns a non-successful response."""


def geocode(
    query: str,
    api_key: str,
    location: Optional[str] = None,
    radius: Optional[int] = None,
    timeout: int = 10,
) -> Dict[str, Any]:
    """Resolve ``query`` to the raw provider payload.

    ``location`` ("lat,lng") and ``radius`` (meters) bias the ranking towards
    an area; they are only sent together.
    """
    params: Dict[str, Any] = {"address": query, "key": api_key}
    if location and radius:
        params["location"] = location
        params["radius"] = radius
    response = _SESSION.get(f"{_BASE_URL}/json", params=params, timeout=timeout)
    response.raise_for_status()
    payload = response.json()
    status = payload.get("status")
    if status not in {"OK", "ZERO_RESULTS"}:
        logger.error("geocode failed: status=%s, error_message=%s", status, payload.get("error_message"))
        raise GoogleGeocodingError(payload.get("error_message") or status)
    return payload
