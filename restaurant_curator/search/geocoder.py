"""Geocoder that normalizes Google Geocoding responses for the smart search."""

from __future__ import annotations

import logging
from typing import Optional

from restaurant_curator.etl.transform import to_geocode_result
from restaurant_curator.models import Coordinates, GeocodeResult
from restaurant_curator.vendors import google_geocoding

logger = logging.getLogger(__name__)


class Geocoder:
    """Resolve free text to coordinates, optionally biased towards a known location.

    Every failure (network, provider status, malformed payload) is reported as
    ``None`` so callers can treat it as "could not resolve".
    """

    def __init__(self, api_key: str, bias_radius_meters: int = 50000, timeout: int = 10) -> None:
        self.api_key = api_key
        self.bias_radius_meters = bias_radius_meters
        self.timeout = timeout

    def geocode(self, query: str, bias: Optional[Coordinates] = None) -> Optional[GeocodeResult]:
        location = f"{bias.lat},{bias.lng}" if bias else None
        radius = self.bias_radius_meters if bias else None
        logger.info("Geocoding query=%r%s", query, " with location bias" if bias else "")

        try:
            payload = google_geocoding.geocode(
                query,
                self.api_key,
                location=location,
                radius=radius,
                timeout=self.timeout,
            )
            results = payload.get("results") or []
            if payload.get("status") != "OK" or not results:
                logger.info("No geocoding results for query=%r (status=%s)", query, payload.get("status"))
                return None
            result = to_geocode_result(results[0])
        except Exception as exc:  # noqa: BLE001
            logger.warning("Geocoding failed for query=%r: %s", query, exc)
            return None

        logger.info(
            "Geocoded %r to %.5f,%.5f (%s)",
            query,
            result.coordinates.lat,
            result.coordinates.lng,
            result.formatted_address,
        )
        return result
