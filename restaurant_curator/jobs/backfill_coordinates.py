"""CLI job that geocodes restaurant locations missing coordinates and persists them."""

import argparse
import logging
import re
import time
from typing import Any, Callable, Dict, Iterator, List, Optional

from restaurant_curator.core.config import get_settings
from restaurant_curator.core.db import (
    count_address_geocoding,
    fetch_addresses_needing_geocoding,
    init_pool,
    update_address_coordinates,
)
from restaurant_curator.models import GeocodingProgress, GeocodingStats
from restaurant_curator.search.geocoder import Geocoder

logger = logging.getLogger(__name__)

UK_POSTCODE_RE = re.compile(r"\b[A-Z]{1,2}\d{1,2}[A-Z]?\s?\d[A-Z]{2}\b", re.IGNORECASE)


def candidate_queries(full_address: str, city: Optional[str]) -> Iterator[str]:
    """Yield progressively looser geocoding queries for an address, without duplicates."""
    seen = set()

    def fresh(query: str) -> bool:
        query = query.strip()
        if not query or query.lower() in seen:
            return False
        seen.add(query.lower())
        return True

    full_address = (full_address or "").strip()
    city = (city or "").strip()
    parts = [part.strip() for part in full_address.split(",")]
    postcode_match = UK_POSTCODE_RE.search(full_address)
    postcode = postcode_match.group(0) if postcode_match else None

    candidates: List[str] = [full_address]
    if postcode and city:
        candidates.append(f"{postcode}, {city}")
    if postcode:
        candidates.append(postcode)
    if len(parts) > 1:
        # drop the leading building name
        candidates.append(", ".join(parts[1:]))
    if len(parts) >= 2 and city:
        candidates.append(f"{parts[1]}, {city}")
    if city:
        candidates.append(city)

    for query in candidates:
        if fresh(query):
            yield query.strip()


def geocode_location(address: Dict[str, Any], geocoder: Geocoder) -> bool:
    """Geocode one ``restaurant_addresses`` row and store the coordinates."""
    address_id = address.get("id")
    full_address = address.get("full_address") or ""
    try:
        for query in candidate_queries(full_address, address.get("city")):
            logger.debug("Trying geocode query=%r for address %s", query, address_id)
            result = geocoder.geocode(query)
            if result is None:
                continue
            update_address_coordinates(str(address_id), result.coordinates.lat, result.coordinates.lng)
            logger.info(
                "Geocoded %s -> %.6f,%.6f",
                full_address,
                result.coordinates.lat,
                result.coordinates.lng,
            )
            return True
    except Exception as exc:  # noqa: BLE001
        logger.error("Failed to geocode address %s: %s", address_id, exc)
        return False

    logger.warning("Could not geocode address: %s", full_address)
    return False


def run_backfill_job(
    *,
    force_all: bool = False,
    pause_seconds: Optional[float] = None,
    on_progress: Optional[Callable[[GeocodingProgress], None]] = None,
) -> GeocodingProgress:
    settings = get_settings()
    api_key = settings.google_maps_api_key
    if not api_key:
        raise RuntimeError("GOOGLE_MAPS_API_KEY is required")

    init_pool()

    pause = settings.geocode_pause_seconds if pause_seconds is None else pause_seconds
    geocoder = Geocoder(api_key, bias_radius_meters=settings.bias_radius_meters, timeout=settings.request_timeout)

    addresses = fetch_addresses_needing_geocoding(force_all=force_all)
    progress = GeocodingProgress(total=len(addresses))
    logger.info(
        "Starting %s for %d addresses",
        "full regeneration" if force_all else "coordinate backfill",
        progress.total,
    )

    for address in addresses:
        if geocode_location(address, geocoder):
            progress.success += 1
        else:
            progress.errors.append(f"Failed to geocode: {address.get('full_address')}")
        progress.processed += 1

        if on_progress:
            on_progress(progress)
        if pause > 0:
            time.sleep(pause)

    progress.is_complete = True
    if on_progress:
        on_progress(progress)
    logger.info("Backfill complete: success=%d/%d", progress.success, progress.total)
    return progress


def get_geocoding_stats() -> GeocodingStats:
    total, geocoded = count_address_geocoding()
    percentage = round(geocoded / total * 100) if total else 0
    return GeocodingStats(
        total=total,
        geocoded=geocoded,
        needs_geocoding=total - geocoded,
        percentage=percentage,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Geocode restaurant locations missing coordinates")
    parser.add_argument(
        "--force-all",
        dest="force_all",
        action="store_true",
        help="Re-geocode every address, not only those missing coordinates",
    )
    parser.add_argument(
        "--pause",
        dest="pause_seconds",
        type=float,
        default=get_settings().geocode_pause_seconds,
        help="Seconds to wait between geocoding requests",
    )
    parser.add_argument("--stats", action="store_true", help="Only print geocoding coverage statistics")
    return parser


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    parser = build_parser()
    args = parser.parse_args()

    if args.stats:
        stats = get_geocoding_stats()
        logger.info(
            "Geocoded %d/%d addresses (%d%%), %d need geocoding",
            stats.geocoded,
            stats.total,
            stats.percentage,
            stats.needs_geocoding,
        )
        return

    run_backfill_job(force_all=args.force_all, pause_seconds=args.pause_seconds)


if __name__ == "__main__":
    main()
