"""Three-tier smart geographic search.

Tiers are tried cheapest and most precise first, and the first tier that
returns restaurants answers the query:

1. ``local``: text match against the catalog, no external calls.
2. ``proximity``: geocode the query and keep restaurants within walking
   distance of the resolved point.
3. ``city``: the query resolved to a real place with nothing nearby, so show
   every restaurant in the resolved city (fuzzy city match).

``search`` never raises; failures are reported through the result message.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional, Protocol

from restaurant_curator.core.catalog import PostgresCatalog
from restaurant_curator.core.config import Settings, get_settings
from restaurant_curator.models import Coordinates, GeocodeResult, Restaurant, SearchLocation, SearchResult, SearchStrategy
from restaurant_curator.search.city_matcher import CityCache, CityMatcher
from restaurant_curator.search.geocoder import Geocoder

logger = logging.getLogger(__name__)


class Catalog(Protocol):
    def query_by_text(self, text: str) -> List[Restaurant]: ...

    def query_by_radius(self, center: Coordinates, max_walk_minutes: Optional[int] = None) -> List[Restaurant]: ...

    def list_all_with_locations(self) -> List[Restaurant]: ...


class LocationResolver(Protocol):
    def geocode(self, query: str, bias: Optional[Coordinates] = None) -> Optional[GeocodeResult]: ...


def _restaurants_label(count: int) -> str:
    return f"{count} restaurant{'' if count == 1 else 's'}"


def location_display_name(result: GeocodeResult) -> str:
    """Short label for a geocoded place: the first part of its formatted address."""
    first = result.formatted_address.split(",")[0].strip()
    return first or result.formatted_address


class SmartSearch:
    def __init__(
        self,
        catalog: Catalog,
        geocoder: LocationResolver,
        city_matcher: CityMatcher,
        max_walk_minutes: int = 20,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.catalog = catalog
        self.geocoder = geocoder
        self.city_matcher = city_matcher
        self.max_walk_minutes = max_walk_minutes
        self._clock = clock

    def search(self, query: str, user_location: Optional[Coordinates] = None) -> SearchResult:
        started = self._clock()
        trimmed = (query or "").strip()

        def finish(
            restaurants: List[Restaurant],
            strategy: SearchStrategy,
            message: str,
            search_location: Optional[SearchLocation] = None,
        ) -> SearchResult:
            elapsed_ms = max(0.0, (self._clock() - started) * 1000)
            return SearchResult(
                restaurants=restaurants,
                strategy=strategy,
                message=message,
                search_location=search_location,
                search_time_ms=elapsed_ms,
            )

        if not trimmed:
            return finish([], "local", "Please enter a search term")

        logger.info("Starting smart search for %r", trimmed)

        try:
            local = self.catalog.query_by_text(trimmed)
            if local:
                logger.info("Local search found %d results", len(local))
                return finish(local, "local", f'Found {_restaurants_label(len(local))} matching "{trimmed}"')

            logger.info("Local search found 0 results, trying geocoding")
            geocoded = self.geocoder.geocode(trimmed, user_location)

            if geocoded is not None:
                search_location = SearchLocation(
                    name=trimmed,
                    coordinates=geocoded.coordinates,
                    city=geocoded.city,
                    formatted_address=geocoded.formatted_address,
                )
                place = location_display_name(geocoded)

                nearby = self.catalog.query_by_radius(geocoded.coordinates, self.max_walk_minutes)
                if nearby:
                    logger.info("Proximity search found %d results near %s", len(nearby), geocoded.formatted_address)
                    return finish(
                        nearby,
                        "proximity",
                        f"Found {_restaurants_label(len(nearby))} within walking distance of {place}",
                        search_location,
                    )

                logger.info("Proximity search found 0 results, trying city fallback")
                if geocoded.city:
                    in_city = self.city_matcher.find_restaurants_by_city(geocoded.city)
                    if in_city:
                        logger.info("City fallback found %d results in %s", len(in_city), geocoded.city)
                        return finish(
                            in_city,
                            "city",
                            f"No restaurants near {place}. Showing all restaurants in {geocoded.city}.",
                            search_location,
                        )
        except Exception:  # noqa: BLE001
            logger.exception("Smart search failed for %r; falling back to local search", trimmed)
            return finish(*self._degraded_local_search(trimmed))

        logger.info("Smart search found no results for %r", trimmed)
        return finish(
            [],
            "local",
            f'No restaurants found for "{trimmed}". Try searching for a neighborhood, landmark, or restaurant name.',
        )

    def _degraded_local_search(self, query: str):
        try:
            fallback = self.catalog.query_by_text(query)
        except Exception:  # noqa: BLE001
            logger.exception("Fallback local search failed for %r", query)
            fallback = []

        if fallback:
            message = (
                f'Smart search is temporarily unavailable. Found {_restaurants_label(len(fallback))} matching "{query}".'
            )
        else:
            message = f'Smart search is temporarily unavailable. No local results for "{query}".'
        return fallback, "local", message


def build_smart_search(settings: Optional[Settings] = None) -> SmartSearch:
    """Wire the Postgres catalog, Google geocoder and city matcher from settings."""
    settings = settings or get_settings()
    catalog = PostgresCatalog(
        max_walk_minutes=settings.max_walk_minutes,
        walk_minutes_to_km=settings.walk_minutes_to_km,
    )
    geocoder = Geocoder(
        settings.google_maps_api_key,
        bias_radius_meters=settings.bias_radius_meters,
        timeout=settings.request_timeout,
    )
    city_matcher = CityMatcher(catalog, CityCache(ttl_seconds=settings.city_cache_ttl_seconds))
    return SmartSearch(catalog, geocoder, city_matcher, max_walk_minutes=settings.max_walk_minutes)
