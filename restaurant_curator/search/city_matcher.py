"""Fuzzy matching of city names against the cities present in the catalog."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, List, Optional, Protocol

from rapidfuzz.distance import Levenshtein

from restaurant_curator.models import Restaurant

logger = logging.getLogger(__name__)

UK_CITIES = ("london", "manchester", "liverpool", "edinburgh", "glasgow", "birmingham", "bristol", "leeds", "cardiff")
INTERNATIONAL_CITIES = ("paris", "barcelona", "madrid", "rome", "berlin", "amsterdam", "brussels")

DEFAULT_THRESHOLD = 0.7
FALLBACK_THRESHOLD = 0.6


class RestaurantSource(Protocol):
    def list_all_with_locations(self) -> List[Restaurant]: ...


def infer_city_from_address(address: Optional[str]) -> Optional[str]:
    """Guess a city from a free-text address by looking for well-known city names."""
    if not address:
        return None
    lowered = address.lower()
    for city in UK_CITIES + INTERNATIONAL_CITIES:
        if city in lowered:
            return city.capitalize()
    return None


def score_city_match(query: str, city: str) -> float:
    """Similarity in [0, 1] between two city names."""
    a = query.strip().lower()
    b = city.strip().lower()
    if not a or not b:
        return 0.0

    # exact
    if a == b:
        return 1.0

    # containment: longer length over combined length
    if a in b or b in a:
        return max(len(a), len(b)) / (len(a) + len(b))

    # edit distance
    return 1.0 - Levenshtein.distance(a, b) / max(len(a), len(b))


def _overlaps(a: str, b: str) -> bool:
    a, b = a.lower(), b.lower()
    return a in b or b in a


class CityCache:
    """Time-boxed holder for the single known-cities list."""

    def __init__(self, ttl_seconds: float = 300.0, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._cities: Optional[List[str]] = None
        self._timestamp = 0.0
        self.lock = threading.Lock()

    def get(self) -> Optional[List[str]]:
        if self._cities is None:
            return None
        if self._clock() - self._timestamp >= self.ttl_seconds:
            return None
        return list(self._cities)

    def set(self, cities: List[str]) -> None:
        self._cities = list(cities)
        self._timestamp = self._clock()

    def clear(self) -> None:
        self._cities = None
        self._timestamp = 0.0


class CityMatcher:
    def __init__(self, catalog: RestaurantSource, cache: Optional[CityCache] = None) -> None:
        self.catalog = catalog
        self.cache = cache or CityCache()

    def _restaurant_cities(self, restaurant: Restaurant) -> List[str]:
        cities = restaurant.cities()
        if cities:
            return cities
        inferred = infer_city_from_address(restaurant.address)
        return [inferred] if inferred else []

    def list_known_cities(self) -> List[str]:
        cached = self.cache.get()
        if cached is not None:
            return cached

        with self.cache.lock:
            # another thread may have refreshed while we waited
            cached = self.cache.get()
            if cached is not None:
                return cached

            try:
                restaurants = self.catalog.list_all_with_locations()
            except Exception:  # noqa: BLE001
                logger.exception("Failed to load restaurant cities")
                return []

            cities = set()
            for restaurant in restaurants:
                cities.update(self._restaurant_cities(restaurant))

            known = sorted(cities)
            self.cache.set(known)
            logger.info("Cached %d unique restaurant cities", len(known))
            return known

    def fuzzy_match_city(self, query: str, threshold: float = DEFAULT_THRESHOLD) -> List[str]:
        scored = []
        for city in self.list_known_cities():
            score = score_city_match(query, city)
            if score >= threshold:
                scored.append((score, city))
        scored.sort(key=lambda item: item[0], reverse=True)
        return [city for _, city in scored]

    def find_restaurants_by_city(self, city_name: str) -> List[Restaurant]:
        matched = self.fuzzy_match_city(city_name, threshold=FALLBACK_THRESHOLD)
        if not matched:
            logger.info("No city matches found for %r", city_name)
            return []

        logger.info("Found %d city matches for %r: %s", len(matched), city_name, ", ".join(matched[:3]))

        try:
            restaurants = self.catalog.list_all_with_locations()
        except Exception:  # noqa: BLE001
            logger.exception("Failed to load restaurants for city %r", city_name)
            return []

        matching = [
            restaurant
            for restaurant in restaurants
            if any(_overlaps(city, candidate) for city in self._restaurant_cities(restaurant) for candidate in matched)
        ]
        logger.info("Found %d restaurants in matched cities", len(matching))
        return matching
