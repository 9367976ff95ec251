"""Catalog query layer used by the smart search."""

from __future__ import annotations

import logging
from typing import List, Optional

from geopy.distance import great_circle

from restaurant_curator.core import db
from restaurant_curator.etl.transform import to_restaurant
from restaurant_curator.models import Coordinates, Restaurant

logger = logging.getLogger(__name__)


def nearest_distance_km(restaurant: Restaurant, center: Coordinates) -> Optional[float]:
    """Distance from ``center`` to the closest geocoded location, or None if none has coordinates."""
    distances = [
        great_circle((center.lat, center.lng), (coords.lat, coords.lng)).kilometers
        for coords in (loc.coordinates for loc in restaurant.locations)
        if coords is not None
    ]
    return min(distances) if distances else None


def filter_within_radius(restaurants: List[Restaurant], center: Coordinates, radius_km: float) -> List[Restaurant]:
    """Keep restaurants with a location inside ``radius_km``, nearest first."""
    nearby: List[Restaurant] = []
    for restaurant in restaurants:
        distance = nearest_distance_km(restaurant, center)
        if distance is None:
            logger.debug("Restaurant %r has no coordinates; excluded from proximity results", restaurant.name)
            continue
        if distance <= radius_km:
            restaurant.distance_km = distance
            nearby.append(restaurant)
    nearby.sort(key=lambda r: r.distance_km)
    return nearby


class PostgresCatalog:
    """Reads restaurants and their locations from Postgres."""

    def __init__(self, max_walk_minutes: int = 20, walk_minutes_to_km: float = 5 / 60) -> None:
        self.max_walk_minutes = max_walk_minutes
        self.walk_minutes_to_km = walk_minutes_to_km

    def query_by_text(self, text: str) -> List[Restaurant]:
        return [to_restaurant(row) for row in db.fetch_restaurants_with_locations(search_text=text)]

    def query_by_radius(self, center: Coordinates, max_walk_minutes: Optional[int] = None) -> List[Restaurant]:
        minutes = self.max_walk_minutes if max_walk_minutes is None else max_walk_minutes
        radius_km = minutes * self.walk_minutes_to_km
        results = filter_within_radius(self.list_all_with_locations(), center, radius_km)
        logger.info(
            "Found %d restaurants within %d minutes walking (%.2f km) of %.5f,%.5f",
            len(results),
            minutes,
            radius_km,
            center.lat,
            center.lng,
        )
        return results

    def list_all_with_locations(self) -> List[Restaurant]:
        return [to_restaurant(row) for row in db.fetch_restaurants_with_locations()]

    def get_restaurant(self, restaurant_id: str) -> Optional[Restaurant]:
        row = db.fetch_restaurant(restaurant_id)
        return to_restaurant(row) if row else None
