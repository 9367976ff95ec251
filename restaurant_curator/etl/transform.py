"""Utilities for transforming provider responses and database rows into models."""

import json
import logging
from typing import Any, Dict, Iterable, List, Optional

from restaurant_curator.models import AddressComponent, Confidence, Coordinates, GeocodeResult, Location, Restaurant

logger = logging.getLogger(__name__)

_CITY_TYPES = ("locality", "postal_town", "administrative_area_level_1")


def parse_address_components(raw_components: Iterable[Dict[str, Any]]) -> List[AddressComponent]:
    components = []
    for component in raw_components or []:
        long_name = component.get("long_name")
        if not long_name:
            continue
        components.append(
            AddressComponent(
                long_name=long_name,
                short_name=component.get("short_name") or long_name,
                types=list(component.get("types") or []),
            )
        )
    return components


def parse_city(components: Iterable[AddressComponent]) -> Optional[str]:
    """Pick the city-like component, preferring locality over postal town over region."""
    components = list(components)
    for city_type in _CITY_TYPES:
        for component in components:
            if city_type in component.types:
                return component.long_name
    return None


def determine_confidence(result: Dict[str, Any]) -> Confidence:
    types = set(result.get("types") or [])
    if "establishment" in types or "point_of_interest" in types:
        return "high"
    if "street_address" in types or "sublocality" in types:
        return "medium"
    if result.get("partial_match") or "administrative_area_level_1" in types:
        return "low"
    return "medium"


def to_geocode_result(result: Dict[str, Any]) -> GeocodeResult:
    """Build a GeocodeResult from a single entry of the provider's ``results``.

    Raises ``KeyError``/``TypeError``/``ValueError`` when the geometry is missing
    or malformed.
    """
    location = result["geometry"]["location"]
    coordinates = Coordinates(lat=float(location["lat"]), lng=float(location["lng"]))
    components = parse_address_components(result.get("address_components", []))

    return GeocodeResult(
        coordinates=coordinates,
        formatted_address=result.get("formatted_address") or "",
        address_components=components,
        city=parse_city(components),
        confidence=determine_confidence(result),
        place_id=result.get("place_id"),
    )


def _optional_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def to_location(row: Dict[str, Any]) -> Location:
    return Location(
        id=str(row.get("id")),
        restaurant_id=str(row.get("restaurant_id")),
        location_name=row.get("location_name") or "",
        full_address=row.get("full_address") or "",
        city=row.get("city"),
        country=row.get("country"),
        latitude=_optional_float(row.get("latitude")),
        longitude=_optional_float(row.get("longitude")),
    )


def to_restaurant(row: Dict[str, Any]) -> Restaurant:
    """Map a ``restaurants`` row (with an aggregated ``locations`` array) to a Restaurant."""
    raw_locations = row.get("locations") or []
    if isinstance(raw_locations, str):
        raw_locations = json.loads(raw_locations)

    return Restaurant(
        id=str(row.get("id")),
        name=row.get("name") or "",
        address=row.get("address") or "",
        status=row.get("status") or "must-visit",
        cuisine=row.get("cuisine"),
        secondary_cuisine=row.get("secondary_cuisine"),
        style=row.get("style"),
        venue=row.get("venue"),
        description=row.get("description"),
        website=row.get("website"),
        price_range=row.get("price_range"),
        public_rating=_optional_float(row.get("public_rating")),
        personal_rating=_optional_float(row.get("personal_rating")),
        created_at=_optional_str(row.get("created_at")),
        locations=[to_location(item) for item in raw_locations if isinstance(item, dict)],
    )
