"""Core data models shared by the catalog, geocoder and smart search."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Literal, Optional

Confidence = Literal["high", "medium", "low"]
SearchStrategy = Literal["local", "proximity", "city"]


@dataclass(slots=True, frozen=True)
class Coordinates:
    lat: float
    lng: float


@dataclass(slots=True)
class Location:
    """One physical site of a restaurant (a row of ``restaurant_addresses``)."""

    id: str
    restaurant_id: str
    location_name: str = ""
    full_address: str = ""
    city: Optional[str] = None
    country: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def coordinates(self) -> Optional[Coordinates]:
        if self.latitude is None or self.longitude is None:
            return None
        return Coordinates(lat=self.latitude, lng=self.longitude)


@dataclass(slots=True)
class Restaurant:
    """Catalog entry as read from the ``restaurants`` table plus its locations."""

    id: str
    name: str
    address: str = ""
    status: str = "must-visit"
    cuisine: Optional[str] = None
    secondary_cuisine: Optional[str] = None
    style: Optional[str] = None
    venue: Optional[str] = None
    description: Optional[str] = None
    website: Optional[str] = None
    price_range: Optional[str] = None
    public_rating: Optional[float] = None
    personal_rating: Optional[float] = None
    created_at: Optional[str] = None
    locations: List[Location] = field(default_factory=list)
    distance_km: Optional[float] = None

    def cities(self) -> List[str]:
        """Return the trimmed, non-empty structured city of every location."""
        return [loc.city.strip() for loc in self.locations if loc.city and loc.city.strip()]


@dataclass(slots=True)
class AddressComponent:
    long_name: str
    short_name: str = ""
    types: List[str] = field(default_factory=list)


@dataclass(slots=True)
class GeocodeResult:
    """First-ranked result returned by the geocoding provider."""

    coordinates: Coordinates
    formatted_address: str
    address_components: List[AddressComponent] = field(default_factory=list)
    city: Optional[str] = None
    confidence: Confidence = "medium"
    place_id: Optional[str] = None


@dataclass(slots=True)
class SearchLocation:
    name: str
    coordinates: Coordinates
    city: Optional[str] = None
    formatted_address: Optional[str] = None


@dataclass(slots=True)
class SearchResult:
    """Outcome of a smart search: the tier that answered plus its entries."""

    restaurants: List[Restaurant]
    strategy: SearchStrategy
    message: str
    search_location: Optional[SearchLocation] = None
    search_time_ms: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class GeocodingProgress:
    total: int = 0
    processed: int = 0
    success: int = 0
    errors: List[str] = field(default_factory=list)
    is_complete: bool = False


@dataclass(slots=True)
class GeocodingStats:
    total: int
    geocoded: int
    needs_geocoding: int
    percentage: int
