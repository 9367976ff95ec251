import pytest

from restaurant_curator.etl import transform
from restaurant_curator.models import AddressComponent


def test_parse_city_prefers_locality():
    components = [
        AddressComponent(long_name="England", types=["administrative_area_level_1", "political"]),
        AddressComponent(long_name="London", types=["locality", "political"]),
    ]
    assert transform.parse_city(components) == "London"


def test_parse_city_falls_back_to_postal_town_then_region():
    components = [
        AddressComponent(long_name="England", types=["administrative_area_level_1"]),
        AddressComponent(long_name="Bath", types=["postal_town"]),
    ]
    assert transform.parse_city(components) == "Bath"
    assert transform.parse_city(components[:1]) == "England"
    assert transform.parse_city([]) is None


def test_parse_address_components_skips_nameless():
    components = transform.parse_address_components(
        [{"long_name": "Soho", "types": ["sublocality"]}, {"types": ["country"]}]
    )
    assert len(components) == 1
    assert components[0].short_name == "Soho"


@pytest.mark.parametrize(
    "result, expected",
    [
        ({"types": ["restaurant", "establishment", "point_of_interest"]}, "high"),
        ({"types": ["street_address"]}, "medium"),
        ({"types": ["sublocality", "political"]}, "medium"),
        ({"types": ["locality"], "partial_match": True}, "low"),
        ({"types": ["administrative_area_level_1"]}, "low"),
        ({"types": ["locality", "political"]}, "medium"),
        ({}, "medium"),
    ],
)
def test_determine_confidence(result, expected):
    assert transform.determine_confidence(result) == expected


def test_to_geocode_result():
    result = transform.to_geocode_result(
        {
            "formatted_address": "Shoreditch, London E2, UK",
            "geometry": {"location": {"lat": 51.5231, "lng": -0.0764}},
            "address_components": [
                {"long_name": "Shoreditch", "types": ["sublocality"]},
                {"long_name": "London", "types": ["locality"]},
            ],
            "place_id": "ChIJ123",
            "types": ["sublocality"],
        }
    )
    assert result.coordinates.lat == 51.5231
    assert result.coordinates.lng == -0.0764
    assert result.city == "London"
    assert result.confidence == "medium"
    assert result.place_id == "ChIJ123"


def test_to_geocode_result_requires_geometry():
    with pytest.raises(KeyError):
        transform.to_geocode_result({"formatted_address": "Nowhere"})


def test_to_restaurant_maps_locations():
    row = {
        "id": 7,
        "name": "Hoppers Soho",
        "address": "49 Frith Street, Soho, London",
        "status": "visited",
        "cuisine": "Sri Lankan",
        "public_rating": "4.5",
        "locations": [
            {
                "id": "loc-2",
                "restaurant_id": 7,
                "location_name": "Soho",
                "full_address": "49 Frith Street, Soho, London W1D 4SG",
                "city": "London",
                "latitude": 51.5136,
                "longitude": None,
            }
        ],
    }
    restaurant = transform.to_restaurant(row)

    assert restaurant.id == "7"
    assert restaurant.public_rating == 4.5
    assert restaurant.locations[0].restaurant_id == "7"
    assert restaurant.locations[0].coordinates is None
    assert restaurant.cities() == ["London"]


def test_to_restaurant_accepts_json_text_and_missing_locations():
    assert transform.to_restaurant({"id": "1", "name": "A", "locations": "[]"}).locations == []
    assert transform.to_restaurant({"id": "1", "name": "A"}).locations == []
