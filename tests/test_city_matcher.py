import pytest

from restaurant_curator.models import Location, Restaurant
from restaurant_curator.search import city_matcher
from restaurant_curator.search.city_matcher import CityCache, CityMatcher, infer_city_from_address, score_city_match


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


class FakeCatalog:
    def __init__(self, restaurants=None, error=None):
        self.restaurants = restaurants or []
        self.error = error
        self.calls = 0

    def list_all_with_locations(self):
        self.calls += 1
        if self.error:
            raise self.error
        return list(self.restaurants)


def restaurant(rid, name, *cities, address=""):
    locations = [Location(id=f"{rid}-{i}", restaurant_id=rid, city=city) for i, city in enumerate(cities)]
    return Restaurant(id=rid, name=name, address=address, locations=locations)


@pytest.fixture
def clock():
    return FakeClock()


def test_score_city_match_branches():
    assert score_city_match("London", "london") == 1.0
    assert score_city_match("Lond", "London") == pytest.approx(6 / 10)
    assert score_city_match("London", "City of London") == pytest.approx(14 / 20)
    assert score_city_match("Londnon", "London") == pytest.approx(1 - 1 / 7)
    assert score_city_match("Paris", "Tokyo") < 0.5
    assert score_city_match("", "London") == 0.0


def test_infer_city_from_address():
    assert infer_city_from_address("7 Boundary Street, Shoreditch, London") == "London"
    assert infer_city_from_address("Carrer de Mallorca, Barcelona") == "Barcelona"
    assert infer_city_from_address("Main Street, Springfield") is None
    assert infer_city_from_address("") is None


def test_list_known_cities_dedupes_sorts_and_infers(clock):
    catalog = FakeCatalog(
        [
            restaurant("1", "Dishoom", "London", " London "),
            restaurant("2", "Mowgli", "Manchester"),
            restaurant("3", "Old Entry", address="12 Rue Oberkampf, Paris"),
            restaurant("4", "Blank", "  "),
        ]
    )
    matcher = CityMatcher(catalog, CityCache(clock=clock))

    assert matcher.list_known_cities() == ["London", "Manchester", "Paris"]


def test_list_known_cities_uses_cache_until_ttl_expires(clock):
    catalog = FakeCatalog([restaurant("1", "Dishoom", "London")])
    matcher = CityMatcher(catalog, CityCache(ttl_seconds=300, clock=clock))

    matcher.list_known_cities()
    clock.now += 299
    matcher.list_known_cities()
    assert catalog.calls == 1

    catalog.restaurants.append(restaurant("2", "Mowgli", "Manchester"))
    clock.now += 1
    assert matcher.list_known_cities() == ["London", "Manchester"]
    assert catalog.calls == 2


def test_list_known_cities_degrades_to_empty_on_error(clock, caplog):
    catalog = FakeCatalog(error=RuntimeError("db down"))
    matcher = CityMatcher(catalog, CityCache(clock=clock))

    with caplog.at_level("ERROR"):
        assert matcher.list_known_cities() == []
    assert "Failed to load restaurant cities" in caplog.text

    # failures are not cached
    catalog.error = None
    catalog.restaurants = [restaurant("1", "Dishoom", "London")]
    assert matcher.list_known_cities() == ["London"]


def test_fuzzy_match_city_exact(clock):
    matcher = CityMatcher(FakeCatalog([restaurant("1", "Dishoom", "London")]), CityCache(clock=clock))
    assert matcher.fuzzy_match_city("London", 0.7) == ["London"]


def test_fuzzy_match_city_typo_within_threshold(clock):
    matcher = CityMatcher(FakeCatalog([restaurant("1", "Dishoom", "Londnon")]), CityCache(clock=clock))
    assert matcher.fuzzy_match_city("London", 0.7) == ["Londnon"]


def test_fuzzy_match_city_orders_by_score_and_applies_threshold(clock):
    catalog = FakeCatalog(
        [
            restaurant("1", "A", "Londn"),
            restaurant("2", "B", "London"),
            restaurant("3", "C", "Leeds"),
        ]
    )
    matcher = CityMatcher(catalog, CityCache(clock=clock))

    assert matcher.fuzzy_match_city("london") == ["London", "Londn"]
    assert matcher.fuzzy_match_city("london", threshold=0.9) == ["London"]


def test_find_restaurants_by_city(clock):
    dishoom = restaurant("1", "Dishoom", "London")
    hoppers = restaurant("2", "Hoppers", "London")
    legacy = restaurant("3", "Legacy", address="1 Frith Street, London")
    mowgli = restaurant("4", "Mowgli", "Manchester")
    matcher = CityMatcher(FakeCatalog([dishoom, hoppers, legacy, mowgli]), CityCache(clock=clock))

    assert matcher.find_restaurants_by_city("London") == [dishoom, hoppers, legacy]


def test_find_restaurants_by_city_without_matches_skips_scan(clock):
    catalog = FakeCatalog([restaurant("1", "Dishoom", "London")])
    matcher = CityMatcher(catalog, CityCache(clock=clock))

    assert matcher.find_restaurants_by_city("Tokyo") == []
    # only the cache population touched the catalog
    assert catalog.calls == 1


def test_find_restaurants_by_city_degrades_on_error(clock):
    catalog = FakeCatalog([restaurant("1", "Dishoom", "London")])
    matcher = CityMatcher(catalog, CityCache(clock=clock))
    matcher.list_known_cities()
    catalog.error = RuntimeError("db down")

    assert matcher.find_restaurants_by_city("London") == []


def test_fallback_threshold_is_looser_than_default():
    assert city_matcher.FALLBACK_THRESHOLD < city_matcher.DEFAULT_THRESHOLD


def test_find_restaurants_by_city_matches_longer_stored_city(clock):
    sweetings = restaurant("1", "Sweetings", "City of London")
    barrafina = restaurant("2", "Barrafina", "Greater London")
    mowgli = restaurant("3", "Mowgli", "Manchester")
    matcher = CityMatcher(FakeCatalog([sweetings, barrafina, mowgli]), CityCache(clock=clock))

    assert matcher.find_restaurants_by_city("London") == [sweetings, barrafina]
