"""
Unit tests for the flight catalog.
"""

import random
import threading

import pytest

from contracts.constants import Difficulty
from contracts.validation import Airport
from backend.catalog import FlightCatalog, city_from_airport_name, matches_difficulty
from backend.display import decorative_telemetry
from backend.errors import NoFlightsAvailable
from backend.geo import distance_km
from tests.helpers import make_flight, sample_flights


class TestDifficultyFilter:

    def test_easy_keeps_domestic_flights(self, catalog):
        flights = catalog.flights_for(Difficulty.EASY)
        assert {f.id for f in flights} == {"aa0001", "aa0002", "aa0003", "aa0004"}
        for f in flights:
            assert f.departure.country == f.arrival.country

    def test_medium_keeps_routes_up_to_5000_km(self, catalog):
        flights = catalog.flights_for(Difficulty.MEDIUM)
        assert {f.id for f in flights} == {"aa0001", "aa0002", "aa0003", "aa0004", "aa0005", "aa0006"}
        for f in flights:
            route = distance_km(f.departure.latitude, f.departure.longitude,
                                f.arrival.latitude, f.arrival.longitude)
            assert route <= 5000

    def test_hard_keeps_everything(self, catalog):
        assert len(catalog.flights_for(Difficulty.HARD)) == len(sample_flights())

    def test_easy_rejects_unknown_countries(self):
        flight = make_flight("zz0001", "XXX", "YYY")
        assert not matches_difficulty(flight, Difficulty.EASY)

    def test_medium_rejects_flights_without_coordinates(self):
        flight = make_flight("zz0002", "JFK", "YYY")
        assert not matches_difficulty(flight, Difficulty.MEDIUM)


class TestRandomSample:

    def test_returns_exactly_n(self, catalog):
        flights = catalog.random_sample(Difficulty.HARD, 5)
        assert len(flights) == 5
        assert len({f.id for f in flights}) == 5

    def test_pads_small_pool_by_repetition(self, rng):
        catalog = FlightCatalog(rng=rng)
        catalog.replace([
            make_flight("us0001", "JFK", "LAX"),
            make_flight("us0002", "ORD", "MIA"),
            make_flight("us0003", "BOS", "SEA"),
            make_flight("xx0004", "JFK", "LHR"),
        ])

        flights = catalog.random_sample(Difficulty.EASY, 10)

        assert len(flights) == 10
        assert {f.id for f in flights} == {"us0001", "us0002", "us0003"}

    def test_falls_back_to_all_flights(self, rng):
        catalog = FlightCatalog(rng=rng)
        catalog.replace([make_flight("xx0001", "JFK", "LHR")])

        flights = catalog.random_sample(Difficulty.EASY, 3)

        assert [f.id for f in flights] == ["xx0001"] * 3

    def test_reloads_once_when_empty(self, rng):
        catalog = FlightCatalog(rng=rng)
        calls = []

        def reload():
            calls.append(1)
            catalog.replace([make_flight("us0001", "JFK", "LAX")])

        catalog.reloader = reload
        flights = catalog.random_sample(Difficulty.HARD, 2)

        assert len(calls) == 1
        assert [f.id for f in flights] == ["us0001", "us0001"]

    def test_raises_when_still_empty(self, empty_catalog):
        empty_catalog.reloader = lambda: None
        with pytest.raises(NoFlightsAvailable):
            empty_catalog.random_sample(Difficulty.HARD, 10)

    def test_raises_without_reloader(self, empty_catalog):
        with pytest.raises(NoFlightsAvailable):
            empty_catalog.random_sample(Difficulty.EASY, 1)

    def test_failing_reloader_surfaces_no_flights(self, empty_catalog):
        def broken():
            raise RuntimeError("provider down")

        empty_catalog.reloader = broken
        with pytest.raises(NoFlightsAvailable):
            empty_catalog.random_sample(Difficulty.HARD, 1)

    def test_seeded_rng_is_deterministic(self):
        a = FlightCatalog(rng=random.Random(7))
        b = FlightCatalog(rng=random.Random(7))
        a.replace(sample_flights())
        b.replace(sample_flights())

        ids_a = [f.id for f in a.random_sample(Difficulty.HARD, 9)]
        ids_b = [f.id for f in b.random_sample(Difficulty.HARD, 9)]
        assert ids_a == ids_b


class TestReplace:

    def test_replace_swaps_snapshot_and_bumps_sequence(self, catalog):
        before = catalog.sequence
        count = catalog.replace([make_flight("new001", "JFK", "LAX")])

        assert count == 1
        assert catalog.size() == 1
        assert catalog.sequence == before + 1
        assert catalog.get_flight("new001") is not None
        assert catalog.get_flight("aa0001") is None

    def test_readers_see_whole_snapshots(self, rng):
        catalog = FlightCatalog(rng=rng)
        small = [make_flight(f"s{i:05d}", "JFK", "LAX") for i in range(3)]
        large = [make_flight(f"l{i:05d}", "JFK", "LAX") for i in range(50)]
        catalog.replace(small)
        seen = set()
        stop = threading.Event()

        def writer():
            while not stop.is_set():
                catalog.replace(large)
                catalog.replace(small)

        thread = threading.Thread(target=writer)
        thread.start()
        try:
            for _ in range(2000):
                seen.add(len(catalog.get_all()))
        finally:
            stop.set()
            thread.join()

        assert seen <= {3, 50}


class TestAirports:

    def test_lookup_is_case_insensitive(self, catalog):
        assert catalog.airport("jfk").city == "New York"
        assert catalog.airport(" lhr ").iata == "LHR"

    def test_unknown_code_returns_none(self, catalog):
        assert catalog.airport("ZZZ") is None
        assert catalog.airport("") is None

    def test_airports_lists_reference_table(self, catalog):
        codes = {a.iata for a in catalog.airports()}
        assert {"JFK", "LHR", "SYD", "CAI"} <= codes
        assert len(codes) == 49


class TestEnrich:

    def test_city_from_airport_name(self):
        assert city_from_airport_name("Lyon Saint Exupery International") == "Lyon Saint Exupery"
        assert city_from_airport_name("Bergen Airport") == "Bergen"
        assert city_from_airport_name("Kansas City Intl") == "Kansas City"
        assert city_from_airport_name("Aspen Municipal") == "Aspen"
        assert city_from_airport_name("Heathrow") == "Heathrow"

    def test_resolves_known_airports(self, catalog):
        raw = make_flight("p00001", "JFK", "LHR").model_copy(update={
            "departure": Airport(iata="JFK", name="John F Kennedy"),
            "arrival": Airport(iata="LHR", name="Heathrow"),
        })

        enriched = catalog.enrich([raw])[0]

        assert enriched.departure.city == "New York"
        assert enriched.arrival.country == "UK"
        assert enriched.arrival.has_coordinates

    def test_unknown_arrival_gets_city_from_name(self, catalog):
        raw = make_flight("p00002", "JFK", "BGO").model_copy(update={
            "arrival": Airport(iata="BGO", name="Bergen Airport"),
        })

        enriched = catalog.enrich([raw])[0]

        assert enriched.arrival.iata == "BGO"
        assert enriched.arrival.city == "Bergen"

    def test_seeds_position_near_departure(self, catalog):
        raw = make_flight("p00003", "JFK", "LAX", latitude=None, longitude=None)

        enriched = catalog.enrich([raw])[0]

        dep = enriched.departure
        offset = ((enriched.latitude - dep.latitude) ** 2 + (enriched.longitude - dep.longitude) ** 2) ** 0.5
        assert 0.3 <= offset <= 1.0 + 1e-9
        assert 28000 <= enriched.altitude <= 38000
        assert 420 <= enriched.speed <= 520

    def test_telemetry_matches_display_rules(self):
        raw = make_flight("p00004", "LHR", "CDG", latitude=None, longitude=None)
        catalog = FlightCatalog(rng=random.Random(99))

        enriched = catalog.enrich([raw])[0]
        expected = decorative_telemetry(enriched.departure, enriched.arrival, random.Random(99))

        for field, value in expected.items():
            assert getattr(enriched, field) == value

    def test_departure_without_coordinates_keeps_telemetry(self, catalog):
        raw = make_flight("p00005", "ZZZ", "LAX", latitude=None, longitude=None)

        enriched = catalog.enrich([raw])[0]

        assert enriched.latitude is None
        assert enriched.altitude == raw.altitude
