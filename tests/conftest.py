import random

import pytest

from backend.catalog import FlightCatalog
from backend.display import DisplayPreparer
from backend.hints import CityFactCache
from backend.scoring import ScoringEngine
from backend.session import SessionEngine
from backend.store import InMemoryLeaderboardStore, InMemorySessionStore
from tests.helpers import FakeClock, RecordingEvents, sample_flights


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def catalog(rng):
    c = FlightCatalog(rng=rng)
    c.replace(sample_flights())
    return c


@pytest.fixture
def empty_catalog(rng):
    return FlightCatalog(rng=rng)


@pytest.fixture
def display(rng):
    return DisplayPreparer(CityFactCache(rng=rng), rng=rng)


@pytest.fixture
def scoring(catalog):
    return ScoringEngine(catalog)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def events():
    return RecordingEvents()


@pytest.fixture
def session_store():
    return InMemorySessionStore()


@pytest.fixture
def leaderboard_store():
    return InMemoryLeaderboardStore()


@pytest.fixture
def engine(catalog, display, scoring, session_store, clock, events):
    return SessionEngine(
        catalog, display, scoring, session_store,
        total_rounds=10,
        clock=clock,
        events=events,
    )
