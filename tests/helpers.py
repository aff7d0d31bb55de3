"""Shared builders for game tests."""

import time
from datetime import datetime, timedelta, timezone

from contracts.validation import Aircraft, Airline, Airport, Flight
from backend.airports import MAJOR_AIRPORTS

AIRPORTS = {a.iata: a for a in MAJOR_AIRPORTS}

START_TIME = datetime(2026, 3, 14, 18, 0, 0, tzinfo=timezone.utc)


def make_flight(flight_id: str, dep: str, arr: str, **overrides) -> Flight:
    """Flight between two reference airports (or bare codes when unknown)."""
    departure = AIRPORTS.get(dep) or Airport(iata=dep)
    arrival = AIRPORTS.get(arr) or Airport(iata=arr)
    fields = dict(
        id=flight_id,
        icao24=flight_id,
        callsign=f"TST{flight_id[-3:].upper()}",
        flight_number=f"TS{flight_id[-3:].upper()}",
        status="active",
        latitude=departure.latitude,
        longitude=departure.longitude,
        altitude=35000.0,
        speed=450.0,
        direction=90.0,
        departure=departure,
        arrival=arrival,
        aircraft=Aircraft(iata="B738", icao="B738", registration="N123TS"),
        airline=Airline(iata="TS", icao="TST", name="Test Airways"),
        updated_at=START_TIME,
    )
    fields.update(overrides)
    return Flight(**fields)


# Domestic, short-haul international and long-haul routes
SAMPLE_ROUTES = [
    ("aa0001", "JFK", "LAX"),   # USA domestic, ~3980 km
    ("aa0002", "ORD", "MIA"),   # USA domestic
    ("aa0003", "SYD", "MEL"),   # Australia domestic
    ("aa0004", "FRA", "MUC"),   # Germany domestic
    ("aa0005", "LHR", "CDG"),   # UK -> France, ~350 km
    ("aa0006", "MAD", "FCO"),   # Spain -> Italy
    ("aa0007", "JFK", "LHR"),   # transatlantic, ~5540 km
    ("aa0008", "DXB", "SIN"),   # ~5840 km
    ("aa0009", "LAX", "NRT"),   # transpacific
]


def sample_flights():
    return [make_flight(fid, dep, arr) for fid, dep, arr in SAMPLE_ROUTES]


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime = START_TIME):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


class RecordingEvents:
    """Stands in for the broadcast hub and records what would be pushed."""

    def __init__(self):
        self.sent = []

    def send_round_start(self, session_id, round_number, flight):
        self.sent.append(("round:start", session_id, round_number, flight))

    def send_guess_result(self, session_id, round_number, score, total_score):
        self.sent.append(("guess:result", session_id, round_number, score, total_score))

    def send_game_end(self, session_id, total_score, rank):
        self.sent.append(("game:end", session_id, total_score, rank))

    def types(self):
        return [event[0] for event in self.sent]


def wait_for(predicate, timeout: float = 5.0):
    """Poll until predicate() is true."""
    deadline = time.time() + timeout
    while not predicate():
        if time.time() > deadline:
            raise AssertionError("condition not met in time")
        time.sleep(0.01)
