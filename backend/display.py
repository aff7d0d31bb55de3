"""
Builds the player-visible version of a catalog flight.

The destination is always masked and the shown position is a random point
near the departure airport, never the provider's telemetry.
"""

import math
import random
from typing import Dict, Optional

from contracts.constants import (
    Difficulty,
    MASKED_IATA,
    MASKED_ICAO,
    MASKED_DESTINATION_NAME,
    MASKED_ORIGIN_NAME,
)
from contracts.validation import Airline, Airport, Flight
from backend.geo import bearing_degrees, offset_point
from backend.hints import CityFactCache

# Used when the departure airport has no coordinates (New York area)
DEFAULT_LATITUDE = 40.0
DEFAULT_LONGITUDE = -74.0

MIN_OFFSET_DEG = 0.3
MAX_OFFSET_DEG = 1.0

# Cruise figures shown instead of real telemetry
ALTITUDE_RANGE_FT = (28000.0, 38000.0)
SPEED_RANGE_KT = (420.0, 520.0)
VERTICAL_SPEED_RANGE_FPM = (-500.0, 500.0)


def _between(rng: random.Random, low: float, high: float) -> float:
    return low + rng.random() * (high - low)


def decorative_telemetry(departure: Airport, arrival: Airport, rng: random.Random) -> Dict[str, float]:
    """
    A random point near the departure airport heading toward the arrival,
    plus plausible cruise altitude and speeds.

    Falls back to DEFAULT_LATITUDE/DEFAULT_LONGITUDE when the departure has
    no coordinates, and to a point 5 degrees north-east of the departure
    when the arrival has none.
    """
    if departure.has_coordinates:
        dep_lat, dep_lon = departure.latitude, departure.longitude
    else:
        dep_lat, dep_lon = DEFAULT_LATITUDE, DEFAULT_LONGITUDE

    offset = _between(rng, MIN_OFFSET_DEG, MAX_OFFSET_DEG)
    angle = rng.random() * 2 * math.pi
    lat, lon = offset_point(dep_lat, dep_lon, offset, angle)

    if arrival.has_coordinates:
        target_lat, target_lon = arrival.latitude, arrival.longitude
    else:
        target_lat, target_lon = dep_lat + 5.0, dep_lon + 5.0

    return {
        "latitude": lat,
        "longitude": lon,
        "direction": bearing_degrees(lat, lon, target_lat, target_lon),
        "altitude": _between(rng, *ALTITUDE_RANGE_FT),
        "speed": _between(rng, *SPEED_RANGE_KT),
        "vertical_speed": _between(rng, *VERTICAL_SPEED_RANGE_FPM),
    }


def masked_destination() -> Airport:
    return Airport(iata=MASKED_IATA, icao=MASKED_ICAO, name=MASKED_DESTINATION_NAME)


def masked_origin() -> Airport:
    return Airport(iata=MASKED_IATA, icao=MASKED_ICAO, name=MASKED_ORIGIN_NAME)


class DisplayPreparer:
    """Per-difficulty masking plus decorative telemetry."""

    def __init__(self, facts: Optional[CityFactCache] = None, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()
        self.facts = facts if facts is not None else CityFactCache(rng=self.rng)

    def prepare(self, flight: Flight, difficulty: Difficulty) -> Flight:
        arrival = flight.arrival
        display = flight.model_copy(
            deep=True,
            update=decorative_telemetry(flight.departure, arrival, self.rng),
        )
        display.arrival = masked_destination()

        if difficulty == Difficulty.EASY:
            display.hint = self.facts.fact(arrival.city, flight.id) or None
        elif difficulty == Difficulty.MEDIUM:
            display.flight_number = ""
            display.callsign = ""
        elif difficulty == Difficulty.HARD:
            display.flight_number = ""
            display.callsign = ""
            display.airline = Airline()
            display.departure = masked_origin()

        return display
