"""
In-memory flight catalog with the static airport reference table.
"""

import logging
import random
import threading
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from contracts.constants import Difficulty, MEDIUM_MAX_ROUTE_KM
from contracts.validation import Airport, Flight
from backend.airports import MAJOR_AIRPORTS
from backend.errors import NoFlightsAvailable
from backend.display import decorative_telemetry
from backend.geo import distance_km
from backend.metrics import FLIGHTS_CACHED

logger = logging.getLogger(__name__)

# Suffixes stripped from provider airport names to guess the city
_AIRPORT_NAME_SUFFIXES = (" International", " Airport", " Intl", " Regional", " Municipal")


def city_from_airport_name(name: str) -> str:
    """Best-effort city name from an airport name, e.g. 'Lyon Airport' -> 'Lyon'."""
    result = name
    for suffix in _AIRPORT_NAME_SUFFIXES:
        idx = result.find(suffix)
        if idx > 0:
            result = result[:idx]
    return result


def matches_difficulty(flight: Flight, difficulty: Difficulty) -> bool:
    """
    Difficulty filter.

    Easy: domestic only (same country).
    Medium: route no longer than MEDIUM_MAX_ROUTE_KM.
    Hard: every flight.
    """
    dep, arr = flight.departure, flight.arrival

    if difficulty == Difficulty.EASY:
        return bool(dep.country) and dep.country == arr.country

    if difficulty == Difficulty.MEDIUM:
        if not (dep.has_coordinates and arr.has_coordinates):
            return False
        route = distance_km(dep.latitude, dep.longitude, arr.latitude, arr.longitude)
        return route <= MEDIUM_MAX_ROUTE_KM

    return True


class FlightCatalog:
    """
    Current set of known flights plus the airport reference table.

    The flight snapshot is an immutable tuple swapped wholesale by
    ``replace``; readers grab the tuple reference and never see a partial
    update.
    """

    def __init__(
        self,
        airports: Iterable[Airport] = MAJOR_AIRPORTS,
        rng: Optional[random.Random] = None,
        reloader: Optional[Callable[[], object]] = None,
    ):
        self._airports: Dict[str, Airport] = {a.iata: a for a in airports}
        self._flights: Tuple[Flight, ...] = ()
        self._lock = threading.RLock()
        self._sequence = 0
        self._rng = rng or random.Random()
        # Called once when a sample finds the catalog empty
        self.reloader = reloader

    # ------------------------------------------------------------------
    # Snapshot management
    # ------------------------------------------------------------------

    def replace(self, flights: Iterable[Flight]) -> int:
        """Atomically swap the whole flight snapshot. Returns the new size."""
        snapshot = tuple(flights)
        with self._lock:
            self._flights = snapshot
            self._sequence += 1
        FLIGHTS_CACHED.set(len(snapshot))
        logger.debug(f"Catalog replaced with {len(snapshot)} flights")
        return len(snapshot)

    def get_all(self) -> List[Flight]:
        with self._lock:
            return list(self._flights)

    def get_flight(self, flight_id: str) -> Optional[Flight]:
        for flight in self.get_all():
            if flight.id == flight_id:
                return flight
        return None

    def size(self) -> int:
        with self._lock:
            return len(self._flights)

    @property
    def sequence(self) -> int:
        with self._lock:
            return self._sequence

    # ------------------------------------------------------------------
    # Airports
    # ------------------------------------------------------------------

    def airport(self, code: str) -> Optional[Airport]:
        """Look up an airport by IATA code. None when outside the reference table."""
        if not code:
            return None
        return self._airports.get(code.strip().upper())

    def airports(self) -> List[Airport]:
        return list(self._airports.values())

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def flights_for(self, difficulty: Difficulty) -> List[Flight]:
        return [f for f in self.get_all() if matches_difficulty(f, difficulty)]

    def random_sample(self, difficulty: Difficulty, n: int) -> List[Flight]:
        """
        Return exactly ``n`` flights for a new game.

        Falls back to the unfiltered catalog when nothing matches the
        difficulty, then to a single synchronous reload. A pool smaller than
        ``n`` is padded by repeating already-chosen flights.

        Raises:
            NoFlightsAvailable: the catalog is still empty after reloading.
        """
        pool = self.flights_for(difficulty)

        if not pool:
            logger.info(f"No flights match difficulty={difficulty.value}, using all flights")
            pool = self.get_all()

        if not pool and self.reloader is not None:
            logger.warning("No flights available, attempting to reload...")
            try:
                self.reloader()
            except Exception as e:
                logger.error(f"Reload failed: {e}")
            pool = self.flights_for(difficulty) or self.get_all()

        if not pool:
            logger.error("Still no flights available after reload attempt")
            raise NoFlightsAvailable()

        self._rng.shuffle(pool)
        chosen = pool[:n]
        return [chosen[i % len(chosen)] for i in range(n)]

    # ------------------------------------------------------------------
    # Enrichment
    # ------------------------------------------------------------------

    def enrich(self, flights: Iterable[Flight]) -> List[Flight]:
        """
        Resolve provider airports against the reference table.

        Also seeds a decorative position near the departure airport so the
        live feed never reveals the real trajectory.
        """
        enriched = []
        for flight in flights:
            departure = self.airport(flight.departure.iata) or flight.departure
            arrival = self.airport(flight.arrival.iata)
            if arrival is None:
                arrival = flight.arrival
                if not arrival.city and arrival.name:
                    arrival = arrival.model_copy(update={"city": city_from_airport_name(arrival.name)})

            update = {"departure": departure, "arrival": arrival}

            if departure.has_coordinates:
                update.update(decorative_telemetry(departure, arrival, self._rng))

            enriched.append(flight.model_copy(update=update))

        return enriched
