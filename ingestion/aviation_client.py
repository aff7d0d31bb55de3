"""
AviationStack client - fetches currently active flights.

Only flights with both a departure and an arrival IATA code are kept;
everything else cannot be played.
"""

import os
import hashlib
import logging
from datetime import datetime, timezone
from typing import List, Optional

import requests

from contracts.validation import Aircraft, Airline, Airport, Flight
from backend.errors import UpstreamUnavailable
from backend.metrics import PROVIDER_FETCHES

logger = logging.getLogger(__name__)

AVIATIONSTACK_API_URL = os.getenv("AVIATIONSTACK_API_URL", "http://api.aviationstack.com/v1")
REQUEST_TIMEOUT_SECONDS = 30
FLIGHT_LIMIT = 100


def _section(raw: dict, name: str) -> dict:
    # The API sends null for missing objects (aircraft, live)
    return raw.get(name) or {}


def opaque_flight_id(icao24: str, flight_iata: str, dep_iata: str, arr_iata: str, flight_date: str = "") -> str:
    """
    Stable catalog id that reveals nothing about the route or flight number.

    Player-visible flights and the live feed carry this id, so it must not
    contain any of its inputs.
    """
    key = "|".join((icao24, flight_iata, dep_iata, arr_iata, flight_date))
    return hashlib.sha256(key.encode()).hexdigest()[:16]


def transform_flight(raw: dict, fetched_at: Optional[datetime] = None) -> Optional[Flight]:
    """Convert one AviationStack ``data`` row to a Flight. Returns None when unusable."""
    departure = _section(raw, "departure")
    arrival = _section(raw, "arrival")
    dep_iata = departure.get("iata") or ""
    arr_iata = arrival.get("iata") or ""
    if not dep_iata or not arr_iata:
        return None

    flight = _section(raw, "flight")
    aircraft = _section(raw, "aircraft")
    airline = _section(raw, "airline")
    live = _section(raw, "live")

    flight_iata = flight.get("iata") or ""
    flight_id = opaque_flight_id(
        aircraft.get("icao24") or "", flight_iata, dep_iata, arr_iata, raw.get("flight_date") or ""
    )

    result = Flight(
        id=flight_id,
        icao24=aircraft.get("icao24") or "",
        callsign=flight.get("icao") or "",
        flight_number=flight_iata,
        status=raw.get("flight_status") or "",
        departure=Airport(
            iata=dep_iata,
            icao=departure.get("icao") or "",
            name=departure.get("airport") or "",
        ),
        arrival=Airport(
            iata=arr_iata,
            icao=arrival.get("icao") or "",
            name=arrival.get("airport") or "",
        ),
        aircraft=Aircraft(
            iata=aircraft.get("iata") or "",
            icao=aircraft.get("icao") or "",
            registration=aircraft.get("registration") or "",
        ),
        airline=Airline(
            iata=airline.get("iata") or "",
            icao=airline.get("icao") or "",
            name=airline.get("name") or "",
        ),
        updated_at=fetched_at or datetime.now(timezone.utc),
    )

    if live:
        result.latitude = live.get("latitude")
        result.longitude = live.get("longitude")
        result.altitude = live.get("altitude") or 0.0
        result.direction = live.get("direction") or 0.0
        result.speed = live.get("speed_horizontal") or 0.0
        result.vertical_speed = live.get("speed_vertical") or 0.0

    return result


class AviationStackClient:
    """Client for the AviationStack REST API."""

    def __init__(self, api_key: Optional[str], base_url: str = AVIATIONSTACK_API_URL):
        self.api_key = api_key
        self.base_url = base_url
        self.session = requests.Session()

        if not self.api_key:
            logger.warning("AviationStack API key not configured - set AVIATIONSTACK_API_KEY")

    def fetch_flights(self) -> List[Flight]:
        """
        Fetch active flights.

        Raises:
            UpstreamUnavailable: missing key, HTTP error, timeout or unreadable body.
        """
        if not self.api_key:
            PROVIDER_FETCHES.labels(status="error").inc()
            raise UpstreamUnavailable("AviationStack API key is required")

        params = {
            "access_key": self.api_key,
            "flight_status": "active",
            "limit": FLIGHT_LIMIT,
        }

        try:
            response = self.session.get(
                f"{self.base_url}/flights",
                params=params,
                timeout=REQUEST_TIMEOUT_SECONDS,
            )
        except requests.exceptions.Timeout as e:
            PROVIDER_FETCHES.labels(status="error").inc()
            logger.error("AviationStack timeout")
            raise UpstreamUnavailable("AviationStack request timed out") from e
        except requests.exceptions.RequestException as e:
            PROVIDER_FETCHES.labels(status="error").inc()
            logger.error(f"Connection error: {e}")
            raise UpstreamUnavailable(f"AviationStack request failed: {e}") from e

        if response.status_code != 200:
            PROVIDER_FETCHES.labels(status="error").inc()
            logger.error(f"AviationStack API error: {response.status_code}")
            raise UpstreamUnavailable(f"AviationStack returned status {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            PROVIDER_FETCHES.labels(status="error").inc()
            raise UpstreamUnavailable(f"Failed to decode AviationStack response: {e}") from e

        if not isinstance(data, dict) or "error" in data:
            PROVIDER_FETCHES.labels(status="error").inc()
            error = data.get("error") if isinstance(data, dict) else data
            logger.error(f"AviationStack API error: {error}")
            raise UpstreamUnavailable(f"AviationStack error: {error}")

        fetched_at = datetime.now(timezone.utc)
        flights = []
        for raw in data.get("data") or []:
            flight = transform_flight(raw, fetched_at)
            if flight is not None:
                flights.append(flight)

        PROVIDER_FETCHES.labels(status="success").inc()
        logger.info(f"Fetched {len(flights)} flights from AviationStack")
        return flights

    def close(self) -> None:
        self.session.close()
