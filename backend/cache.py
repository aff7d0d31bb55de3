"""
Flight-list cache in front of the provider.

The cache only saves provider calls. Any failure here is logged and treated
as a miss so the game keeps working without it.
"""

import json
import logging
import threading
import time
from typing import List, Optional

import redis
from pydantic import TypeAdapter, ValidationError

from contracts.validation import Flight

logger = logging.getLogger(__name__)

FLIGHTS_CACHE_KEY = "flights:all"
DEFAULT_TTL_SECONDS = 300

_flight_list = TypeAdapter(List[Flight])


class FlightListCache:
    """In-process TTL cache; also the interface for the Redis variant."""

    def __init__(self, ttl_seconds: int = DEFAULT_TTL_SECONDS, clock=time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entry: Optional[tuple[List[Flight], float]] = None
        self._lock = threading.Lock()

    def get(self) -> Optional[List[Flight]]:
        """Cached flights, or None on a miss or after expiry."""
        with self._lock:
            if self._entry is None:
                return None
            flights, stored_at = self._entry
            if self._clock() - stored_at >= self.ttl_seconds:
                self._entry = None
                return None
            return list(flights)

    def set(self, flights: List[Flight]) -> None:
        with self._lock:
            self._entry = (list(flights), self._clock())

    def delete(self) -> None:
        with self._lock:
            self._entry = None


class RedisFlightCache(FlightListCache):
    """Stores the flight list as one JSON blob under FLIGHTS_CACHE_KEY."""

    def __init__(self, client: redis.Redis, ttl_seconds: int = DEFAULT_TTL_SECONDS, key: str = FLIGHTS_CACHE_KEY):
        super().__init__(ttl_seconds)
        self.client = client
        self.key = key

    @classmethod
    def from_url(cls, url: str, ttl_seconds: int = DEFAULT_TTL_SECONDS) -> "RedisFlightCache":
        return cls(redis.Redis.from_url(url, socket_timeout=2), ttl_seconds)

    def get(self) -> Optional[List[Flight]]:
        try:
            data = self.client.get(self.key)
        except redis.RedisError as e:
            logger.warning(f"Redis get failed: {e}")
            return None

        if data is None:
            return None

        try:
            return _flight_list.validate_json(data)
        except ValidationError as e:
            logger.warning(f"Discarding unreadable cached flights: {e}")
            return None

    def set(self, flights: List[Flight]) -> None:
        payload = json.dumps(_flight_list.dump_python(flights, mode="json"))
        try:
            self.client.set(self.key, payload, ex=self.ttl_seconds)
        except redis.RedisError as e:
            logger.warning(f"Redis set failed: {e}")

    def delete(self) -> None:
        try:
            self.client.delete(self.key)
        except redis.RedisError as e:
            logger.warning(f"Redis delete failed: {e}")


def create_flight_cache(redis_url: str, ttl_seconds: int = DEFAULT_TTL_SECONDS) -> FlightListCache:
    """Redis when a URL is configured and reachable, otherwise in-process."""
    if not redis_url:
        logger.info("REDIS_URL not set, caching flights in-process")
        return FlightListCache(ttl_seconds)

    cache = RedisFlightCache.from_url(redis_url, ttl_seconds)
    try:
        cache.client.ping()
    except redis.RedisError as e:
        logger.warning(f"Redis unavailable ({e}), caching flights in-process")
        return FlightListCache(ttl_seconds)

    logger.info("Redis flight cache connected")
    return cache
