"""
Background flight refresh: cache -> provider -> catalog -> hub.
"""

import logging
import threading
from typing import Optional

from backend.cache import FlightListCache
from backend.catalog import FlightCatalog
from backend.errors import UpstreamUnavailable
from backend.metrics import PROVIDER_FETCHES

logger = logging.getLogger(__name__)


class FlightRefresher:
    """One refresh cycle. Upstream failures keep the last good catalog."""

    def __init__(self, catalog: FlightCatalog, provider, cache: Optional[FlightListCache] = None):
        self.catalog = catalog
        self.provider = provider
        self.cache = cache
        self._lock = threading.Lock()

    def refresh(self) -> int:
        """Refresh the catalog. Returns the number of flights now in it."""
        # Poller thread and the on-demand reload can both land here
        with self._lock:
            if self.cache is not None:
                cached = self.cache.get()
                if cached:
                    PROVIDER_FETCHES.labels(status="cache_hit").inc()
                    logger.info(f"Loaded {len(cached)} flights from cache")
                    return self.catalog.replace(cached)

            try:
                flights = self.provider.fetch_flights()
            except UpstreamUnavailable as e:
                logger.error(f"Error fetching flights: {e}")
                logger.info(f"Keeping last good catalog ({self.catalog.size()} flights)")
                return self.catalog.size()

            flights = self.catalog.enrich(flights)

            if self.cache is not None:
                self.cache.set(flights)

            count = self.catalog.replace(flights)
            logger.info(f"Updated catalog with {count} flights")
            return count


class FlightPoller:
    """Runs the refresher on an interval in a daemon thread and broadcasts each snapshot."""

    def __init__(self, refresher: FlightRefresher, hub=None, interval_seconds: float = 300):
        self.refresher = refresher
        self.hub = hub
        self.interval_seconds = interval_seconds
        self.running = False
        self._stop_event = threading.Event()
        self._thread = None

    def poll_once(self):
        self.refresher.refresh()
        if self.hub is not None:
            self.hub.broadcast_flights(self.refresher.catalog.get_all())

    def _poll_loop(self):
        logger.info(f"Starting flight poller (every {self.interval_seconds}s)")
        while self.running:
            try:
                self.poll_once()
            except Exception as e:
                logger.error(f"Unexpected error in poll loop: {e}", exc_info=True)

            if self._stop_event.wait(self.interval_seconds):
                break

    def start(self):
        """Start poller in background thread."""
        if self.running:
            logger.warning("Poller already running")
            return

        self.running = True
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._poll_loop, daemon=True)
        self._thread.start()
        logger.info("Poller started")

    def stop(self):
        """Stop poller."""
        if not self.running:
            return

        self.running = False
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=5.0)
        logger.info("Poller stopped")
