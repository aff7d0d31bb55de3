"""
Prometheus metrics for the backend service.
"""

import os
from fastapi.responses import Response
from prometheus_client import Counter, Gauge, generate_latest, CONTENT_TYPE_LATEST
from prometheus_client.multiprocess import MultiProcessCollector
from prometheus_client.registry import REGISTRY


FLIGHTS_CACHED = Gauge(
    'backend_flights_cached',
    'Current flights in catalog'
)

PROVIDER_FETCHES = Counter(
    'backend_provider_fetch_total',
    'Flight refresh attempts by source and outcome',
    ['status']  # cache_hit, success, error
)

WEBSOCKET_CONNECTIONS = Gauge(
    'backend_websocket_connections',
    'Active WebSocket connections'
)

WEBSOCKET_MESSAGES_SENT = Counter(
    'backend_websocket_messages_sent_total',
    'Messages queued for delivery by type',
    ['type']  # flight:update, round:start, guess:result, game:end
)

WEBSOCKET_DROPPED = Counter(
    'backend_websocket_dropped_total',
    'Connections dropped by the hub',
    ['reason']  # queue_full, send_failed
)

HTTP_REQUESTS = Counter(
    'backend_http_requests_total',
    'HTTP requests',
    ['method', 'path', 'status']
)

GUESSES = Counter(
    'backend_guesses_total',
    'Scored guesses',
    ['difficulty', 'match_type']
)

GAMES = Counter(
    'backend_games_total',
    'Game lifecycle events',
    ['event']  # started, completed
)

STORAGE_DEGRADED = Gauge(
    'backend_storage_degraded',
    '1 when the in-memory fallback store is serving requests'
)


async def get_metrics():
    """FastAPI handler for /metrics endpoint."""
    if 'PROMETHEUS_MULTIPROC_DIR' in os.environ:
        # Multi-process mode (for production)
        registry = REGISTRY
        collector = MultiProcessCollector(registry)
        output = generate_latest(collector)
    else:
        # Single-process mode (for development)
        output = generate_latest()

    return Response(content=output, media_type=CONTENT_TYPE_LATEST)
