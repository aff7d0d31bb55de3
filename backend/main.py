"""
FastAPI backend - SkyQuest game server.

Serves:
- REST API for starting games, guessing and the leaderboard
- WebSocket endpoint for the live flight feed and per-session game events
- Prometheus metrics endpoint
"""

import os
import logging
import random
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Query, Request, WebSocket
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from contracts.constants import DEFAULT_TOTAL_ROUNDS, Difficulty
from contracts.validation import (
    EndGameRequest,
    EndGameResponse,
    FlightPosition,
    GuessRequest,
    GuessResponse,
    LeaderboardResponse,
    StartGameRequest,
    StartGameResponse,
)
from backend.cache import create_flight_cache
from backend.catalog import FlightCatalog
from backend.display import DisplayPreparer
from backend.errors import InvalidState, NoFlightsAvailable, NotFound
from backend.hints import CityFactCache
from backend.leaderboard import LeaderboardService
from backend.metrics import get_metrics, HTTP_REQUESTS
from backend.poller import FlightPoller, FlightRefresher
from backend.scoring import ScoringEngine
from backend.session import SessionEngine
from backend.store import create_stores
from backend.websocket import BroadcastHub, WS_SEND_QUEUE_SIZE
from ingestion.aviation_client import AviationStackClient

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Configuration
BACKEND_HOST = os.getenv("BACKEND_HOST", "0.0.0.0")
BACKEND_PORT = int(os.getenv("BACKEND_PORT", "8000"))
DATABASE_URL = os.getenv("DATABASE_URL", "")
REDIS_URL = os.getenv("REDIS_URL", "")
AVIATIONSTACK_API_KEY = os.getenv("AVIATIONSTACK_API_KEY", "")
POLL_INTERVAL_SECONDS = int(os.getenv("POLL_INTERVAL_SECONDS", "300"))
FLIGHT_CACHE_TTL_SECONDS = int(os.getenv("FLIGHT_CACHE_TTL_SECONDS", "300"))
TOTAL_ROUNDS = int(os.getenv("TOTAL_ROUNDS", str(DEFAULT_TOTAL_ROUNDS)))
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:3000").split(",")
    if origin.strip()
]

DEFAULT_FLIGHTS_LIMIT = 50


# Global state
catalog: FlightCatalog = None
hub: BroadcastHub = None
poller: FlightPoller = None
sessions: SessionEngine = None
leaderboard: LeaderboardService = None
provider: AviationStackClient = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    global catalog, hub, poller, sessions, leaderboard, provider

    logger.info("=" * 50)
    logger.info("SkyQuest Backend - Starting")
    logger.info("=" * 50)

    rng = random.Random()

    # Broadcast hub runs on this event loop
    hub = BroadcastHub(queue_size=WS_SEND_QUEUE_SIZE)
    await hub.start()

    # Flight catalog, provider and cache
    catalog = FlightCatalog(rng=rng)
    provider = AviationStackClient(AVIATIONSTACK_API_KEY)
    flight_cache = create_flight_cache(REDIS_URL, FLIGHT_CACHE_TTL_SECONDS)
    refresher = FlightRefresher(catalog, provider, flight_cache)
    catalog.reloader = refresher.refresh
    logger.info(f"FlightCatalog initialized with {len(catalog.airports())} airports")

    # Storage
    session_store, leaderboard_store = create_stores(DATABASE_URL)
    logger.info(f"Storage mode: {session_store.mode}")

    # Game engine
    scoring = ScoringEngine(catalog)
    display = DisplayPreparer(CityFactCache(rng=rng), rng=rng)
    sessions = SessionEngine(
        catalog, display, scoring, session_store,
        total_rounds=TOTAL_ROUNDS,
        events=hub,
    )
    leaderboard = LeaderboardService(leaderboard_store, sessions, events=hub)

    poller = FlightPoller(refresher, hub, POLL_INTERVAL_SECONDS)
    poller.start()
    logger.info("Flight poller started")

    yield

    # Cleanup
    logger.info("Shutting down...")
    if poller:
        poller.stop()
    if hub:
        await hub.stop()
    if provider:
        provider.close()
    logger.info("Shutdown complete")


# Create FastAPI app
app = FastAPI(
    title="SkyQuest Backend API",
    description="Guess the destination of live flights",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    """Middleware to track HTTP requests."""
    response = await call_next(request)
    HTTP_REQUESTS.labels(
        method=request.method,
        path=request.url.path,
        status=response.status_code
    ).inc()
    return response


# ============================================
# Error mapping
# ============================================

@app.exception_handler(NotFound)
async def not_found_handler(request: Request, exc: NotFound):
    return JSONResponse(status_code=404, content={"error": str(exc)})


@app.exception_handler(InvalidState)
async def invalid_state_handler(request: Request, exc: InvalidState):
    return JSONResponse(status_code=400, content={"error": str(exc)})


@app.exception_handler(NoFlightsAvailable)
async def no_flights_handler(request: Request, exc: NoFlightsAvailable):
    return JSONResponse(status_code=503, content={"error": "No flights available. Please try again later."})


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    return JSONResponse(status_code=400, content={"error": str(exc)})


# ============================================
# Endpoints
# ============================================

@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "SkyQuest Backend",
        "version": "1.0.0",
        "endpoints": {
            "websocket": "/ws",
            "flights": "/api/flights",
            "airports": "/api/airports",
            "game": "/api/game/{start,guess,end}",
            "leaderboard": "/api/leaderboard",
            "health": "/health",
            "metrics": "/metrics"
        }
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "catalog_size": catalog.size() if catalog else 0,
        "connections": hub.connection_count if hub else 0,
        "storage": sessions.store.mode if sessions else None,
    }


@app.get("/api/flights")
def get_flights(
    difficulty: Optional[Difficulty] = None,
    limit: int = Query(DEFAULT_FLIGHTS_LIMIT, ge=1, le=500),
):
    """
    Current flight positions.

    Only telemetry is returned; routes stay hidden since they are the
    answers to the game.
    """
    if not catalog:
        return JSONResponse(status_code=503, content={"error": "Service not ready"})

    flights = catalog.flights_for(difficulty) if difficulty else catalog.get_all()
    positions = [FlightPosition.from_flight(f) for f in flights[:limit]]

    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "count": len(positions),
        "flights": [p.model_dump(mode="json") for p in positions],
    }


@app.get("/api/airports")
def get_airports():
    """Airport reference table used for guessing."""
    airports = catalog.airports() if catalog else []
    return {
        "count": len(airports),
        "airports": [a.model_dump(mode="json") for a in airports],
    }


@app.post("/api/game/start", response_model=StartGameResponse)
def start_game(request: StartGameRequest):
    return sessions.start(request.username, request.difficulty)


@app.post("/api/game/guess", response_model=GuessResponse)
def submit_guess(request: GuessRequest):
    return sessions.guess(request.session_id, request.airport_iata, request.confidence)


@app.post("/api/game/end", response_model=EndGameResponse)
def end_game(request: EndGameRequest):
    return leaderboard.finish_game(request.session_id)


@app.get("/api/leaderboard", response_model=LeaderboardResponse)
def get_leaderboard(
    difficulty: Optional[Difficulty] = None,
    limit: Optional[int] = None,
):
    entries = leaderboard.get_leaderboard(difficulty, limit)
    return LeaderboardResponse(leaderboard=entries, count=len(entries), difficulty=difficulty)


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket, sessionId: str = ""):
    """
    WebSocket endpoint for the live feed.

    Protocol:
    - On connect: last flight:update snapshot, if any
    - Every poll: {"type": "flight:update", "timestamp": "...", "payload": {"flights": [...]}}
    - For the associated session: round:start, guess:result, game:end
    - Client may send {"type": "register", "payload": {"sessionId": "..."}}
    """
    if not hub:
        await websocket.close(code=1013, reason="Service not ready")
        return

    await hub.handle_client(websocket, sessionId)


@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint."""
    return await get_metrics()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "backend.main:app",
        host=BACKEND_HOST,
        port=BACKEND_PORT,
        log_level="info"
    )
