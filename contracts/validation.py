"""
Validation library for SkyQuest message contracts.

Provides Pydantic models for the game domain, the HTTP request/response
bodies and the WebSocket messages. All services should use these models
to validate data before processing or sending it.
"""

from typing import Optional, Literal
from datetime import datetime, timezone
from pydantic import BaseModel, ConfigDict, Field, field_validator
from contracts.constants import (
    Difficulty,
    MatchType,
    GAME_STATUS_IN_PROGRESS,
    GAME_STATUS_COMPLETED,
    MASKED_IATA,
)


def _parse_iso(v):
    """Parse ISO 8601 datetime string."""
    if isinstance(v, str):
        return datetime.fromisoformat(v.replace("Z", "+00:00"))
    return v


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# Reference Data
# ============================================================================

class Airport(BaseModel):
    """Airport reference entry, identified by its IATA code."""
    iata: str = ""
    icao: str = ""
    name: str = ""
    city: str = ""
    country: str = ""
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def is_masked(self) -> bool:
        return self.iata == MASKED_IATA


class Aircraft(BaseModel):
    iata: str = ""
    icao: str = ""
    model: str = ""
    registration: str = ""


class Airline(BaseModel):
    iata: str = ""
    icao: str = ""
    name: str = ""


# ============================================================================
# Flights
# ============================================================================

class Flight(BaseModel):
    """
    Catalog flight entry.

    Telemetry units follow the provider: altitude in feet, speed in knots,
    direction in degrees, vertical speed in feet per minute. The same model
    carries the masked display copy handed to players, in which case
    ``hint`` may be set.
    """
    id: str
    icao24: str = ""
    callsign: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    altitude: float = 0.0
    speed: float = 0.0
    direction: float = 0.0
    vertical_speed: float = 0.0
    status: str = ""
    departure: Airport = Field(default_factory=Airport)
    arrival: Airport = Field(default_factory=Airport)
    aircraft: Aircraft = Field(default_factory=Aircraft)
    airline: Airline = Field(default_factory=Airline)
    flight_number: str = ""
    hint: Optional[str] = None
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("updated_at", mode="before")
    @classmethod
    def parse_updated_at(cls, v):
        return _parse_iso(v)


class FlightPosition(BaseModel):
    """Position-only view of a flight, used by the live broadcast feed."""
    id: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    altitude: float = 0.0
    speed: float = 0.0
    direction: float = 0.0
    vertical_speed: float = 0.0
    updated_at: datetime

    @classmethod
    def from_flight(cls, flight: Flight) -> "FlightPosition":
        return cls(
            id=flight.id,
            latitude=flight.latitude,
            longitude=flight.longitude,
            altitude=flight.altitude,
            speed=flight.speed,
            direction=flight.direction,
            vertical_speed=flight.vertical_speed,
            updated_at=flight.updated_at,
        )


# ============================================================================
# Game Sessions
# ============================================================================

class Round(BaseModel):
    """One guess-the-destination challenge inside a session."""
    round_number: int = Field(ge=1)
    flight_id: str
    flight: Optional[Flight] = None
    departure: str = ""
    actual_arrival: str = ""
    player_guess: str = ""
    points_earned: int = 0
    guess_time: float = 0.0
    confidence: int = 0
    started_at: datetime
    completed_at: Optional[datetime] = None

    @property
    def is_pending(self) -> bool:
        return self.player_guess == ""


class GameSession(BaseModel):
    session_id: str
    username: str
    difficulty: Difficulty
    rounds: list[Round]
    total_score: int = 0
    status: Literal["in_progress", "completed"] = GAME_STATUS_IN_PROGRESS
    started_at: datetime
    ended_at: Optional[datetime] = None
    # Set once the final score has been handed to the leaderboard
    score_recorded: bool = False

    @property
    def is_completed(self) -> bool:
        return self.status == GAME_STATUS_COMPLETED

    def current_round_index(self) -> Optional[int]:
        """Index of the first round without a guess, or None."""
        for i, rnd in enumerate(self.rounds):
            if rnd.is_pending:
                return i
        return None


class LeaderboardEntry(BaseModel):
    username: str
    difficulty: Difficulty
    total_score: int = 0
    games_played: int = 0
    updated_at: datetime = Field(default_factory=utcnow)
    rank: int = 0


class ScoreResult(BaseModel):
    """Outcome of scoring a single guess."""
    model_config = ConfigDict(frozen=True)

    base_points: int
    difficulty_multiplier: float
    speed_multiplier: float
    total_points: int
    match_type: MatchType
    distance_km: float = 0.0
    correct_airport: Optional[Airport] = None
    guessed_airport: Optional[Airport] = None


# ============================================================================
# HTTP Requests / Responses
# ============================================================================

class StartGameRequest(BaseModel):
    username: str = Field(min_length=1, max_length=64)
    difficulty: Difficulty

    @field_validator("username")
    @classmethod
    def strip_username(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("username must not be blank")
        return v


class StartGameResponse(BaseModel):
    session_id: str
    difficulty: Difficulty
    total_rounds: int
    current_round: int
    flight: Flight


class GuessRequest(BaseModel):
    session_id: str = Field(min_length=1)
    airport_iata: str = Field(min_length=1, max_length=8)
    confidence: int = 0

    @field_validator("airport_iata")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        v = v.strip().upper()
        if not v:
            raise ValueError("airport_iata must not be blank")
        return v


class GuessResponse(BaseModel):
    score: ScoreResult
    round_number: int
    is_game_over: bool
    next_flight: Optional[Flight] = None
    total_score: int


class EndGameRequest(BaseModel):
    session_id: str = Field(min_length=1)


class EndGameResponse(BaseModel):
    session_id: str
    total_score: int
    rounds: list[Round]
    rank: int = 0
    difficulty: Difficulty


class LeaderboardResponse(BaseModel):
    leaderboard: list[LeaderboardEntry]
    count: int
    difficulty: Optional[Difficulty] = None


# ============================================================================
# WebSocket Messages
# ============================================================================

class FlightUpdatePayload(BaseModel):
    flights: list[FlightPosition]


class RoundStartPayload(BaseModel):
    session_id: str
    round_number: int = Field(ge=1)
    flight: Flight


class GuessResultPayload(BaseModel):
    session_id: str
    round_number: int = Field(ge=1)
    score: ScoreResult
    total_score: int


class GameEndPayload(BaseModel):
    session_id: str
    total_score: int
    rank: int = 0


class _Message(BaseModel):
    timestamp: datetime = Field(default_factory=utcnow)

    @field_validator("timestamp", mode="before")
    @classmethod
    def parse_timestamp(cls, v):
        return _parse_iso(v)


class FlightUpdateMessage(_Message):
    """Global flight snapshot, broadcast to every viewer."""
    type: Literal["flight:update"] = "flight:update"
    payload: FlightUpdatePayload


class RoundStartMessage(_Message):
    type: Literal["round:start"] = "round:start"
    payload: RoundStartPayload


class GuessResultMessage(_Message):
    type: Literal["guess:result"] = "guess:result"
    payload: GuessResultPayload


class GameEndMessage(_Message):
    type: Literal["game:end"] = "game:end"
    payload: GameEndPayload


class RegisterPayload(BaseModel):
    """Client-sent association between a live connection and a session."""
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(min_length=1, alias="sessionId")


class RegisterMessage(BaseModel):
    type: Literal["register"] = "register"
    payload: RegisterPayload


# ============================================================================
# Validation Functions
# ============================================================================

def validate_flight_update_message(data: dict) -> tuple[bool, Optional[FlightUpdateMessage], Optional[str]]:
    """
    Validate FlightUpdateMessage.

    Returns:
        (is_valid, message_or_none, error_message_or_none)
    """
    try:
        message = FlightUpdateMessage(**data)
        return True, message, None
    except Exception as e:
        return False, None, str(e)


def validate_round_start_message(data: dict) -> tuple[bool, Optional[RoundStartMessage], Optional[str]]:
    """
    Validate RoundStartMessage.

    Returns:
        (is_valid, message_or_none, error_message_or_none)
    """
    try:
        message = RoundStartMessage(**data)
        return True, message, None
    except Exception as e:
        return False, None, str(e)


def validate_guess_result_message(data: dict) -> tuple[bool, Optional[GuessResultMessage], Optional[str]]:
    """
    Validate GuessResultMessage.

    Returns:
        (is_valid, message_or_none, error_message_or_none)
    """
    try:
        message = GuessResultMessage(**data)
        return True, message, None
    except Exception as e:
        return False, None, str(e)


def validate_game_end_message(data: dict) -> tuple[bool, Optional[GameEndMessage], Optional[str]]:
    """
    Validate GameEndMessage.

    Returns:
        (is_valid, message_or_none, error_message_or_none)
    """
    try:
        message = GameEndMessage(**data)
        return True, message, None
    except Exception as e:
        return False, None, str(e)


def validate_register_message(data: dict) -> tuple[bool, Optional[RegisterMessage], Optional[str]]:
    """
    Validate an inbound RegisterMessage.

    Returns:
        (is_valid, message_or_none, error_message_or_none)
    """
    try:
        message = RegisterMessage(**data)
        return True, message, None
    except Exception as e:
        return False, None, str(e)
