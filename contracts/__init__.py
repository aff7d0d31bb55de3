"""
SkyQuest Contracts Package

Provides shared constants, domain models and validation for message contracts.
"""

from contracts.constants import *
from contracts.validation import (
    Airport,
    Aircraft,
    Airline,
    Flight,
    FlightPosition,
    Round,
    GameSession,
    LeaderboardEntry,
    ScoreResult,
    StartGameRequest,
    StartGameResponse,
    GuessRequest,
    GuessResponse,
    EndGameRequest,
    EndGameResponse,
    LeaderboardResponse,
    FlightUpdateMessage,
    RoundStartMessage,
    GuessResultMessage,
    GameEndMessage,
    RegisterMessage,
    validate_flight_update_message,
    validate_round_start_message,
    validate_guess_result_message,
    validate_game_end_message,
    validate_register_message,
)

__all__ = [
    # Constants
    "Difficulty",
    "MatchType",
    "GAME_STATUS_IN_PROGRESS",
    "GAME_STATUS_COMPLETED",
    "DEFAULT_TOTAL_ROUNDS",
    "MASKED_IATA",
    "MASKED_ICAO",
    "WS_MESSAGE_TYPE_FLIGHT_UPDATE",
    "WS_MESSAGE_TYPE_ROUND_START",
    "WS_MESSAGE_TYPE_GUESS_RESULT",
    "WS_MESSAGE_TYPE_GAME_END",
    "WS_CONTROL_REGISTER",
    # Models
    "Airport",
    "Aircraft",
    "Airline",
    "Flight",
    "FlightPosition",
    "Round",
    "GameSession",
    "LeaderboardEntry",
    "ScoreResult",
    "StartGameRequest",
    "StartGameResponse",
    "GuessRequest",
    "GuessResponse",
    "EndGameRequest",
    "EndGameResponse",
    "LeaderboardResponse",
    "FlightUpdateMessage",
    "RoundStartMessage",
    "GuessResultMessage",
    "GameEndMessage",
    "RegisterMessage",
    # Validators
    "validate_flight_update_message",
    "validate_round_start_message",
    "validate_guess_result_message",
    "validate_game_end_message",
    "validate_register_message",
]
