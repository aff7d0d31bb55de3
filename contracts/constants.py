"""
Shared constants for SkyQuest services.

This module provides a single source of truth for:
- Difficulty levels and game status values
- Scoring tiers and multipliers
- WebSocket message types
- Placeholder values used to mask airports

All services should import from this module to ensure consistency.
"""

from enum import Enum


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class MatchType(str, Enum):
    EXACT = "exact"
    FAMILY = "family"
    COUNTRY = "country"
    DISTANCE = "distance"
    WRONG = "wrong"


# Game Status
GAME_STATUS_IN_PROGRESS = "in_progress"
GAME_STATUS_COMPLETED = "completed"

# Rounds per game
DEFAULT_TOTAL_ROUNDS = 10

# Base points per match tier
BASE_POINTS = {
    MatchType.EXACT: 1000,
    MatchType.FAMILY: 750,
    MatchType.COUNTRY: 500,
    MatchType.DISTANCE: 250,
    MatchType.WRONG: 0,
}

# Guesses within this radius of the real destination score as "distance"
DISTANCE_MATCH_THRESHOLD_KM = 500.0

# Medium difficulty only uses flights up to this great-circle length
MEDIUM_MAX_ROUTE_KM = 5000.0

DIFFICULTY_MULTIPLIERS = {
    Difficulty.EASY: 1.0,
    Difficulty.MEDIUM: 1.5,
    Difficulty.HARD: 2.0,
}

# (max elapsed seconds, multiplier), checked in order
SPEED_MULTIPLIERS = (
    (10.0, 1.3),
    (30.0, 1.1),
)
SPEED_MULTIPLIER_SLOW = 1.0

# Masked airport placeholders
MASKED_IATA = "???"
MASKED_ICAO = "????"
MASKED_DESTINATION_NAME = "Unknown Destination"
MASKED_ORIGIN_NAME = "Unknown Origin"

# WebSocket Message Types
WS_MESSAGE_TYPE_FLIGHT_UPDATE = "flight:update"
WS_MESSAGE_TYPE_ROUND_START = "round:start"
WS_MESSAGE_TYPE_GUESS_RESULT = "guess:result"
WS_MESSAGE_TYPE_GAME_END = "game:end"

# Inbound WebSocket control messages
WS_CONTROL_REGISTER = "register"
