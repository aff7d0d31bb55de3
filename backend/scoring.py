"""
Guess scoring.

Points = floor(base * difficulty multiplier * speed multiplier), where the
base comes from the first matching tier: exact, family (same city), country,
distance (within DISTANCE_MATCH_THRESHOLD_KM), wrong.
"""

import logging
import math
from typing import Optional

from contracts.constants import (
    BASE_POINTS,
    DIFFICULTY_MULTIPLIERS,
    DISTANCE_MATCH_THRESHOLD_KM,
    MASKED_IATA,
    SPEED_MULTIPLIERS,
    SPEED_MULTIPLIER_SLOW,
    Difficulty,
    MatchType,
)
from contracts.validation import Airport, ScoreResult
from backend.catalog import FlightCatalog
from backend.geo import distance_km

logger = logging.getLogger(__name__)


def difficulty_multiplier(difficulty: Difficulty) -> float:
    return DIFFICULTY_MULTIPLIERS.get(difficulty, 1.0)


def speed_multiplier(elapsed_seconds: float) -> float:
    for limit, multiplier in SPEED_MULTIPLIERS:
        if elapsed_seconds <= limit:
            return multiplier
    return SPEED_MULTIPLIER_SLOW


def classify(actual: Optional[Airport], guessed: Optional[Airport]) -> tuple[MatchType, float]:
    """Match tier and distance between two resolved airports (code equality already checked)."""
    if actual is None or guessed is None:
        return MatchType.WRONG, 0.0

    distance = 0.0
    if actual.has_coordinates and guessed.has_coordinates:
        distance = distance_km(actual.latitude, actual.longitude, guessed.latitude, guessed.longitude)

    if actual.city and actual.city == guessed.city:
        return MatchType.FAMILY, distance
    if actual.country and actual.country == guessed.country:
        return MatchType.COUNTRY, distance
    if actual.has_coordinates and guessed.has_coordinates and distance <= DISTANCE_MATCH_THRESHOLD_KM:
        return MatchType.DISTANCE, distance
    return MatchType.WRONG, distance


class ScoringEngine:
    def __init__(self, catalog: FlightCatalog):
        self.catalog = catalog

    def score(
        self,
        actual_code: str,
        guessed_code: str,
        difficulty: Difficulty,
        elapsed_seconds: float,
        known_actual: Optional[Airport] = None,
    ) -> ScoreResult:
        actual_code = (actual_code or "").strip().upper()
        guessed_code = (guessed_code or "").strip().upper()

        if known_actual is not None and known_actual.iata and known_actual.iata != MASKED_IATA:
            actual = known_actual
        else:
            actual = self.catalog.airport(actual_code)
        guessed = self.catalog.airport(guessed_code)

        if actual_code and actual_code == guessed_code:
            match_type, distance = MatchType.EXACT, 0.0
        else:
            match_type, distance = classify(actual, guessed)

        base = BASE_POINTS[match_type]
        diff_mult = difficulty_multiplier(difficulty)
        speed_mult = speed_multiplier(elapsed_seconds)
        total = math.floor(base * diff_mult * speed_mult)

        logger.debug(
            f"Scored guess {guessed_code} vs {actual_code}: {match_type.value} "
            f"base={base} x{diff_mult} x{speed_mult} = {total}"
        )

        return ScoreResult(
            base_points=base,
            difficulty_multiplier=diff_mult,
            speed_multiplier=speed_mult,
            total_points=total,
            match_type=match_type,
            distance_km=distance,
            correct_airport=actual,
            guessed_airport=guessed,
        )
