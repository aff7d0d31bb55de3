"""
Game session state machine.

A session is created with exactly ``total_rounds`` rounds and moves from
in_progress to completed either on the last accepted guess or on an
explicit end call. The current round is always the first round without a
guess.
"""

import logging
import threading
import uuid
import weakref
from datetime import datetime, timezone
from typing import Callable, Optional

from contracts.constants import (
    DEFAULT_TOTAL_ROUNDS,
    Difficulty,
    GAME_STATUS_COMPLETED,
    GAME_STATUS_IN_PROGRESS,
)
from contracts.validation import (
    EndGameResponse,
    GameSession,
    GuessResponse,
    Round,
    StartGameResponse,
)
from backend.catalog import FlightCatalog
from backend.display import DisplayPreparer
from backend.errors import GameCompleted, InvalidRound, SessionNotFound
from backend.metrics import GAMES, GUESSES
from backend.scoring import ScoringEngine
from backend.store import SessionStore

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionEngine:
    """
    Drives start / guess / end against a pluggable session store.

    Mutations of one session are serialized with a per-session lock; the
    store write is a whole-document replace. ``events`` is optional and
    receives round:start and guess:result pushes (usually the broadcast hub).
    """

    def __init__(
        self,
        catalog: FlightCatalog,
        display: DisplayPreparer,
        scoring: ScoringEngine,
        store: SessionStore,
        total_rounds: int = DEFAULT_TOTAL_ROUNDS,
        clock: Callable[[], datetime] = _utcnow,
        events=None,
    ):
        if total_rounds < 1:
            raise ValueError(f"total_rounds must be at least 1, got {total_rounds}")
        self.catalog = catalog
        self.display = display
        self.scoring = scoring
        self.store = store
        self.total_rounds = total_rounds
        self.clock = clock
        self.events = events
        self._locks: "weakref.WeakValueDictionary[str, threading.Lock]" = weakref.WeakValueDictionary()
        self._locks_guard = threading.Lock()

    def _lock_for(self, session_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(session_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[session_id] = lock
            return lock

    def _load(self, session_id: str) -> GameSession:
        session = self.store.get(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        return session

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def start(self, username: str, difficulty: Difficulty) -> StartGameResponse:
        difficulty = Difficulty(difficulty)
        flights = self.catalog.random_sample(difficulty, self.total_rounds)
        now = self.clock()

        rounds = [
            Round(
                round_number=i + 1,
                flight_id=flight.id,
                flight=flight,
                departure=flight.departure.iata,
                actual_arrival=flight.arrival.iata,
                started_at=now,
            )
            for i, flight in enumerate(flights)
        ]

        session = GameSession(
            session_id=str(uuid.uuid4()),
            username=username,
            difficulty=difficulty,
            rounds=rounds,
            total_score=0,
            status=GAME_STATUS_IN_PROGRESS,
            started_at=now,
        )
        self.store.create(session)
        GAMES.labels(event="started").inc()

        display_flight = self.display.prepare(flights[0], difficulty)
        logger.info(f"Game {session.session_id} started for {username} ({difficulty.value}, {len(rounds)} rounds)")

        if self.events is not None:
            self.events.send_round_start(session.session_id, 1, display_flight)

        return StartGameResponse(
            session_id=session.session_id,
            difficulty=difficulty,
            total_rounds=len(rounds),
            current_round=1,
            flight=display_flight,
        )

    def guess(self, session_id: str, airport_code: str, confidence: int = 0) -> GuessResponse:
        code = (airport_code or "").strip().upper()
        if not code:
            raise ValueError("airport code must not be empty")

        with self._lock_for(session_id):
            session = self._load(session_id)
            if session.is_completed:
                raise GameCompleted(session_id)

            idx = session.current_round_index()
            if idx is None:
                raise InvalidRound(session_id)

            current = session.rounds[idx]
            now = self.clock()
            elapsed = max(0.0, (now - current.started_at).total_seconds())

            known_actual = current.flight.arrival if current.flight is not None else None
            result = self.scoring.score(
                current.actual_arrival, code, session.difficulty, elapsed, known_actual
            )

            current.player_guess = code
            current.points_earned = result.total_points
            current.guess_time = elapsed
            current.confidence = confidence
            current.completed_at = now
            session.total_score += result.total_points

            next_flight = None
            is_game_over = idx == len(session.rounds) - 1
            if is_game_over:
                session.status = GAME_STATUS_COMPLETED
                session.ended_at = now
            else:
                following = session.rounds[idx + 1]
                # The guess timer for the next round starts now
                following.started_at = now
                flight = following.flight or self.catalog.get_flight(following.flight_id)
                if flight is not None:
                    next_flight = self.display.prepare(flight, session.difficulty)

            self.store.update(session)

        GUESSES.labels(difficulty=session.difficulty.value, match_type=result.match_type.value).inc()
        if is_game_over:
            GAMES.labels(event="completed").inc()
            logger.info(f"Game {session_id} completed with score {session.total_score}")

        if self.events is not None:
            self.events.send_guess_result(session_id, current.round_number, result, session.total_score)
            if next_flight is not None:
                self.events.send_round_start(session_id, current.round_number + 1, next_flight)

        return GuessResponse(
            score=result,
            round_number=current.round_number,
            is_game_over=is_game_over,
            next_flight=next_flight,
            total_score=session.total_score,
        )

    def end(self, session_id: str) -> EndGameResponse:
        """Seal the session if needed and return its history. Idempotent."""
        with self._lock_for(session_id):
            session = self._load(session_id)
            if not session.is_completed:
                session.status = GAME_STATUS_COMPLETED
                session.ended_at = self.clock()
                self.store.update(session)
                GAMES.labels(event="completed").inc()
                logger.info(f"Game {session_id} ended early with score {session.total_score}")

        return EndGameResponse(
            session_id=session.session_id,
            total_score=session.total_score,
            rounds=session.rounds,
            rank=0,
            difficulty=session.difficulty,
        )

    def get(self, session_id: str) -> GameSession:
        return self._load(session_id)

    def claim_score(self, session_id: str) -> Optional[GameSession]:
        """
        Mark a completed session's score as recorded.

        Returns the session the first time it is called for a completed
        game and None afterwards, so a score reaches the leaderboard once.
        """
        with self._lock_for(session_id):
            session = self._load(session_id)
            if not session.is_completed or session.score_recorded:
                return None
            session.score_recorded = True
            self.store.update(session)
            return session
