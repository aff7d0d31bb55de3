"""
Leaderboard queries and the end-game flow.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

from contracts.constants import Difficulty
from contracts.validation import EndGameResponse, GameSession, LeaderboardEntry
from backend.session import SessionEngine
from backend.store import LeaderboardStore

logger = logging.getLogger(__name__)

DEFAULT_LEADERBOARD_LIMIT = 10
MAX_LEADERBOARD_LIMIT = 100


def clamp_limit(limit: Optional[int]) -> int:
    if limit is None:
        return DEFAULT_LEADERBOARD_LIMIT
    return max(1, min(MAX_LEADERBOARD_LIMIT, limit))


class LeaderboardService:
    def __init__(
        self,
        store: LeaderboardStore,
        sessions: SessionEngine,
        events=None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.store = store
        self.sessions = sessions
        self.events = events
        self.clock = clock

    def save_score(self, session: GameSession) -> None:
        """Best score per (username, difficulty); every call counts as a game played."""
        self.store.save_score(session.username, session.difficulty, session.total_score, self.clock())
        logger.info(f"Saved score {session.total_score} for {session.username} ({session.difficulty.value})")

    def get_leaderboard(self, difficulty: Optional[Difficulty] = None, limit: Optional[int] = None) -> List[LeaderboardEntry]:
        entries = self.store.top(difficulty, clamp_limit(limit))
        for i, entry in enumerate(entries):
            entry.rank = i + 1
        return entries

    def get_user_rank(self, username: str, difficulty: Difficulty) -> int:
        """1-based rank of the user's best score, 0 when they have no entry."""
        entry = self.store.get_entry(username, difficulty)
        if entry is None:
            return 0
        return 1 + self.store.count_above(difficulty, entry.total_score)

    def finish_game(self, session_id: str) -> EndGameResponse:
        """
        End a game, record its score once and push game:end.

        Leaderboard failures are logged and never fail the response.
        """
        response = self.sessions.end(session_id)
        session = self.sessions.get(session_id)

        try:
            claimed = self.sessions.claim_score(session_id)
            if claimed is not None:
                self.save_score(claimed)
        except Exception as e:
            logger.error(f"Failed to save score for game {session_id}: {e}")

        try:
            rank = self.get_user_rank(session.username, session.difficulty)
        except Exception as e:
            logger.error(f"Failed to get rank for {session.username}: {e}")
            rank = 0

        if self.events is not None:
            self.events.send_game_end(session_id, response.total_score, rank)

        return response.model_copy(update={"rank": rank})
