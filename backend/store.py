"""
Session and leaderboard persistence.

Each store has an in-memory and a PostgreSQL implementation. The failover
wrappers serve from Postgres until it raises, then switch to memory for the
rest of the process.
"""

import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional, Tuple

import psycopg
from psycopg.types.json import Jsonb

from contracts.constants import Difficulty
from contracts.validation import GameSession, LeaderboardEntry
from backend.errors import PersistenceDegraded
from backend.metrics import STORAGE_DEGRADED

logger = logging.getLogger(__name__)

STORAGE_MODE_MEMORY = "memory"
STORAGE_MODE_POSTGRES = "postgres"

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS game_sessions (
    session_id   TEXT PRIMARY KEY,
    username     TEXT NOT NULL,
    difficulty   TEXT NOT NULL,
    status       TEXT NOT NULL,
    total_score  INTEGER NOT NULL DEFAULT 0,
    data         JSONB NOT NULL,
    started_at   TIMESTAMPTZ NOT NULL,
    ended_at     TIMESTAMPTZ,
    updated_at   TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS leaderboard (
    username      TEXT NOT NULL,
    difficulty    TEXT NOT NULL,
    total_score   INTEGER NOT NULL DEFAULT 0,
    games_played  INTEGER NOT NULL DEFAULT 0,
    updated_at    TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    PRIMARY KEY (username, difficulty)
);

CREATE INDEX IF NOT EXISTS idx_leaderboard_difficulty_score
    ON leaderboard (difficulty, total_score DESC);
"""


# ============================================================================
# Interfaces
# ============================================================================

class SessionStore(ABC):
    mode = STORAGE_MODE_MEMORY

    @abstractmethod
    def create(self, session: GameSession) -> None:
        ...

    @abstractmethod
    def get(self, session_id: str) -> Optional[GameSession]:
        ...

    @abstractmethod
    def update(self, session: GameSession) -> None:
        ...


class LeaderboardStore(ABC):
    mode = STORAGE_MODE_MEMORY

    @abstractmethod
    def save_score(self, username: str, difficulty: Difficulty, score: int, at: datetime) -> None:
        """Keep the best score for (username, difficulty) and count the game."""

    @abstractmethod
    def top(self, difficulty: Optional[Difficulty], limit: int) -> List[LeaderboardEntry]:
        """Entries ordered by score descending, unranked."""

    @abstractmethod
    def get_entry(self, username: str, difficulty: Difficulty) -> Optional[LeaderboardEntry]:
        ...

    @abstractmethod
    def count_above(self, difficulty: Difficulty, score: int) -> int:
        """Number of entries with a strictly higher score."""


# ============================================================================
# In-memory
# ============================================================================

class InMemorySessionStore(SessionStore):
    def __init__(self):
        self._sessions: Dict[str, GameSession] = {}
        self._lock = threading.Lock()

    def create(self, session: GameSession) -> None:
        with self._lock:
            self._sessions[session.session_id] = session.model_copy(deep=True)

    def get(self, session_id: str) -> Optional[GameSession]:
        with self._lock:
            session = self._sessions.get(session_id)
            return session.model_copy(deep=True) if session is not None else None

    def update(self, session: GameSession) -> None:
        with self._lock:
            self._sessions[session.session_id] = session.model_copy(deep=True)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


class InMemoryLeaderboardStore(LeaderboardStore):
    def __init__(self):
        self._entries: Dict[Tuple[str, Difficulty], LeaderboardEntry] = {}
        self._lock = threading.Lock()

    def save_score(self, username: str, difficulty: Difficulty, score: int, at: datetime) -> None:
        key = (username, Difficulty(difficulty))
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._entries[key] = LeaderboardEntry(
                    username=username,
                    difficulty=difficulty,
                    total_score=score,
                    games_played=1,
                    updated_at=at,
                )
                return

            self._entries[key] = entry.model_copy(update={
                "total_score": max(entry.total_score, score),
                "games_played": entry.games_played + 1,
                "updated_at": at,
            })

    def top(self, difficulty: Optional[Difficulty], limit: int) -> List[LeaderboardEntry]:
        with self._lock:
            entries = [
                e for e in self._entries.values()
                if difficulty is None or e.difficulty == difficulty
            ]
        entries.sort(key=lambda e: (-e.total_score, e.updated_at))
        return [e.model_copy() for e in entries[:limit]]

    def get_entry(self, username: str, difficulty: Difficulty) -> Optional[LeaderboardEntry]:
        with self._lock:
            entry = self._entries.get((username, Difficulty(difficulty)))
        return entry.model_copy() if entry is not None else None

    def count_above(self, difficulty: Difficulty, score: int) -> int:
        with self._lock:
            return sum(
                1 for e in self._entries.values()
                if e.difficulty == difficulty and e.total_score > score
            )


# ============================================================================
# PostgreSQL
# ============================================================================

def ensure_schema(conn: psycopg.Connection) -> None:
    """Create the game tables if they do not exist yet."""
    with conn.cursor() as cur:
        cur.execute(SCHEMA_SQL)
    conn.commit()


class _PostgresBase:
    """
    Runs each statement in its own transaction on a shared connection.

    Stores sharing a connection must also share ``lock``; otherwise one
    store's rollback can discard the other's uncommitted write.
    """

    mode = STORAGE_MODE_POSTGRES

    def __init__(self, conn: psycopg.Connection, lock: Optional[threading.Lock] = None):
        self.conn = conn
        self._lock = lock or threading.Lock()

    def _execute(self, sql: str, params=None, fetch: Optional[str] = None):
        with self._lock:
            try:
                with self.conn.cursor() as cur:
                    cur.execute(sql, params)
                    if fetch == "one":
                        result = cur.fetchone()
                    elif fetch == "all":
                        result = cur.fetchall()
                    else:
                        result = None
                self.conn.commit()
                return result
            except psycopg.Error as e:
                logger.error(f"Database error: {e}")
                if not self.conn.closed:
                    self.conn.rollback()
                raise


class PostgresSessionStore(_PostgresBase, SessionStore):
    def create(self, session: GameSession) -> None:
        self._execute("""
            INSERT INTO game_sessions (
                session_id, username, difficulty, status, total_score,
                data, started_at, ended_at
            ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
        """, (
            session.session_id,
            session.username,
            session.difficulty.value,
            session.status,
            session.total_score,
            Jsonb(session.model_dump(mode="json")),
            session.started_at,
            session.ended_at,
        ))

    def get(self, session_id: str) -> Optional[GameSession]:
        row = self._execute(
            "SELECT data FROM game_sessions WHERE session_id = %s",
            (session_id,),
            fetch="one",
        )
        if row is None:
            return None
        return GameSession.model_validate(row[0])

    def update(self, session: GameSession) -> None:
        self._execute("""
            UPDATE game_sessions SET
                status = %s,
                total_score = %s,
                data = %s,
                ended_at = %s,
                updated_at = NOW()
            WHERE session_id = %s
        """, (
            session.status,
            session.total_score,
            Jsonb(session.model_dump(mode="json")),
            session.ended_at,
            session.session_id,
        ))


class PostgresLeaderboardStore(_PostgresBase, LeaderboardStore):
    def save_score(self, username: str, difficulty: Difficulty, score: int, at: datetime) -> None:
        self._execute("""
            INSERT INTO leaderboard (username, difficulty, total_score, games_played, updated_at)
            VALUES (%s, %s, %s, 1, %s)
            ON CONFLICT (username, difficulty) DO UPDATE SET
                total_score = GREATEST(leaderboard.total_score, EXCLUDED.total_score),
                games_played = leaderboard.games_played + 1,
                updated_at = EXCLUDED.updated_at
        """, (username, Difficulty(difficulty).value, score, at))

    def top(self, difficulty: Optional[Difficulty], limit: int) -> List[LeaderboardEntry]:
        if difficulty is None:
            rows = self._execute("""
                SELECT username, difficulty, total_score, games_played, updated_at
                FROM leaderboard
                ORDER BY total_score DESC, updated_at ASC
                LIMIT %s
            """, (limit,), fetch="all")
        else:
            rows = self._execute("""
                SELECT username, difficulty, total_score, games_played, updated_at
                FROM leaderboard
                WHERE difficulty = %s
                ORDER BY total_score DESC, updated_at ASC
                LIMIT %s
            """, (Difficulty(difficulty).value, limit), fetch="all")
        return [self._row_to_entry(r) for r in rows]

    def get_entry(self, username: str, difficulty: Difficulty) -> Optional[LeaderboardEntry]:
        row = self._execute("""
            SELECT username, difficulty, total_score, games_played, updated_at
            FROM leaderboard
            WHERE username = %s AND difficulty = %s
        """, (username, Difficulty(difficulty).value), fetch="one")
        return self._row_to_entry(row) if row is not None else None

    def count_above(self, difficulty: Difficulty, score: int) -> int:
        row = self._execute(
            "SELECT COUNT(*) FROM leaderboard WHERE difficulty = %s AND total_score > %s",
            (Difficulty(difficulty).value, score),
            fetch="one",
        )
        return int(row[0])

    @staticmethod
    def _row_to_entry(row) -> LeaderboardEntry:
        username, difficulty, total_score, games_played, updated_at = row
        return LeaderboardEntry(
            username=username,
            difficulty=difficulty,
            total_score=total_score,
            games_played=games_played,
            updated_at=updated_at,
        )


# ============================================================================
# Failover
# ============================================================================

class _Failover:
    """Delegates to ``primary`` until it raises a database error."""

    def __init__(self, primary, fallback, name: str):
        self.primary = primary
        self.fallback = fallback
        self.name = name
        self.degraded = primary is None
        self.degraded_reason: Optional[PersistenceDegraded] = None
        self._lock = threading.Lock()

    @property
    def mode(self) -> str:
        return STORAGE_MODE_MEMORY if self.degraded else self.primary.mode

    def _degrade(self, error: Exception) -> None:
        with self._lock:
            if self.degraded:
                return
            self.degraded = True
            self.degraded_reason = PersistenceDegraded(f"{self.name} store unavailable: {error}")
        STORAGE_DEGRADED.set(1)
        logger.warning(f"{self.degraded_reason}; serving from memory for the rest of this process")

    def _call(self, method: str, *args, mirror: bool = False):
        if not self.degraded:
            try:
                result = getattr(self.primary, method)(*args)
            except psycopg.Error as e:
                self._degrade(e)
            else:
                if mirror:
                    getattr(self.fallback, method)(*args)
                return result
        return getattr(self.fallback, method)(*args)


class FailoverSessionStore(_Failover, SessionStore):
    """
    Session writes are mirrored into the fallback while the primary is
    healthy, so games started before a failover can still be played.
    """

    def __init__(self, primary: Optional[SessionStore], fallback: Optional[SessionStore] = None):
        super().__init__(primary, fallback or InMemorySessionStore(), "session")

    def create(self, session: GameSession) -> None:
        self._call("create", session, mirror=True)

    def get(self, session_id: str) -> Optional[GameSession]:
        return self._call("get", session_id)

    def update(self, session: GameSession) -> None:
        self._call("update", session, mirror=True)


class FailoverLeaderboardStore(_Failover, LeaderboardStore):
    def __init__(self, primary: Optional[LeaderboardStore], fallback: Optional[LeaderboardStore] = None):
        super().__init__(primary, fallback or InMemoryLeaderboardStore(), "leaderboard")

    def save_score(self, username: str, difficulty: Difficulty, score: int, at: datetime) -> None:
        self._call("save_score", username, difficulty, score, at)

    def top(self, difficulty: Optional[Difficulty], limit: int) -> List[LeaderboardEntry]:
        return self._call("top", difficulty, limit)

    def get_entry(self, username: str, difficulty: Difficulty) -> Optional[LeaderboardEntry]:
        return self._call("get_entry", username, difficulty)

    def count_above(self, difficulty: Difficulty, score: int) -> int:
        return self._call("count_above", difficulty, score)


def create_stores(database_url: str) -> Tuple[FailoverSessionStore, FailoverLeaderboardStore]:
    """
    Build the session and leaderboard stores.

    An empty URL or an unreachable database selects in-memory storage.
    """
    if not database_url:
        logger.info("DATABASE_URL not set, using in-memory storage")
        STORAGE_DEGRADED.set(1)
        return FailoverSessionStore(None), FailoverLeaderboardStore(None)

    try:
        conn = psycopg.connect(database_url)
        ensure_schema(conn)
    except psycopg.Error as e:
        logger.warning(f"Failed to connect to PostgreSQL: {e}")
        logger.warning("Using in-memory storage instead")
        STORAGE_DEGRADED.set(1)
        return FailoverSessionStore(None), FailoverLeaderboardStore(None)

    logger.info("Database connection established")
    STORAGE_DEGRADED.set(0)
    conn_lock = threading.Lock()
    return (
        FailoverSessionStore(PostgresSessionStore(conn, conn_lock)),
        FailoverLeaderboardStore(PostgresLeaderboardStore(conn, conn_lock)),
    )
