"""
Error taxonomy for the game backend.

NotFound and InvalidState errors are surfaced to callers. Upstream and
persistence failures are recovered locally and only logged.
"""


class SkyQuestError(Exception):
    """Base class for all game backend errors."""


class NotFound(SkyQuestError):
    pass


class SessionNotFound(NotFound):
    def __init__(self, session_id: str):
        super().__init__(f"Game session not found: {session_id}")
        self.session_id = session_id


class InvalidState(SkyQuestError):
    pass


class GameCompleted(InvalidState):
    def __init__(self, session_id: str):
        super().__init__(f"Game already completed: {session_id}")
        self.session_id = session_id


class InvalidRound(InvalidState):
    def __init__(self, session_id: str):
        super().__init__(f"No pending round in session: {session_id}")
        self.session_id = session_id


class UpstreamUnavailable(SkyQuestError):
    """Flight provider or cache could not be reached."""


class NoFlightsAvailable(SkyQuestError):
    def __init__(self):
        super().__init__("No flights available")


class PersistenceDegraded(SkyQuestError):
    """Durable store unreachable; in-memory fallback is serving requests."""
