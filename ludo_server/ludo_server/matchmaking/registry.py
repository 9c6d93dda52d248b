"""Session registry: live sessions and the player to session mapping."""

from __future__ import annotations

import logging
import random
import threading
import time
import uuid
from typing import TYPE_CHECKING, Callable

from ludo_server.config import SessionConfig
from ludo_server.game.events import EventBus
from ludo_server.game.rules import RulesEngine
from ludo_server.game.session import GameSession
from ludo_server.models.player import PlayerSlot

from .queue import Match

if TYPE_CHECKING:
    from ludo_server.logging import GameLogger

logger = logging.getLogger(__name__)

# Reasons reported when a session is removed
REASON_FINISHED = "finished"
REASON_ABANDONED = "abandoned"
REASON_IDLE = "idle"
REASON_EMPTY = "empty"


class SessionRegistry:
    """Owns every live GameSession.

    Created once per server and handed to the router; there is no global
    lookup table.
    """

    def __init__(
        self,
        config: SessionConfig | None = None,
        engine: RulesEngine | None = None,
        event_bus: EventBus | None = None,
        rng: random.Random | None = None,
        game_logger: GameLogger | None = None,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize registry.

        Args:
            config: Session lifetime configuration
            engine: Rules engine shared by all sessions
            event_bus: Event bus handed to every session
            rng: Dice source handed to every session
            game_logger: JSONL logger for match start and session end
            clock: Wall-clock function (seconds)
        """
        self.config = config or SessionConfig()
        self.engine = engine or RulesEngine()
        self.event_bus = event_bus
        self._rng = rng
        self._game_logger = game_logger
        self._clock = clock
        self._lock = threading.Lock()
        self._sessions: dict[str, GameSession] = {}
        self._player_sessions: dict[str, str] = {}

    def create_session(self, match: Match) -> GameSession:
        """Seat a match's players in a new session, in queue order."""
        session_id = str(uuid.uuid4())
        players = [
            PlayerSlot(
                player_id=entry.player_id,
                display_name=entry.display_name,
                connection=entry.connection,
            )
            for entry in match.entries
        ]
        session = GameSession(
            session_id,
            players,
            engine=self.engine,
            rng=self._rng,
            event_bus=self.event_bus,
            clock=self._clock,
        )
        with self._lock:
            self._sessions[session_id] = session
            for slot in players:
                self._player_sessions[slot.player_id] = session_id

        if self._game_logger is not None:
            self._game_logger.log_match_start(session, match.room_type)
        return session

    def get(self, session_id: str) -> GameSession | None:
        with self._lock:
            return self._sessions.get(session_id)

    def session_for(self, player_id: str) -> GameSession | None:
        """Get the session a player is seated in."""
        with self._lock:
            session_id = self._player_sessions.get(player_id)
            if session_id is None:
                return None
            return self._sessions.get(session_id)

    def is_seated(self, player_id: str) -> bool:
        """Check whether a player sits in a game that is still being played.

        Players of a finished game may queue again before the session is swept.
        """
        session = self.session_for(player_id)
        return session is not None and not session.is_game_over

    def release_player(self, player_id: str) -> None:
        """Forget a player's seat mapping (e.g. after leave_game)."""
        with self._lock:
            self._player_sessions.pop(player_id, None)

    def remove_session(self, session_id: str, reason: str = REASON_EMPTY) -> GameSession | None:
        """Drop a session and every seat mapping pointing at it."""
        with self._lock:
            session = self._sessions.pop(session_id, None)
            if session is None:
                return None
            for player_id in [p for p, s in self._player_sessions.items() if s == session_id]:
                del self._player_sessions[player_id]

        logger.info(f"Session {session_id} removed ({reason})")
        if self._game_logger is not None:
            self._game_logger.log_session_end(session, reason)
        return session

    def sweep(self, now: float | None = None) -> list[str]:
        """Remove finished, abandoned and idle sessions.

        Args:
            now: Current time (uses the registry clock if None)

        Returns:
            IDs of removed sessions
        """
        now = self._clock() if now is None else now
        with self._lock:
            candidates = list(self._sessions.values())

        removed = []
        for session in candidates:
            reason = self._expiry_reason(session, now)
            if reason is not None and self.remove_session(session.session_id, reason) is not None:
                removed.append(session.session_id)

        if removed:
            logger.info(f"Sweep removed {len(removed)} session(s), {len(self)} active")
        return removed

    def _expiry_reason(self, session: GameSession, now: float) -> str | None:
        with session.lock:
            if session.is_game_over and session.finished_at is not None:
                if now - session.finished_at > self.config.finished_grace_seconds:
                    return REASON_FINISHED
                return None
            if session.is_empty():
                return REASON_EMPTY
            if session.all_players_disconnected():
                return REASON_ABANDONED
            if session.is_idle(now, self.config.idle_timeout_seconds):
                return REASON_IDLE
        return None

    @property
    def sessions(self) -> list[GameSession]:
        with self._lock:
            return list(self._sessions.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
