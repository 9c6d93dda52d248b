"""Error hierarchy for the Ludo server.

Rule violations are not exceptions: the rules engine reports them as
MoveOutcome codes. The exceptions here cover protocol, authority, capacity
and configuration failures, which the router turns into ``error`` messages.
"""

from typing import Any

__all__ = [
    "AlreadyInGameError",
    "AlreadyQueuedError",
    "ConfigError",
    "GameOverError",
    "InvalidPlayerCountError",
    "LudoError",
    "MatchmakingError",
    "NoPendingRollError",
    "NotInGameError",
    "NotYourTurnError",
    "ProtocolError",
    "QueueFullError",
    "RollPendingError",
    "SessionError",
    "UnknownRoomTypeError",
]


class LudoError(Exception):
    """Base exception for all Ludo server errors.

    Attributes:
        code: Machine-readable error code
        message: Human-readable error description
        context: Additional context for debugging
    """

    code: str = "LUDO_ERROR"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"[{self.code}] {self.message} ({ctx})"
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


class ConfigError(LudoError):
    """Configuration file could not be loaded."""

    code: str = "CONFIG_ERROR"


# =============================================================================
# Protocol Errors
# =============================================================================


class ProtocolError(LudoError):
    """Malformed message, unknown type or missing field."""

    code: str = "PROTOCOL_ERROR"


# =============================================================================
# Authority Errors
# =============================================================================


class SessionError(LudoError):
    """Request rejected by a game session without mutating it."""

    code: str = "SESSION_ERROR"


class NotInGameError(SessionError):
    code: str = "NOT_IN_GAME"


class NotYourTurnError(SessionError):
    code: str = "NOT_YOUR_TURN"


class GameOverError(SessionError):
    code: str = "GAME_OVER"


class NoPendingRollError(SessionError):
    code: str = "NO_PENDING_ROLL"


class RollPendingError(SessionError):
    """A roll is already waiting for a move."""

    code: str = "ROLL_PENDING"


# =============================================================================
# Capacity Errors
# =============================================================================


class MatchmakingError(LudoError):
    """Request rejected at queue join."""

    code: str = "MATCHMAKING_ERROR"


class InvalidPlayerCountError(MatchmakingError):
    code: str = "INVALID_PLAYER_COUNT"


class UnknownRoomTypeError(MatchmakingError):
    code: str = "UNKNOWN_ROOM_TYPE"


class QueueFullError(MatchmakingError):
    code: str = "QUEUE_FULL"


class AlreadyQueuedError(MatchmakingError):
    code: str = "ALREADY_QUEUED"


class AlreadyInGameError(MatchmakingError):
    code: str = "ALREADY_IN_GAME"
