"""Game logic."""

from .events import (
    DiceRolled,
    EventBus,
    GameCreated,
    GameEvent,
    GameStateChanged,
    MoveFailed,
    PlayerWon,
    TokenMoved,
    TurnEnd,
    TurnStart,
)
from .local import LocalGame
from .rules import RulesEngine
from .session import GameSession, MoveReport, RollResult

__all__ = [
    "DiceRolled",
    "EventBus",
    "GameCreated",
    "GameEvent",
    "GameSession",
    "GameStateChanged",
    "LocalGame",
    "MoveFailed",
    "MoveReport",
    "PlayerWon",
    "RollResult",
    "RulesEngine",
    "TokenMoved",
    "TurnEnd",
    "TurnStart",
]
