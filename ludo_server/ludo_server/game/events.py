"""Game events for presentation-layer collaborators.

Listeners receive a copy of the board with every event and never touch the
session's own BoardState.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Callable, TypeVar

from ludo_server.models.board import BoardState
from ludo_server.models.outcome import MoveOutcome

logger = logging.getLogger(__name__)


@dataclass
class GameEvent:
    """Base class for all game events."""

    session_id: str
    board: BoardState


@dataclass
class GameCreated(GameEvent):
    player_count: int


@dataclass
class TurnStart(GameEvent):
    player_index: int


@dataclass
class DiceRolled(GameEvent):
    player_index: int
    dice_value: int
    valid_moves: list[int] = field(default_factory=list)


@dataclass
class TokenMoved(GameEvent):
    player_index: int
    token_index: int
    outcome: MoveOutcome
    from_position: int
    to_position: int
    evicted: list[int] = field(default_factory=list)


@dataclass
class MoveFailed(GameEvent):
    player_index: int
    token_index: int
    outcome: MoveOutcome


@dataclass
class TurnEnd(GameEvent):
    player_index: int


@dataclass
class PlayerWon(GameEvent):
    player_index: int
    player_id: str


@dataclass
class GameStateChanged(GameEvent):
    pass


E = TypeVar("E", bound=GameEvent)


class EventBus:
    """Synchronous publish/subscribe dispatcher keyed by event class."""

    def __init__(self):
        self._handlers: dict[type, list[Callable]] = defaultdict(list)

    def subscribe(self, event_type: type[E], handler: Callable[[E], None]) -> None:
        """Register a handler for an event class (and its subclasses)."""
        self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: type[E], handler: Callable[[E], None]) -> None:
        """Remove a handler; no-op if it was not registered."""
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, event: GameEvent) -> None:
        """Deliver an event to every matching handler.

        A failing handler is logged and does not stop delivery to the rest.
        """
        for event_type in type(event).__mro__:
            for handler in list(self._handlers.get(event_type, ())):
                try:
                    handler(event)
                except Exception:
                    logger.exception(f"Event handler failed for {type(event).__name__}")
