"""Game models."""

from .board import (
    POS_BASE,
    POS_FINISHED,
    POS_HOME_STRETCH_START,
    BoardState,
    to_absolute,
    to_relative,
)
from .outcome import MoveOutcome, MoveResult
from .player import Color, PlayerSlot

__all__ = [
    "POS_BASE",
    "POS_FINISHED",
    "POS_HOME_STRETCH_START",
    "BoardState",
    "Color",
    "MoveOutcome",
    "MoveResult",
    "PlayerSlot",
    "to_absolute",
    "to_relative",
]
