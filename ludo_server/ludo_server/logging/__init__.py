"""Game logging module."""

from .formatters import format_color, format_position, format_tokens
from .game_logger import GameLogger

__all__ = [
    "GameLogger",
    "format_color",
    "format_position",
    "format_tokens",
]
