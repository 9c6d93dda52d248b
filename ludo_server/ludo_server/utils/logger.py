"""Logging utilities and server console display."""

import logging
import sys
from typing import TYPE_CHECKING

from ludo_server.game.events import EventBus, GameCreated, PlayerWon

if TYPE_CHECKING:
    from ludo_server.config import Config


def setup_logging(level: str = "INFO") -> None:
    """Configure logging for the application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stdout,
    )


class ServerDisplay:
    """Display server status to stdout."""

    def __init__(self, show_boards: bool = False):
        """Initialize display.

        Args:
            show_boards: Whether to print the final board of each game
        """
        self.show_boards = show_boards

    def attach(self, event_bus: EventBus) -> None:
        """Print match starts and results published on an event bus."""
        event_bus.subscribe(GameCreated, self.on_game_created)
        event_bus.subscribe(PlayerWon, self.on_player_won)

    def print_separator(self) -> None:
        """Print a separator line."""
        print("=" * 60)

    def print_startup(self, config: "Config", host: str, port: int, game_log: str | None = None) -> None:
        """Print server startup summary."""
        self.print_separator()
        print("Ludo Server")
        self.print_separator()
        print(f"Listening: {host}:{port}")
        print(f"Room types: {', '.join(config.matchmaking.room_types)}")
        print(f"Safe-tile blockades: {config.rules.safe_tile_blockades.value}")
        print(f"Two-player layout: {config.rules.two_player_layout.value}")
        if game_log:
            print(f"Game log: {game_log}")
        print()

    def on_game_created(self, event: GameCreated) -> None:
        print(f"Match started: {event.session_id} ({event.player_count} players)")

    def on_player_won(self, event: PlayerWon) -> None:
        print(f"Game {event.session_id} won by player {event.player_index} after {event.board.turn_count} moves")
        if self.show_boards:
            print(event.board)

    def print_shutdown(self) -> None:
        print("\nServer stopped")
