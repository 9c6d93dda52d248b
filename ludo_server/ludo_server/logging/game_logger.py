"""Game logger for match replay and auditing."""

from __future__ import annotations

import json
import threading
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, TextIO

from ludo_server.config import GameLogSettings
from ludo_server.game.events import DiceRolled, EventBus, PlayerWon, TokenMoved

from .formatters import format_color, format_position, format_tokens

if TYPE_CHECKING:
    from ludo_server.game.session import GameSession


class GameLogger:
    """Logger for game events in JSONL format.

    Each line in the output file is a JSON object representing one event.
    Sessions run on different threads, so writes are serialized.
    """

    def __init__(self, config: GameLogSettings | None = None):
        """Initialize game logger.

        Args:
            config: Logging configuration. If None, logging is disabled.
        """
        self.config = config or GameLogSettings()
        self._file: TextIO | None = None
        self._lock = threading.Lock()

    def __enter__(self) -> "GameLogger":
        """Context manager entry."""
        if self.config.enabled and self.config.output_path:
            path = Path(self.config.output_path)
            path.parent.mkdir(parents=True, exist_ok=True)
            self._file = open(path, "a", encoding="utf-8")
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit."""
        self.close()

    def close(self) -> None:
        """Close the log file."""
        with self._lock:
            if self._file:
                self._file.close()
                self._file = None

    def _write(self, event: dict[str, Any]) -> None:
        """Write an event to the log file.

        Args:
            event: Event dictionary to write as JSON.
        """
        event.setdefault("timestamp", datetime.now().isoformat())
        with self._lock:
            if self._file:
                self._file.write(json.dumps(event, ensure_ascii=False) + "\n")
                self._file.flush()

    def attach(self, event_bus: EventBus) -> None:
        """Record rolls, moves and wins published on an event bus."""
        event_bus.subscribe(DiceRolled, self._on_dice_rolled)
        event_bus.subscribe(TokenMoved, self._on_token_moved)
        event_bus.subscribe(PlayerWon, self._on_player_won)

    def log_server_start(self, host: str, port: int) -> None:
        self._write({"type": "server_start", "host": host, "port": port})

    def log_match_start(self, session: GameSession, room_type: str) -> None:
        """Log a new session with its seating.

        Args:
            session: Newly created session.
            room_type: Queue room type the match came from.
        """
        self._write({
            "type": "match_start",
            "session": session.session_id,
            "room_type": room_type,
            "players": [
                {
                    "id": slot.player_id,
                    "name": slot.display_name,
                    "color": format_color(slot.player_index),
                }
                for slot in sorted(session.players.values(), key=lambda s: s.player_index)
            ],
        })

    def _on_dice_rolled(self, event: DiceRolled) -> None:
        self._write({
            "type": "roll",
            "session": event.session_id,
            "player": format_color(event.player_index),
            "dice": event.dice_value,
            "valid_moves": event.valid_moves,
        })

    def _on_token_moved(self, event: TokenMoved) -> None:
        record: dict[str, Any] = {
            "type": "move",
            "session": event.session_id,
            "turn": event.board.turn_count,
            "player": format_color(event.player_index),
            "token": event.token_index,
            "from": format_position(event.from_position),
            "to": format_position(event.to_position),
            "result": event.outcome.value,
            "tokens": format_tokens(event.board),
        }
        if event.evicted:
            record["evicted"] = event.evicted
        self._write(record)

    def _on_player_won(self, event: PlayerWon) -> None:
        self._write({
            "type": "game_end",
            "session": event.session_id,
            "winner": event.player_id,
            "color": format_color(event.player_index),
            "turns": event.board.turn_count,
        })

    def log_session_end(self, session: GameSession, reason: str) -> None:
        """Log removal of a session.

        Args:
            session: Removed session.
            reason: Why it was removed (e.g. "finished", "idle").
        """
        self._write({
            "type": "session_end",
            "session": session.session_id,
            "reason": reason,
            "winner": session.winner_id,
            "turns": session.board.turn_count,
        })
