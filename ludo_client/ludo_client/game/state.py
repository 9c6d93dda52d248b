"""Game state parsing from server payloads.

Positions are relative to each token's owner: -1 is BASE, 0-50 the shared
main loop, 51-56 the home stretch and 57 FINISHED. Token slots 4p..4p+3
belong to player p.
"""

from dataclasses import dataclass, field
from typing import Any

POS_BASE = -1
POS_MAIN_END = 50
POS_FINISHED = 57
MAIN_LOOP_TILES = 52
TOKENS_PER_PLAYER = 4

START_OFFSETS = (0, 13, 26, 39)
TWO_PLAYER_START_OFFSETS = (0, 26)
SAFE_TILES = frozenset(START_OFFSETS)


@dataclass
class ClientGameState:
    """Game state as seen by one client."""

    session_id: str = ""
    player_count: int = 4
    current_player: int = 0
    consecutive_sixes: int = 0
    turn_count: int = 0
    token_positions: list[int] = field(default_factory=lambda: [POS_BASE] * 16)
    pending_dice: int = 0
    valid_moves: list[int] = field(default_factory=list)
    is_game_over: bool = False
    winner_id: str | None = None
    players: list[dict[str, Any]] = field(default_factory=list)
    my_index: int = -1

    @classmethod
    def from_payload(cls, payload: dict[str, Any], my_index: int = -1) -> "ClientGameState":
        """Parse a ``game_state`` payload or a bare ``gameState`` board object.

        Args:
            payload: Snapshot received from the server
            my_index: Own seat, used when the payload does not carry playerIndex

        Returns:
            Parsed ClientGameState
        """
        board = payload.get("gameState", payload)
        return cls(
            session_id=payload.get("sessionId", ""),
            player_count=board.get("playerCount", payload.get("playerCount", 4)),
            current_player=board.get("currentPlayer", payload.get("currentPlayer", 0)),
            consecutive_sixes=board.get("consecutiveSixes", 0),
            turn_count=board.get("turnCount", 0),
            token_positions=list(board.get("tokenPositions", [POS_BASE] * 16)),
            pending_dice=board.get("diceValue", 0),
            valid_moves=list(board.get("validMoves", [])),
            is_game_over=payload.get("isGameOver", False),
            winner_id=payload.get("winnerId"),
            players=list(payload.get("players", [])),
            my_index=payload.get("playerIndex", my_index),
        )

    def apply_board(self, board: dict[str, Any]) -> None:
        """Replace the board fields with a ``gameState`` object from a move."""
        self.player_count = board.get("playerCount", self.player_count)
        self.current_player = board.get("currentPlayer", self.current_player)
        self.consecutive_sixes = board.get("consecutiveSixes", 0)
        self.turn_count = board.get("turnCount", self.turn_count)
        self.token_positions = list(board.get("tokenPositions", self.token_positions))
        self.pending_dice = board.get("diceValue", 0)
        self.valid_moves = list(board.get("validMoves", []))

    @property
    def is_my_turn(self) -> bool:
        return not self.is_game_over and self.current_player == self.my_index

    def owner_of(self, token_index: int) -> int:
        return token_index // TOKENS_PER_PLAYER

    def tile_of(self, token_index: int, relative: int | None = None) -> int | None:
        """Get the absolute main-loop tile for a token.

        Args:
            token_index: Token slot
            relative: Hypothetical relative position (defaults to the current one)

        Returns:
            Absolute tile, or None off the main loop
        """
        position = self.token_positions[token_index] if relative is None else relative
        if not 0 <= position <= POS_MAIN_END:
            return None
        player = self.owner_of(token_index)
        offsets = TWO_PLAYER_START_OFFSETS if self.player_count == 2 else START_OFFSETS
        return (offsets[player] + position) % MAIN_LOOP_TILES

    def opponents_on(self, tile: int, player_index: int) -> list[int]:
        """Get other players' tokens standing on an absolute tile."""
        return [
            token
            for token in range(self.player_count * TOKENS_PER_PLAYER)
            if self.owner_of(token) != player_index and self.tile_of(token) == tile
        ]
