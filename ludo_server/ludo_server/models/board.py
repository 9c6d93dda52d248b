"""Board state model and coordinate helpers.

Token positions are stored relative to the owning player's start tile:

- ``-1``: BASE (token has not entered play)
- ``0..50``: steps taken on the shared 52-tile main loop
- ``51..56``: index within the player's private home stretch
- ``57``: FINISHED

Slots ``4*p .. 4*p+3`` belong to player ``p``. Only the first
``player_count * 4`` slots are active; the rest stay at BASE.

Persisted layout (20 bytes, base64 on the wire):

- ``[0]``: player count
- ``[1]``: current player
- ``[2]``: consecutive sixes
- ``[3]``: reserved (0)
- ``[4..19]``: token positions as signed bytes
"""

import base64
import struct

from pydantic import BaseModel, Field, field_validator, model_validator

# Board geometry
MAIN_LOOP_TILES = 52
TOKENS_PER_PLAYER = 4
MAX_PLAYERS = 4
MIN_PLAYERS = 2
TOTAL_TOKENS = TOKENS_PER_PLAYER * MAX_PLAYERS  # 16

# Relative positions
POS_BASE = -1
POS_MAIN_START = 0
POS_MAIN_END = 50
POS_HOME_STRETCH_START = 51
POS_FINISHED = 57

EXIT_ROLL = 6

# Start tile of each colour on the shared loop (red, blue, green, yellow)
START_OFFSETS = (0, 13, 26, 39)
TWO_PLAYER_START_OFFSETS = (0, 26)  # Opposite corners
TWO_PLAYER_ADJACENT_OFFSETS = (0, 13)

# Each colour's start tile; tokens are never captured here
SAFE_TILES = frozenset(START_OFFSETS)

STATE_FORMAT = "<BBBB16b"
STATE_BYTES = struct.calcsize(STATE_FORMAT)  # 20 bytes


def start_offset(player_index: int, player_count: int, adjacent_two_player: bool = False) -> int:
    """Get the absolute start tile for a player.

    Args:
        player_index: Seat index (0-3)
        player_count: Number of players in the game (2-4)
        adjacent_two_player: Use adjacent corners for 2-player games

    Returns:
        Absolute main-loop tile (0-51)
    """
    if not 0 <= player_index < player_count:
        raise ValueError(f"Player index {player_index} out of range for {player_count} players")
    if player_count == 2:
        offsets = TWO_PLAYER_ADJACENT_OFFSETS if adjacent_two_player else TWO_PLAYER_START_OFFSETS
        return offsets[player_index]
    return START_OFFSETS[player_index]


def to_absolute(
    relative: int,
    player_index: int,
    player_count: int,
    adjacent_two_player: bool = False,
) -> int | None:
    """Convert a relative position to an absolute main-loop tile.

    Returns:
        Absolute tile (0-51), or None if the token is not on the main loop
        (BASE, home stretch or FINISHED).
    """
    if not POS_MAIN_START <= relative <= POS_MAIN_END:
        return None
    offset = start_offset(player_index, player_count, adjacent_two_player)
    return (relative + offset) % MAIN_LOOP_TILES


def to_relative(
    absolute: int,
    player_index: int,
    player_count: int,
    adjacent_two_player: bool = False,
) -> int:
    """Convert an absolute main-loop tile to a player's relative position."""
    if not 0 <= absolute < MAIN_LOOP_TILES:
        raise ValueError(f"Absolute tile {absolute} out of range")
    offset = start_offset(player_index, player_count, adjacent_two_player)
    return (absolute - offset) % MAIN_LOOP_TILES


def owner_of(token_index: int) -> int:
    """Get the player index owning a token slot."""
    return token_index // TOKENS_PER_PLAYER


def player_tokens(player_index: int) -> range:
    """Get the token slots belonging to a player."""
    start = player_index * TOKENS_PER_PLAYER
    return range(start, start + TOKENS_PER_PLAYER)


def is_safe_tile(absolute: int) -> bool:
    """Check whether an absolute tile is one of the fixed safe tiles."""
    return absolute in SAFE_TILES


class BoardState(BaseModel):
    """Authoritative board state for one game."""

    player_count: int = 4
    current_player: int = 0
    consecutive_sixes: int = 0
    turn_count: int = 0
    token_positions: list[int] = Field(default_factory=lambda: [POS_BASE] * TOTAL_TOKENS)

    @field_validator("player_count")
    @classmethod
    def _check_player_count(cls, value: int) -> int:
        if not MIN_PLAYERS <= value <= MAX_PLAYERS:
            raise ValueError(f"Player count must be {MIN_PLAYERS}-{MAX_PLAYERS}, got {value}")
        return value

    @field_validator("token_positions")
    @classmethod
    def _check_positions(cls, value: list[int]) -> list[int]:
        if len(value) != TOTAL_TOKENS:
            raise ValueError(f"Expected {TOTAL_TOKENS} token positions, got {len(value)}")
        for pos in value:
            if not POS_BASE <= pos <= POS_FINISHED:
                raise ValueError(f"Token position {pos} out of range")
        return value

    @model_validator(mode="after")
    def _check_current_player(self) -> "BoardState":
        if not 0 <= self.current_player < self.player_count:
            raise ValueError(f"Current player {self.current_player} out of range")
        return self

    @classmethod
    def create(cls, player_count: int) -> "BoardState":
        """Create a fresh board with every token at BASE.

        Args:
            player_count: Number of players (2-4)

        Returns:
            New BoardState
        """
        return cls(player_count=player_count)

    @property
    def active_tokens(self) -> range:
        """Token slots in use for this player count."""
        return range(self.player_count * TOKENS_PER_PLAYER)

    def position(self, token_index: int) -> int:
        """Get a token's relative position."""
        return self.token_positions[token_index]

    def copy_state(self) -> "BoardState":
        """Create an independent copy of this board."""
        return self.model_copy(deep=True)

    def encode(self) -> str:
        """Encode to the compact base64 layout."""
        data = struct.pack(
            STATE_FORMAT,
            self.player_count,
            self.current_player,
            self.consecutive_sixes,
            0,
            *self.token_positions,
        )
        return base64.b64encode(data).decode("ascii")

    @classmethod
    def decode(cls, data: str) -> "BoardState":
        """Decode from the compact base64 layout.

        Args:
            data: Base64 string produced by encode()

        Returns:
            Decoded BoardState (turn_count is not persisted and starts at 0)

        Raises:
            ValueError: If the data is malformed or out of range
        """
        try:
            raw = base64.b64decode(data, validate=True)
        except (ValueError, TypeError) as e:
            raise ValueError(f"Invalid base64 board data: {e}") from e
        if len(raw) != STATE_BYTES:
            raise ValueError(f"Board data must be {STATE_BYTES} bytes, got {len(raw)}")

        player_count, current, sixes, _reserved, *positions = struct.unpack(STATE_FORMAT, raw)
        return cls(
            player_count=player_count,
            current_player=current,
            consecutive_sixes=sixes,
            token_positions=list(positions),
        )

    def __str__(self) -> str:
        lines = [f"Players: {self.player_count}, Turn: Player {self.current_player}"]
        if self.consecutive_sixes:
            lines[0] += f", Consecutive sixes: {self.consecutive_sixes}"
        for player in range(self.player_count):
            labels = []
            for token in player_tokens(player):
                pos = self.token_positions[token]
                if pos == POS_BASE:
                    labels.append("Base")
                elif pos == POS_FINISHED:
                    labels.append("Finished")
                elif pos >= POS_HOME_STRETCH_START:
                    labels.append(f"Home {pos - POS_HOME_STRETCH_START + 1}")
                else:
                    labels.append(f"Pos {pos}")
            lines.append(f"  Player {player}: [{', '.join(labels)}]")
        return "\n".join(lines)
