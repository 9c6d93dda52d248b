"""Player model."""

from enum import IntEnum
from typing import Any

from pydantic import BaseModel, ConfigDict


class Color(IntEnum):
    """Token colour by seat (matches start offset order)."""

    RED = 0
    BLUE = 1
    GREEN = 2
    YELLOW = 3


class PlayerSlot(BaseModel):
    """A player seated in a game session."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    player_id: str
    display_name: str = "Player"
    connection: Any = None  # Connection, but Any for pydantic compatibility
    player_index: int = 0  # Seat, fixed at session creation
    connected: bool = True

    def to_payload(self) -> dict[str, Any]:
        """Public view used in wire messages."""
        return {
            "playerId": self.player_id,
            "name": self.display_name,
            "playerIndex": self.player_index,
            "connected": self.connected,
        }

    def __str__(self) -> str:
        status = "" if self.connected else " (disconnected)"
        return f"Player{self.player_index}[{self.display_name}]{status}"

    def __repr__(self) -> str:
        return (
            f"PlayerSlot(id={self.player_id!r}, name={self.display_name!r}, "
            f"index={self.player_index}, connected={self.connected})"
        )
