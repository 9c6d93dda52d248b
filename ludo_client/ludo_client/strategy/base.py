"""Base strategy class for Ludo client.

Defines the interface that all AI strategies must implement.
"""

from abc import ABC, abstractmethod

from ludo_client.game.state import ClientGameState


class Strategy(ABC):
    """Abstract base class for game strategies."""

    @abstractmethod
    def select_token(
        self, state: ClientGameState, dice: int, valid_moves: list[int]
    ) -> int:
        """Select which token to move.

        Args:
            state: Current game state
            dice: Rolled dice value
            valid_moves: Token slots the server allows (never empty)

        Returns:
            One of valid_moves
        """
        pass
