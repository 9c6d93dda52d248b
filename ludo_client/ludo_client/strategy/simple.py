"""Simple strategy implementation.

Strategy:
- Finish a token if possible
- Otherwise capture an opponent
- Otherwise bring a token out of base
- Otherwise advance the token that is furthest along
"""

from ludo_client.game.state import POS_BASE, POS_FINISHED, SAFE_TILES, ClientGameState
from ludo_client.strategy.base import Strategy


class SimpleStrategy(Strategy):
    """Greedy single-move strategy."""

    def select_token(
        self, state: ClientGameState, dice: int, valid_moves: list[int]
    ) -> int:
        if not valid_moves:
            raise ValueError("No valid moves to choose from")

        for token in valid_moves:
            position = state.token_positions[token]
            if position != POS_BASE and position + dice == POS_FINISHED:
                return token

        for token in valid_moves:
            if self._captures(state, token, dice):
                return token

        for token in valid_moves:
            if state.token_positions[token] == POS_BASE:
                return token

        return max(valid_moves, key=lambda t: state.token_positions[t])

    def _captures(self, state: ClientGameState, token: int, dice: int) -> bool:
        position = state.token_positions[token]
        landing = 0 if position == POS_BASE else position + dice
        tile = state.tile_of(token, landing)
        if tile is None or tile in SAFE_TILES:
            return False
        victims = state.opponents_on(tile, state.owner_of(token))
        # Stacked colours are not captured
        return bool(victims) and len({state.owner_of(v) for v in victims}) == 1
