"""Ludo rules: move validation, captures and turn advancement.

All functions are deterministic over a BoardState plus a dice value supplied
by the caller. Only process_move() and advance_turn() mutate the board.

Blockades
---------
A main-loop tile holding two or more tokens of one colour is a blockade. It
stops every other colour from passing or landing there; it never blocks its
own colour. Whether the four fixed safe tiles can host a blockade depends on
RulesConfig.safe_tile_blockades. Captures never happen on safe tiles.
"""

from __future__ import annotations

import logging
from typing import Iterable

from ludo_server.config import RulesConfig, SafeTileBlockades, TwoPlayerLayout
from ludo_server.models.board import (
    EXIT_ROLL,
    POS_BASE,
    POS_FINISHED,
    POS_MAIN_END,
    POS_MAIN_START,
    TOTAL_TOKENS,
    BoardState,
    is_safe_tile,
    owner_of,
    player_tokens,
    start_offset,
    to_absolute,
)
from ludo_server.models.outcome import MoveOutcome, MoveResult

logger = logging.getLogger(__name__)

# Sixes in a row that forfeit the turn
MAX_CONSECUTIVE_SIXES = 3

DICE_MIN = 1
DICE_MAX = 6


class RulesEngine:
    """Authoritative Ludo rules."""

    def __init__(self, rules: RulesConfig | None = None):
        """Initialize rules engine.

        Args:
            rules: Rules configuration (uses defaults if not provided)
        """
        self.rules = rules or RulesConfig()
        self._enforce_safe_blockades = (
            self.rules.safe_tile_blockades == SafeTileBlockades.ENFORCE
        )
        self._adjacent_two_player = (
            self.rules.two_player_layout == TwoPlayerLayout.ADJACENT
        )

    # ------------------------------------------------------------------
    # Coordinates and occupancy (read-only)
    # ------------------------------------------------------------------

    def absolute_tile(self, state: BoardState, player_index: int, relative: int) -> int | None:
        """Get the absolute main-loop tile for a player's relative position."""
        return to_absolute(relative, player_index, state.player_count, self._adjacent_two_player)

    def token_tile(self, state: BoardState, token_index: int) -> int | None:
        """Get the absolute main-loop tile a token stands on, if any."""
        return self.absolute_tile(state, owner_of(token_index), state.token_positions[token_index])

    def start_tile(self, state: BoardState, player_index: int) -> int:
        """Get the absolute start tile of a player."""
        return start_offset(player_index, state.player_count, self._adjacent_two_player)

    def tile_occupants(
        self,
        state: BoardState,
        absolute: int,
        exclude: Iterable[int] = (),
    ) -> dict[int, list[int]]:
        """Get tokens standing on a main-loop tile, grouped by player.

        Args:
            state: Board to inspect
            absolute: Absolute tile (0-51)
            exclude: Token slots to ignore (e.g. the token being moved)

        Returns:
            Dict of player index -> token slots on that tile
        """
        skipped = set(exclude)
        occupants: dict[int, list[int]] = {}
        for token in state.active_tokens:
            if token in skipped:
                continue
            if self.token_tile(state, token) == absolute:
                occupants.setdefault(owner_of(token), []).append(token)
        return occupants

    def is_blockade(self, state: BoardState, absolute: int, moving_player: int) -> bool:
        """Check whether a tile is blockaded against a player.

        Args:
            state: Board to inspect
            absolute: Absolute tile (0-51)
            moving_player: Player whose token wants to pass or land

        Returns:
            True if another colour has 2+ tokens on the tile
        """
        if is_safe_tile(absolute) and not self._enforce_safe_blockades:
            return False
        for player, tokens in self.tile_occupants(state, absolute).items():
            if player != moving_player and len(tokens) >= 2:
                return True
        return False

    def is_path_blocked(
        self,
        state: BoardState,
        player_index: int,
        from_relative: int,
        to_relative: int,
    ) -> bool:
        """Check every main-loop tile from the next step to the destination.

        Home-stretch tiles are private and never checked.
        """
        for relative in range(from_relative + 1, to_relative + 1):
            if relative > POS_MAIN_END:
                break
            tile = self.absolute_tile(state, player_index, relative)
            if tile is not None and self.is_blockade(state, tile, player_index):
                return True
        return False

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate_move(self, state: BoardState, token_index: int, dice: int) -> MoveOutcome:
        """Validate a move without changing the board.

        Checks, in order: ownership, finished token, base exit, overshoot
        and blockades along the path.

        Args:
            state: Current board
            token_index: Token slot (0-15)
            dice: Dice value (1-6)

        Returns:
            MoveOutcome.SUCCESS if legal, otherwise the violated rule
        """
        self._check_token_index(token_index)
        self._check_dice(dice)

        player = owner_of(token_index)
        if player != state.current_player:
            return MoveOutcome.NOT_YOUR_TOKEN

        position = state.token_positions[token_index]
        if position == POS_FINISHED:
            return MoveOutcome.TOKEN_FINISHED

        if position == POS_BASE:
            if dice != EXIT_ROLL:
                return MoveOutcome.NEED_SIX_TO_EXIT
            if self.is_blockade(state, self.start_tile(state, player), player):
                return MoveOutcome.BLOCKED_BY_BLOCKADE
            return MoveOutcome.SUCCESS

        target = position + dice
        if target > POS_FINISHED:
            return MoveOutcome.OVERSHOOT
        if self.is_path_blocked(state, player, position, target):
            return MoveOutcome.BLOCKED_BY_BLOCKADE
        return MoveOutcome.SUCCESS

    def compute_valid_moves(self, state: BoardState, dice: int) -> list[int]:
        """Get the current player's tokens that can legally move.

        Args:
            state: Current board
            dice: Dice value (1-6)

        Returns:
            Token slots in ascending order
        """
        return [
            token
            for token in player_tokens(state.current_player)
            if self.validate_move(state, token, dice).is_success
        ]

    def destination(self, state: BoardState, token_index: int, dice: int) -> int:
        """Get the relative position a legal move would reach."""
        position = state.token_positions[token_index]
        if position == POS_BASE:
            return POS_MAIN_START
        return position + dice

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def process_move(self, state: BoardState, token_index: int, dice: int) -> MoveResult:
        """Validate and apply a move.

        Args:
            state: Board to mutate
            token_index: Token slot (0-15)
            dice: Dice value (1-6)

        Returns:
            MoveResult. On failure the board is unchanged.
        """
        self._check_token_index(token_index)
        self._check_dice(dice)

        if not self.compute_valid_moves(state, dice):
            return MoveResult(
                success=False,
                outcome=MoveOutcome.NO_VALID_MOVES,
                token_index=token_index,
            )

        validation = self.validate_move(state, token_index, dice)
        if not validation.is_success:
            return MoveResult(success=False, outcome=validation, token_index=token_index)

        player = owner_of(token_index)
        from_position = state.token_positions[token_index]
        to_position = self.destination(state, token_index, dice)
        is_third_six = dice == EXIT_ROLL and state.consecutive_sixes == MAX_CONSECUTIVE_SIXES - 1

        state.token_positions[token_index] = to_position
        state.turn_count += 1

        result = MoveResult(
            success=True,
            outcome=MoveOutcome.SUCCESS,
            token_index=token_index,
            from_position=from_position,
            to_position=to_position,
        )

        if is_third_six:
            result.outcome = MoveOutcome.SUCCESS_THIRD_SIX_PENALTY
            logger.debug(f"Player {player} rolled a third six, turn forfeited")
            return result

        if to_position == POS_FINISHED:
            result.outcome = MoveOutcome.SUCCESS_ROLL_AGAIN
            return result

        result.evicted = self._resolve_capture(state, token_index)
        if result.evicted:
            result.outcome = MoveOutcome.SUCCESS_EVICTED_OPPONENT
        elif dice == EXIT_ROLL:
            result.outcome = MoveOutcome.SUCCESS_SIX
        return result

    def _resolve_capture(self, state: BoardState, token_index: int) -> list[int]:
        """Send a lone opposing colour on the landing tile back to BASE.

        Returns:
            Token slots that were evicted
        """
        tile = self.token_tile(state, token_index)
        if tile is None or is_safe_tile(tile):
            return []

        player = owner_of(token_index)
        opponents = {
            owner: tokens
            for owner, tokens in self.tile_occupants(state, tile, exclude=(token_index,)).items()
            if owner != player
        }
        # Two stacked opposing colours are never captured together
        if len(opponents) != 1:
            return []

        victim, tokens = next(iter(opponents.items()))
        for token in tokens:
            state.token_positions[token] = POS_BASE
        logger.debug(f"Player {player} evicted player {victim} tokens {tokens} at tile {tile}")
        return tokens

    def advance_turn(
        self,
        state: BoardState,
        outcome: MoveOutcome,
        active_players: Iterable[int] | None = None,
    ) -> bool:
        """Advance the turn after a move or a roll without moves.

        Args:
            state: Board to mutate
            outcome: Outcome of the last action
            active_players: Seats still in the game (all seats if None);
                the turn skips seats not listed

        Returns:
            True if the turn passed to another player
        """
        if outcome in (MoveOutcome.SUCCESS_THIRD_SIX_PENALTY, MoveOutcome.NO_VALID_MOVES):
            state.consecutive_sixes = 0
            self._pass_turn(state, active_players)
            return True

        if outcome.grants_extra_roll:
            if outcome == MoveOutcome.SUCCESS_SIX:
                state.consecutive_sixes += 1
            else:
                state.consecutive_sixes = 0
            return False

        state.consecutive_sixes = 0
        self._pass_turn(state, active_players)
        return True

    def _pass_turn(self, state: BoardState, active_players: Iterable[int] | None) -> None:
        seats = set(range(state.player_count)) if active_players is None else set(active_players)
        next_player = (state.current_player + 1) % state.player_count
        for _ in range(state.player_count):
            if next_player in seats:
                break
            next_player = (next_player + 1) % state.player_count
        state.current_player = next_player

    def has_player_won(self, state: BoardState, player_index: int) -> bool:
        """Check if all of a player's tokens are FINISHED."""
        if not 0 <= player_index < state.player_count:
            raise ValueError(f"Player index {player_index} out of range")
        return all(state.token_positions[t] == POS_FINISHED for t in player_tokens(player_index))

    # ------------------------------------------------------------------
    # Argument checks (programmer errors)
    # ------------------------------------------------------------------

    @staticmethod
    def _check_token_index(token_index: int) -> None:
        if not 0 <= token_index < TOTAL_TOKENS:
            raise ValueError(f"Token index {token_index} out of range (0-{TOTAL_TOKENS - 1})")

    @staticmethod
    def _check_dice(dice: int) -> None:
        if not DICE_MIN <= dice <= DICE_MAX:
            raise ValueError(f"Dice value {dice} out of range ({DICE_MIN}-{DICE_MAX})")
