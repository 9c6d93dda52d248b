"""Game session: one board, its seated players and their connections."""

from __future__ import annotations

import logging
import random
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable

from ludo_server.errors import (
    GameOverError,
    NoPendingRollError,
    NotInGameError,
    NotYourTurnError,
    RollPendingError,
)
from ludo_server.models.board import BoardState
from ludo_server.models.outcome import MoveOutcome
from ludo_server.models.player import PlayerSlot

from .events import (
    DiceRolled,
    EventBus,
    GameCreated,
    GameEvent,
    GameStateChanged,
    MoveFailed,
    PlayerWon,
    TokenMoved,
    TurnEnd,
    TurnStart,
)
from .rules import DICE_MAX, DICE_MIN, RulesEngine

logger = logging.getLogger(__name__)


@dataclass
class RollResult:
    """Result of a dice roll."""

    player_index: int
    dice_value: int
    valid_moves: list[int] = field(default_factory=list)
    no_valid_moves: bool = False
    turn_switched: bool = False
    next_player: int = 0


@dataclass
class MoveReport:
    """Result of a move request."""

    success: bool
    outcome: MoveOutcome
    player_index: int
    token_index: int
    dice_value: int = 0
    new_position: int = -1
    evicted: list[int] = field(default_factory=list)
    has_won: bool = False
    turn_switched: bool = False
    next_player: int | None = None
    valid_moves: list[int] = field(default_factory=list)  # Still available after a failure


class GameSession:
    """Mediates every player action on one board through the rules engine.

    All public methods that read or mutate the board hold the session lock,
    so actions within a session never interleave. Connections only need a
    ``send_message(message: dict)`` method.
    """

    def __init__(
        self,
        session_id: str,
        players: list[PlayerSlot],
        engine: RulesEngine | None = None,
        rng: random.Random | None = None,
        event_bus: EventBus | None = None,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize session.

        Args:
            session_id: Unique session identifier
            players: Seated players in seat order (indices are reassigned 0..N-1)
            engine: RulesEngine instance (creates one if not provided)
            rng: Random source for dice rolls
            event_bus: Receives collaborator events
            clock: Wall-clock function (seconds)
        """
        self.session_id = session_id
        self.engine = engine or RulesEngine()
        self.board = BoardState.create(len(players))
        self.players: dict[str, PlayerSlot] = {}
        for index, slot in enumerate(players):
            slot.player_index = index
            self.players[slot.player_id] = slot

        self.winner_id: str | None = None
        self.is_game_over = False
        self.pending_dice = 0  # 0 = no roll awaiting a move
        self.pending_moves: list[int] = []

        self._rng = rng or random.Random()
        self._events = event_bus
        self._clock = clock
        self._lock = threading.RLock()

        self.created_at = clock()
        self.last_activity = self.created_at
        self.finished_at: float | None = None

        logger.info(f"Session {session_id} created with {len(players)} players")
        self._publish(GameCreated(self.session_id, self.board.copy_state(), len(players)))
        self._publish(TurnStart(self.session_id, self.board.copy_state(), self.board.current_player))

    @property
    def lock(self) -> threading.RLock:
        """Session lock, for callers that need to pair an action with its broadcast."""
        return self._lock

    @property
    def player_count(self) -> int:
        return self.board.player_count

    def get_player(self, player_id: str) -> PlayerSlot | None:
        """Get a seated player by ID."""
        return self.players.get(player_id)

    def player_at(self, player_index: int) -> PlayerSlot | None:
        """Get the player seated at an index."""
        for slot in self.players.values():
            if slot.player_index == player_index:
                return slot
        return None

    # ------------------------------------------------------------------
    # Player actions
    # ------------------------------------------------------------------

    def roll_dice(self, player_id: str, forced_value: int | None = None) -> RollResult:
        """Roll the dice for the current player.

        Args:
            player_id: Player requesting the roll
            forced_value: Dice value to use instead of a random roll (1-6)

        Returns:
            RollResult

        Raises:
            NotInGameError, GameOverError, NotYourTurnError, RollPendingError
        """
        with self._lock:
            slot = self._require_turn(player_id)
            if self.pending_dice:
                raise RollPendingError(
                    "You already rolled; move a token first",
                    context={"dice": self.pending_dice},
                )

            if forced_value:
                if not DICE_MIN <= forced_value <= DICE_MAX:
                    raise ValueError(f"Forced dice value {forced_value} out of range")
                dice = forced_value
            else:
                dice = self._rng.randint(DICE_MIN, DICE_MAX)

            self._touch()
            valid_moves = self.engine.compute_valid_moves(self.board, dice)
            self._publish(DiceRolled(
                self.session_id, self.board.copy_state(), slot.player_index, dice, list(valid_moves),
            ))
            logger.debug(f"Session {self.session_id}: player {slot.player_index} rolled {dice}, moves {valid_moves}")

            turn_switched = False
            if valid_moves:
                self.pending_dice = dice
                self.pending_moves = valid_moves
            else:
                turn_switched = self.engine.advance_turn(
                    self.board, MoveOutcome.NO_VALID_MOVES, self._active_seats()
                )
                self._clear_pending()
                self._publish_turn_change(slot.player_index)

            return RollResult(
                player_index=slot.player_index,
                dice_value=dice,
                valid_moves=list(valid_moves),
                no_valid_moves=not valid_moves,
                turn_switched=turn_switched,
                next_player=self.board.current_player,
            )

    def move_token(self, player_id: str, token_index: int) -> MoveReport:
        """Move a token with the pending dice value.

        Rule violations come back as a failed report and keep the pending
        roll so the player can pick another token.

        Raises:
            NotInGameError, GameOverError, NotYourTurnError, NoPendingRollError
        """
        with self._lock:
            slot = self._require_turn(player_id)
            if not self.pending_dice:
                raise NoPendingRollError("You must roll the dice first")

            dice = self.pending_dice
            result = self.engine.process_move(self.board, token_index, dice)
            self._touch()

            if not result.success:
                self._publish(MoveFailed(
                    self.session_id, self.board.copy_state(), slot.player_index, token_index, result.outcome,
                ))
                return MoveReport(
                    success=False,
                    outcome=result.outcome,
                    player_index=slot.player_index,
                    token_index=token_index,
                    dice_value=dice,
                    new_position=self.board.token_positions[token_index],
                    next_player=self.board.current_player,
                    valid_moves=list(self.pending_moves),
                )

            self._clear_pending()
            self._publish(TokenMoved(
                self.session_id,
                self.board.copy_state(),
                slot.player_index,
                token_index,
                result.outcome,
                result.from_position,
                result.to_position,
                list(result.evicted),
            ))

            report = MoveReport(
                success=True,
                outcome=result.outcome,
                player_index=slot.player_index,
                token_index=token_index,
                dice_value=dice,
                new_position=result.to_position,
                evicted=list(result.evicted),
            )

            # A win freezes the session before any turn advancement
            if self.engine.has_player_won(self.board, slot.player_index):
                self.is_game_over = True
                self.winner_id = player_id
                self.finished_at = self._clock()
                report.has_won = True
                logger.info(f"Session {self.session_id}: {slot} won")
                self._publish(PlayerWon(self.session_id, self.board.copy_state(), slot.player_index, player_id))
                self._publish(GameStateChanged(self.session_id, self.board.copy_state()))
                return report

            report.turn_switched = self.engine.advance_turn(self.board, result.outcome, self._active_seats())
            report.next_player = self.board.current_player
            if report.turn_switched:
                self._publish_turn_change(slot.player_index)
            else:
                self._publish(GameStateChanged(self.session_id, self.board.copy_state()))
            return report

    # ------------------------------------------------------------------
    # Connection bookkeeping
    # ------------------------------------------------------------------

    def disconnect_player(self, player_id: str) -> bool:
        """Mark a player as disconnected. Returns False if not seated."""
        with self._lock:
            slot = self.players.get(player_id)
            if slot is None:
                return False
            slot.connected = False
            slot.connection = None
            logger.info(f"Session {self.session_id}: {slot.display_name} disconnected")
            return True

    def reconnect_player(self, player_id: str, connection: Any) -> dict[str, Any]:
        """Attach a new connection to a seated player.

        Returns:
            Current game snapshot for the player

        Raises:
            NotInGameError: If the player is not seated here
        """
        with self._lock:
            slot = self.players.get(player_id)
            if slot is None:
                raise NotInGameError("Player not found in this game", context={"player_id": player_id})
            slot.connected = True
            slot.connection = connection
            self._touch()
            logger.info(f"Session {self.session_id}: {slot.display_name} reconnected")
            return self.snapshot(for_player=player_id)

    def remove_player(self, player_id: str) -> bool:
        """Remove a player from the game.

        If it was the leaver's turn, the turn passes to the next remaining seat.

        Returns:
            True if the player was seated
        """
        with self._lock:
            slot = self.players.pop(player_id, None)
            if slot is None:
                return False
            logger.info(f"Session {self.session_id}: {slot.display_name} left")
            self._touch()

            if not self.is_game_over and self.players and slot.player_index == self.board.current_player:
                self._clear_pending()
                # Forfeit the departed player's turn
                self.engine.advance_turn(self.board, MoveOutcome.NO_VALID_MOVES, self._active_seats())
                self._publish_turn_change(slot.player_index)
            return True

    def all_players_disconnected(self) -> bool:
        """Check whether no seated player is connected."""
        with self._lock:
            return not any(slot.connected for slot in self.players.values())

    def is_empty(self) -> bool:
        with self._lock:
            return not self.players

    def is_idle(self, now: float, timeout: float) -> bool:
        """Check whether the session has been inactive longer than timeout."""
        return now - self.last_activity > timeout

    # ------------------------------------------------------------------
    # Messaging
    # ------------------------------------------------------------------

    def broadcast(self, message: dict[str, Any], exclude: str | None = None) -> None:
        """Send a message to every connected player.

        A failed send is logged and does not affect other recipients.
        """
        with self._lock:
            recipients = [
                slot for pid, slot in self.players.items()
                if pid != exclude and slot.connected and slot.connection is not None
            ]
        for slot in recipients:
            self._deliver(slot, message)

    def send_to_player(self, player_id: str, message: dict[str, Any]) -> None:
        """Send a message to one connected player."""
        with self._lock:
            slot = self.players.get(player_id)
        if slot is not None and slot.connected and slot.connection is not None:
            self._deliver(slot, message)

    def _deliver(self, slot: PlayerSlot, message: dict[str, Any]) -> None:
        try:
            slot.connection.send_message(message)
        except Exception as e:
            logger.warning(f"Session {self.session_id}: send to {slot.player_id} failed: {e}")

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def board_payload(self) -> dict[str, Any]:
        """Build the ``gameState`` board object carried by game messages."""
        with self._lock:
            return {
                "turnCount": self.board.turn_count,
                "diceValue": self.pending_dice,
                "consecutiveSixes": self.board.consecutive_sixes,
                "currentPlayer": self.board.current_player,
                "playerCount": self.board.player_count,
                "tokenPositions": list(self.board.token_positions),
                "validMoves": list(self.pending_moves),
                "encoded": self.board.encode(),
            }

    def players_payload(self) -> list[dict[str, Any]]:
        """Seated players in seat order."""
        with self._lock:
            return [
                slot.to_payload()
                for slot in sorted(self.players.values(), key=lambda s: s.player_index)
            ]

    def snapshot(self, for_player: str | None = None) -> dict[str, Any]:
        """Build the ``game_state`` payload.

        The board sits under ``gameState``; session fields sit beside it.

        Args:
            for_player: Adds that player's ``playerIndex`` when given
        """
        with self._lock:
            state: dict[str, Any] = {
                "sessionId": self.session_id,
                "playerCount": self.board.player_count,
                "currentPlayer": self.board.current_player,
                "isGameOver": self.is_game_over,
                "winnerId": self.winner_id,
                "players": self.players_payload(),
                "gameState": self.board_payload(),
            }
            if for_player is not None and for_player in self.players:
                state["playerIndex"] = self.players[for_player].player_index
            return state

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_turn(self, player_id: str) -> PlayerSlot:
        slot = self.players.get(player_id)
        if slot is None:
            raise NotInGameError("Player not in this game", context={"player_id": player_id})
        if self.is_game_over:
            raise GameOverError("Game is over")
        if slot.player_index != self.board.current_player:
            raise NotYourTurnError(
                "Not your turn",
                context={"current_player": self.board.current_player},
            )
        return slot

    def _active_seats(self) -> set[int]:
        return {slot.player_index for slot in self.players.values()}

    def _clear_pending(self) -> None:
        self.pending_dice = 0
        self.pending_moves = []

    def _touch(self) -> None:
        self.last_activity = self._clock()

    def _publish_turn_change(self, previous_player: int) -> None:
        self._publish(TurnEnd(self.session_id, self.board.copy_state(), previous_player))
        self._publish(TurnStart(self.session_id, self.board.copy_state(), self.board.current_player))
        self._publish(GameStateChanged(self.session_id, self.board.copy_state()))

    def _publish(self, event: GameEvent) -> None:
        if self._events is not None:
            self._events.publish(event)

    def __repr__(self) -> str:
        return (
            f"GameSession(id={self.session_id!r}, players={len(self.players)}, "
            f"current={self.board.current_player}, over={self.is_game_over})"
        )
