"""Hot-seat game for a single process (no network)."""

import logging
import random

from ludo_server.config import RulesConfig
from ludo_server.models.board import BoardState
from ludo_server.models.player import PlayerSlot

from .events import EventBus
from .rules import RulesEngine
from .session import GameSession, MoveReport, RollResult

logger = logging.getLogger(__name__)


class LocalGame:
    """Drives one board for players sharing a screen.

    Every action is taken on behalf of whoever's turn it is. The board is only
    ever handed out as a copy.
    """

    def __init__(
        self,
        rules: RulesConfig | None = None,
        rng: random.Random | None = None,
        event_bus: EventBus | None = None,
    ):
        self.engine = RulesEngine(rules)
        self.events = event_bus or EventBus()
        self._rng = rng
        self._session: GameSession | None = None
        self._games_created = 0

    def create_game(self, player_count: int) -> BoardState:
        """Start a new game, discarding any game in progress.

        Args:
            player_count: Number of seats (2-4)

        Returns:
            Copy of the initial board
        """
        self._games_created += 1
        players = [
            PlayerSlot(player_id=f"local-{index}", display_name=f"Player {index + 1}")
            for index in range(player_count)
        ]
        self._session = GameSession(
            f"local-{self._games_created}",
            players,
            engine=self.engine,
            rng=self._rng,
            event_bus=self.events,
        )
        return self.board

    @property
    def board(self) -> BoardState:
        return self._require_session().board.copy_state()

    @property
    def current_player(self) -> int:
        return self._require_session().board.current_player

    @property
    def pending_dice(self) -> int:
        return self._require_session().pending_dice

    @property
    def is_game_over(self) -> bool:
        return self._require_session().is_game_over

    @property
    def winner_index(self) -> int | None:
        session = self._require_session()
        if session.winner_id is None:
            return None
        return session.players[session.winner_id].player_index

    def process_dice_roll(self, value: int | None = None) -> RollResult:
        """Roll for the current player (random when value is None)."""
        session = self._require_session()
        return session.roll_dice(self._current_id(session), forced_value=value)

    def move_token(self, token_index: int) -> MoveReport:
        """Move one of the current player's tokens with the pending roll."""
        session = self._require_session()
        return session.move_token(self._current_id(session), token_index)

    def _current_id(self, session: GameSession) -> str:
        slot = session.player_at(session.board.current_player)
        if slot is None:
            raise RuntimeError("No player in the current seat")
        return slot.player_id

    def _require_session(self) -> GameSession:
        if self._session is None:
            raise RuntimeError("No game in progress; call create_game() first")
        return self._session
