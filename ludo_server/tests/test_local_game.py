"""Tests for the hot-seat game facade and event bus."""

import random

import pytest

from ludo_server.game.events import DiceRolled, EventBus, GameEvent, TokenMoved
from ludo_server.game.local import LocalGame
from ludo_server.models.board import POS_BASE
from ludo_server.models.outcome import MoveOutcome


class TestLocalGame:
    """Tests for LocalGame."""

    def test_requires_game(self):
        """Test actions before create_game raise."""
        with pytest.raises(RuntimeError):
            LocalGame().process_dice_roll(6)

    def test_create_game(self):
        """Test a new game starts with player 0 and all tokens at BASE."""
        game = LocalGame()
        board = game.create_game(3)
        assert board.player_count == 3
        assert game.current_player == 0
        assert board.token_positions == [POS_BASE] * 16

    def test_board_is_a_copy(self):
        """Test callers cannot mutate the live board."""
        game = LocalGame()
        game.create_game(2)
        game.board.token_positions[0] = 30
        assert game.board.token_positions[0] == POS_BASE

    def test_roll_and_move(self):
        """Test a six exits a token and the same player rolls again."""
        game = LocalGame()
        game.create_game(2)
        roll = game.process_dice_roll(6)
        assert roll.valid_moves == [0, 1, 2, 3]
        report = game.move_token(0)
        assert report.outcome == MoveOutcome.SUCCESS_SIX
        assert game.current_player == 0

    def test_turns_rotate(self):
        """Test a roll without moves hands the turn on."""
        game = LocalGame()
        game.create_game(2)
        game.process_dice_roll(1)
        assert game.current_player == 1
        game.process_dice_roll(1)
        assert game.current_player == 0

    def test_new_game_discards_old(self):
        """Test create_game resets the board."""
        game = LocalGame()
        game.create_game(4)
        game.process_dice_roll(6)
        game.move_token(0)
        board = game.create_game(4)
        assert board.token_positions[0] == POS_BASE
        assert game.pending_dice == 0

    def test_random_game_finishes(self):
        """Test a full random game reaches a winner."""
        game = LocalGame(rng=random.Random(1))
        game.create_game(2)
        for _ in range(5000):
            if game.is_game_over:
                break
            roll = game.process_dice_roll()
            if roll.valid_moves:
                game.move_token(roll.valid_moves[-1])
        assert game.is_game_over
        assert game.winner_index in (0, 1)

    def test_events(self):
        """Test listeners receive events from the facade."""
        bus = EventBus()
        rolls: list[DiceRolled] = []
        bus.subscribe(DiceRolled, rolls.append)
        game = LocalGame(event_bus=bus)
        game.create_game(2)
        game.process_dice_roll(4)
        assert rolls[0].dice_value == 4
        assert rolls[0].valid_moves == []

    def test_empty_seat_raises(self, monkeypatch):
        """Test acting for a seat with no player raises instead of guessing."""
        game = LocalGame()
        game.create_game(2)
        monkeypatch.setattr(game._session, "player_at", lambda index: None)
        with pytest.raises(RuntimeError):
            game.process_dice_roll(6)


class TestEventBus:
    """Tests for EventBus."""

    def test_subclass_delivery(self):
        """Test base-class subscribers see every event."""
        bus = EventBus()
        seen: list[GameEvent] = []
        bus.subscribe(GameEvent, seen.append)
        game = LocalGame(event_bus=bus)
        game.create_game(2)
        assert len(seen) == 2  # GameCreated, TurnStart

    def test_unsubscribe(self):
        """Test removed handlers stop receiving events."""
        bus = EventBus()
        seen: list[GameEvent] = []
        bus.subscribe(GameEvent, seen.append)
        bus.unsubscribe(GameEvent, seen.append)
        bus.unsubscribe(TokenMoved, seen.append)  # Never registered
        LocalGame(event_bus=bus).create_game(2)
        assert seen == []

    def test_failing_handler_isolated(self):
        """Test a raising handler does not stop other handlers."""
        bus = EventBus()
        seen: list[GameEvent] = []

        def broken(event: GameEvent) -> None:
            raise RuntimeError("boom")

        bus.subscribe(GameEvent, broken)
        bus.subscribe(GameEvent, seen.append)
        LocalGame(event_bus=bus).create_game(2)
        assert len(seen) == 2
