"""Tests for board model and coordinates."""

import base64

import pytest
from pydantic import ValidationError

from ludo_server.models.board import (
    POS_BASE,
    POS_FINISHED,
    STATE_BYTES,
    BoardState,
    is_safe_tile,
    owner_of,
    player_tokens,
    start_offset,
    to_absolute,
    to_relative,
)


class TestCoordinates:
    """Tests for relative/absolute conversion."""

    def test_four_player_offsets(self):
        """Test start tiles for four players."""
        assert [start_offset(p, 4) for p in range(4)] == [0, 13, 26, 39]

    def test_three_player_offsets(self):
        """Test three players keep the four-player corners."""
        assert [start_offset(p, 3) for p in range(3)] == [0, 13, 26]

    def test_two_player_opposite(self):
        """Test default two-player layout uses opposite corners."""
        assert start_offset(1, 2) == 26

    def test_two_player_adjacent(self):
        """Test adjacent two-player layout."""
        assert start_offset(1, 2, adjacent_two_player=True) == 13

    def test_seat_out_of_range(self):
        """Test invalid seat raises."""
        with pytest.raises(ValueError):
            start_offset(2, 2)

    def test_to_absolute_wraps(self):
        """Test absolute tile wraps around the loop."""
        assert to_absolute(20, 3, 4) == 7  # (39 + 20) % 52
        assert to_absolute(0, 1, 4) == 13

    def test_to_absolute_off_loop(self):
        """Test BASE, home stretch and FINISHED have no tile."""
        assert to_absolute(POS_BASE, 0, 4) is None
        assert to_absolute(51, 0, 4) is None
        assert to_absolute(POS_FINISHED, 0, 4) is None

    def test_relative_inverse(self):
        """Test to_relative inverts to_absolute on the main loop."""
        for player in range(4):
            for rel in range(0, 51):
                assert to_relative(to_absolute(rel, player, 4), player, 4) == rel

    def test_to_relative_range(self):
        """Test to_relative rejects tiles off the loop."""
        with pytest.raises(ValueError):
            to_relative(52, 0, 4)

    def test_token_ownership(self):
        """Test token slots map to owners."""
        assert owner_of(0) == 0
        assert owner_of(7) == 1
        assert owner_of(15) == 3
        assert list(player_tokens(2)) == [8, 9, 10, 11]

    def test_safe_tiles(self):
        """Test only start tiles are safe."""
        assert all(is_safe_tile(t) for t in (0, 13, 26, 39))
        assert not is_safe_tile(12)


class TestBoardState:
    """Tests for BoardState model."""

    def test_create(self):
        """Test new board has all tokens at BASE."""
        board = BoardState.create(3)
        assert board.player_count == 3
        assert board.current_player == 0
        assert board.token_positions == [POS_BASE] * 16
        assert list(board.active_tokens) == list(range(12))

    def test_invalid_player_count(self):
        """Test player count outside 2-4 is rejected."""
        with pytest.raises(ValidationError):
            BoardState.create(5)

    def test_invalid_position(self):
        """Test out-of-range positions are rejected."""
        positions = [POS_BASE] * 16
        positions[3] = 58
        with pytest.raises(ValidationError):
            BoardState(token_positions=positions)

    def test_invalid_current_player(self):
        """Test current player must be seated."""
        with pytest.raises(ValidationError):
            BoardState(player_count=2, current_player=3)

    def test_copy_is_independent(self):
        """Test copies do not share token lists."""
        board = BoardState.create(4)
        copy = board.copy_state()
        copy.token_positions[0] = 10
        assert board.token_positions[0] == POS_BASE

    def test_encode_layout(self):
        """Test encoded board is 20 bytes of base64."""
        board = BoardState.create(4)
        board.current_player = 2
        board.consecutive_sixes = 1
        board.token_positions[0] = 57
        raw = base64.b64decode(board.encode())
        assert len(raw) == STATE_BYTES
        assert raw[:4] == bytes([4, 2, 1, 0])
        assert raw[4] == 57
        assert raw[5] == 0xFF  # -1 as signed byte

    def test_decode(self):
        """Test decoding restores the board (turn count is not persisted)."""
        board = BoardState.create(2)
        board.current_player = 1
        board.token_positions[4] = 30
        board.turn_count = 9
        decoded = BoardState.decode(board.encode())
        assert decoded.player_count == 2
        assert decoded.current_player == 1
        assert decoded.token_positions == board.token_positions
        assert decoded.turn_count == 0

    def test_decode_invalid(self):
        """Test malformed data raises ValueError."""
        with pytest.raises(ValueError):
            BoardState.decode("not base64!")
        with pytest.raises(ValueError):
            BoardState.decode(base64.b64encode(b"short").decode())

    def test_str(self):
        """Test string rendering."""
        board = BoardState.create(2)
        board.token_positions[0] = 12
        board.token_positions[1] = 53
        board.token_positions[2] = 57
        text = str(board)
        assert "Player 0: [Pos 12, Home 3, Finished, Base]" in text
