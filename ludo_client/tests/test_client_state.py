"""Tests for client-side game state."""

from ludo_client.game.state import POS_BASE, POS_FINISHED, ClientGameState


def make_state(**kwargs) -> ClientGameState:
    payload = {"playerCount": 4, "tokenPositions": [POS_BASE] * 16}
    payload.update(kwargs)
    return ClientGameState.from_payload(payload)


class TestClientGameState:
    """Tests for ClientGameState."""

    def test_from_payload(self):
        """Test session fields and the nested board are parsed."""
        state = ClientGameState.from_payload(
            {
                "sessionId": "s1",
                "playerIndex": 1,
                "playerCount": 2,
                "currentPlayer": 1,
                "isGameOver": False,
                "winnerId": None,
                "players": [{"playerId": "a", "name": "Ann", "playerIndex": 0}],
                "gameState": {
                    "turnCount": 7,
                    "diceValue": 6,
                    "consecutiveSixes": 1,
                    "currentPlayer": 1,
                    "playerCount": 2,
                    "tokenPositions": [0, -1, -1, 57, 5, -1, -1, -1],
                    "validMoves": [4, 5],
                },
            }
        )
        assert state.session_id == "s1"
        assert state.player_count == 2
        assert state.pending_dice == 6
        assert state.turn_count == 7
        assert state.consecutive_sixes == 1
        assert state.players[0]["name"] == "Ann"
        assert state.token_positions[3] == POS_FINISHED
        assert state.valid_moves == [4, 5]
        assert state.my_index == 1
        assert state.is_my_turn

    def test_my_index_fallback(self):
        """Test the seat falls back to the given index."""
        state = ClientGameState.from_payload({"currentPlayer": 2}, my_index=2)
        assert state.my_index == 2
        assert state.is_my_turn

    def test_not_my_turn_after_game_over(self):
        """Test nobody has the turn once the game ends."""
        state = ClientGameState.from_payload({"isGameOver": True, "playerIndex": 0})
        assert not state.is_my_turn

    def test_apply_board(self):
        """Test a move's board replaces the board but keeps the seat."""
        state = make_state(playerIndex=2, sessionId="s1", diceValue=6, validMoves=[8])
        state.apply_board({"currentPlayer": 3, "turnCount": 4, "tokenPositions": [0] * 16})
        assert state.my_index == 2
        assert state.session_id == "s1"
        assert state.current_player == 3
        assert state.pending_dice == 0
        assert state.valid_moves == []
        assert state.token_positions == [0] * 16

    def test_tile_of(self):
        """Test relative positions map to absolute tiles."""
        state = make_state(tokenPositions=[5, -1, 55, 57, 40] + [POS_BASE] * 11)
        assert state.tile_of(0) == 5
        assert state.tile_of(1) is None
        assert state.tile_of(2) is None
        assert state.tile_of(3) is None
        assert state.tile_of(4) == 1  # (13 + 40) % 52
        assert state.tile_of(4, relative=0) == 13

    def test_tile_of_two_players(self):
        """Test two-player games use opposite corners."""
        state = make_state(playerCount=2, tokenPositions=[-1, -1, -1, -1, 0, -1, -1, -1])
        assert state.tile_of(4) == 26

    def test_opponents_on(self):
        """Test only other colours are reported."""
        state = make_state(tokenPositions=[13, 13] + [POS_BASE] * 2 + [0] + [POS_BASE] * 11)
        assert state.opponents_on(13, 1) == [0, 1]
        assert state.opponents_on(13, 0) == [4]
        assert state.opponents_on(20, 0) == []
