"""Message router: turns decoded client messages into session actions."""

import logging
import uuid
from typing import Any, Callable

from ludo_server.config import RulesConfig
from ludo_server.errors import AlreadyInGameError, LudoError, NotInGameError
from ludo_server.game.session import GameSession
from ludo_server.matchmaking.queue import MatchmakingQueue
from ludo_server.matchmaking.registry import REASON_EMPTY, SessionRegistry

from .protocol import (
    GetStateMessage,
    JoinQueueMessage,
    LeaveGameMessage,
    LeaveQueueMessage,
    MoveTokenMessage,
    ReconnectMessage,
    RollDiceMessage,
    ServerMessageType,
    decode_client_message,
    error_message,
    make_message,
)

logger = logging.getLogger(__name__)

INTERNAL_ERROR_CODE = "INTERNAL_ERROR"


class MessageRouter:
    """Routes client messages to the appropriate handlers.

    A connection is any object with a mutable ``player_id`` attribute and a
    ``send_message(message: dict)`` method.
    """

    def __init__(
        self,
        queue: MatchmakingQueue,
        registry: SessionRegistry,
        rules: RulesConfig | None = None,
    ):
        self.queue = queue
        self.registry = registry
        self.rules = rules or RulesConfig()
        self.handlers: dict[type, Callable[[Any, Any], None]] = {
            JoinQueueMessage: self.handle_join_queue,
            LeaveQueueMessage: self.handle_leave_queue,
            RollDiceMessage: self.handle_roll_dice,
            MoveTokenMessage: self.handle_move_token,
            GetStateMessage: self.handle_get_state,
            LeaveGameMessage: self.handle_leave_game,
            ReconnectMessage: self.handle_reconnect,
        }

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    def on_connect(self, connection: Any) -> None:
        """Assign a player ID and greet the client."""
        if not getattr(connection, "player_id", None):
            connection.player_id = str(uuid.uuid4())
        connection.send_message(make_message(ServerMessageType.CONNECTED, {
            "playerId": connection.player_id,
            "message": "Connected to Ludo server",
        }))

    def on_disconnect(self, connection: Any) -> None:
        """Drop queue membership and mark the player's seat disconnected."""
        player_id = connection.player_id
        self.queue.leave_queue(player_id)

        session = self.registry.session_for(player_id)
        if session is None:
            return
        with session.lock:
            slot = session.get_player(player_id)
            # A newer connection may already have taken over the seat
            if slot is None or slot.connection is not connection:
                return
            session.disconnect_player(player_id)
            session.broadcast(
                make_message(ServerMessageType.PLAYER_DISCONNECTED, {"playerId": player_id}),
                exclude=player_id,
            )

    def handle(self, connection: Any, text: str | bytes) -> None:
        """Decode and dispatch one inbound frame.

        Errors are reported to the sender as ``error`` messages; the
        connection stays open.
        """
        try:
            message = decode_client_message(text)
            self.handlers[type(message)](connection, message)
        except LudoError as e:
            logger.info(f"Request from {connection.player_id} rejected: {e}")
            connection.send_message(error_message(e))
        except Exception as e:
            logger.exception(f"Unhandled error for {connection.player_id}: {e}")
            connection.send_message(make_message(ServerMessageType.ERROR, {
                "error": "Internal server error",
                "code": INTERNAL_ERROR_CODE,
            }))

    # ------------------------------------------------------------------
    # Matchmaking
    # ------------------------------------------------------------------

    def handle_join_queue(self, connection: Any, message: JoinQueueMessage) -> None:
        payload = message.payload
        result = self.queue.join_queue(
            connection.player_id,
            payload.player_name.strip() or "Player",
            connection,
            payload.room_type,
            payload.player_count,
        )
        connection.send_message(make_message(ServerMessageType.QUEUE_JOINED, {
            "playersInQueue": result.waiting,
            "neededPlayers": result.needed,
            "roomType": payload.room_type,
        }))

        if result.match is None:
            update = make_message(ServerMessageType.QUEUE_UPDATE, {
                "roomType": payload.room_type,
                "currentPlayers": result.waiting,
                "neededPlayers": result.needed,
            })
            for entry in self.queue.entries(payload.room_type, payload.player_count):
                if entry.player_id != connection.player_id:
                    _send_quietly(entry.connection, update)
            return

        session = self.registry.create_session(result.match)
        with session.lock:
            # A matched client may have dropped before its seat was registered
            for entry in result.match.entries:
                if not getattr(entry.connection, "is_open", True):
                    session.disconnect_player(entry.player_id)

            players = session.players_payload()
            board = session.board_payload()
            for slot in session.players.values():
                session.send_to_player(slot.player_id, make_message(ServerMessageType.MATCH_FOUND, {
                    "sessionId": session.session_id,
                    "roomType": result.match.room_type,
                    "playerCount": session.player_count,
                    "playerIndex": slot.player_index,
                    "players": players,
                    "gameState": board,
                }))

    def handle_leave_queue(self, connection: Any, message: LeaveQueueMessage) -> None:
        if self.queue.leave_queue(connection.player_id):
            connection.send_message(make_message(ServerMessageType.LEFT_QUEUE))

    # ------------------------------------------------------------------
    # Game actions
    # ------------------------------------------------------------------

    def handle_roll_dice(self, connection: Any, message: RollDiceMessage) -> None:
        player_id = connection.player_id
        session = self._require_session(player_id)
        forced = message.payload.forced_value or None
        if forced and not self.rules.allow_forced_dice:
            logger.debug(f"Ignoring forced dice value from {player_id}")
            forced = None

        with session.lock:
            result = session.roll_dice(player_id, forced_value=forced)
            session.broadcast(make_message(ServerMessageType.DICE_ROLLED, {
                "playerId": player_id,
                "playerIndex": result.player_index,
                "diceValue": result.dice_value,
                "validMoves": result.valid_moves,
                "noValidMoves": result.no_valid_moves,
                "turnSwitched": result.turn_switched,
                "nextPlayer": result.next_player,
            }))

    def handle_move_token(self, connection: Any, message: MoveTokenMessage) -> None:
        player_id = connection.player_id
        session = self._require_session(player_id)

        with session.lock:
            report = session.move_token(player_id, message.payload.token_index)
            if not report.success:
                session.send_to_player(player_id, make_message(ServerMessageType.MOVE_FAILED, {
                    "tokenIndex": report.token_index,
                    "diceValue": report.dice_value,
                    "moveResult": report.outcome.value,
                    "message": report.outcome.message,
                    "validMoves": report.valid_moves,
                }))
                return

            session.broadcast(make_message(ServerMessageType.TOKEN_MOVED, {
                "playerId": player_id,
                "playerIndex": report.player_index,
                "tokenIndex": report.token_index,
                "diceValue": report.dice_value,
                "moveResult": report.outcome.value,
                "message": report.outcome.message,
                "newPosition": report.new_position,
                "evicted": report.evicted,
                "hasWon": report.has_won,
                "turnSwitched": report.turn_switched,
                "nextPlayer": report.next_player,
                "gameState": session.board_payload(),
            }))

            if report.has_won:
                winner = session.get_player(player_id)
                session.broadcast(make_message(ServerMessageType.GAME_OVER, {
                    "winnerId": player_id,
                    "winnerIndex": report.player_index,
                    "winnerName": winner.display_name if winner else "",
                }))

    def handle_get_state(self, connection: Any, message: GetStateMessage) -> None:
        session = self._require_session(connection.player_id)
        connection.send_message(make_message(
            ServerMessageType.GAME_STATE,
            session.snapshot(for_player=connection.player_id),
        ))

    def handle_leave_game(self, connection: Any, message: LeaveGameMessage) -> None:
        player_id = connection.player_id
        session = self._require_session(player_id)

        with session.lock:
            slot = session.get_player(player_id)
            session.remove_player(player_id)
            self.registry.release_player(player_id)
            session.broadcast(make_message(ServerMessageType.PLAYER_LEFT, {
                "playerId": player_id,
                "playerName": slot.display_name if slot else "",
            }))
            for remaining in session.players:
                session.send_to_player(
                    remaining,
                    make_message(ServerMessageType.GAME_STATE, session.snapshot(for_player=remaining)),
                )

        connection.send_message(make_message(ServerMessageType.LEFT_GAME, {"sessionId": session.session_id}))
        if session.is_empty():
            self.registry.remove_session(session.session_id, REASON_EMPTY)

    def handle_reconnect(self, connection: Any, message: ReconnectMessage) -> None:
        """Re-attach this connection to an existing seat under its old player ID."""
        target_id = message.payload.player_id
        session = self.registry.session_for(target_id)
        if session is None:
            raise NotInGameError("Game session not found", context={"player_id": target_id})

        if connection.player_id != target_id:
            # Taking over another seat would leave this connection's own seat behind
            if self.registry.is_seated(connection.player_id):
                raise AlreadyInGameError(
                    "Leave your current game before reconnecting to another seat",
                    context={"player_id": connection.player_id},
                )
            # The identity handed out on connect is abandoned
            self.queue.leave_queue(connection.player_id)
        connection.player_id = target_id

        with session.lock:
            state = session.reconnect_player(target_id, connection)
            connection.send_message(make_message(ServerMessageType.RECONNECTED, {
                **state,
                "playerId": target_id,
            }))
            session.broadcast(
                make_message(ServerMessageType.PLAYER_RECONNECTED, {"playerId": target_id}),
                exclude=target_id,
            )

    def _require_session(self, player_id: str) -> GameSession:
        session = self.registry.session_for(player_id)
        if session is None:
            raise NotInGameError("Not in a game")
        return session


def _send_quietly(connection: Any, message: dict[str, Any]) -> None:
    try:
        connection.send_message(message)
    except Exception as e:
        logger.warning(f"Failed to notify {getattr(connection, 'player_id', '?')}: {e}")
