"""Main entry point for the Ludo bot client."""

import argparse
import logging
import sys

from ludo_client.game.state import ClientGameState
from ludo_client.network import protocol
from ludo_client.network.connection import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    GameConnection,
    join_queue,
    leave_game,
    move_token,
    reconnect,
    request_state,
    roll_dice,
)
from ludo_client.strategy.base import Strategy
from ludo_client.strategy.simple import SimpleStrategy

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Ludo bot client"
    )
    parser.add_argument(
        "-H", "--host",
        default=DEFAULT_HOST,
        help=f"Server hostname or IP address (default: {DEFAULT_HOST})"
    )
    parser.add_argument(
        "-p", "--port",
        type=int,
        default=DEFAULT_PORT,
        help=f"Server port number (default: {DEFAULT_PORT})"
    )
    parser.add_argument(
        "-n", "--name",
        default="PythonBot",
        help="Player name (default: PythonBot)"
    )
    parser.add_argument(
        "-r", "--room-type",
        default="casual",
        help="Room type to queue for (default: casual)"
    )
    parser.add_argument(
        "--players",
        type=int,
        default=4,
        choices=(2, 3, 4),
        help="Number of players per game (default: 4)"
    )
    parser.add_argument(
        "--reconnect",
        metavar="PLAYER_ID",
        help="Take back the seat of an earlier connection instead of queueing"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging"
    )
    return parser.parse_args(argv)


def setup_logging(verbose: bool) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


# Errors after which our view of the board is stale
RESYNC_CODES = frozenset({"NOT_YOUR_TURN", "ROLL_PENDING", "NO_PENDING_ROLL"})


def take_turn(conn: GameConnection, strategy: Strategy, state: ClientGameState) -> None:
    """Roll or move if a freshly loaded state says it is our turn."""
    if not state.is_my_turn:
        return
    if not state.pending_dice:
        roll_dice(conn)
    elif state.valid_moves:
        move_token(conn, strategy.select_token(state, state.pending_dice, state.valid_moves))


def run_game_loop(
    conn: GameConnection,
    strategy: Strategy,
    name: str,
    room_type: str = "casual",
    player_count: int = 4,
    reconnect_id: str | None = None,
) -> str | None:
    """Queue for a game (or resume a seat) and play it to the end.

    Args:
        conn: Open server connection
        strategy: Token selection strategy
        name: Display name sent with join_queue
        room_type: Room type to queue for
        player_count: Wanted number of players
        reconnect_id: Player ID of a seat to take back instead of queueing

    Returns:
        Winner's player ID, or None if the game ended without one
    """
    state = ClientGameState()
    if reconnect_id:
        reconnect(conn, reconnect_id)
    else:
        join_queue(conn, name, room_type, player_count)

    while True:
        message = conn.receive()
        payload = message.payload

        if message.type == protocol.CONNECTED:
            conn.player_id = payload["playerId"]
            logger.info(f"Assigned player ID {conn.player_id}")

        elif message.type == protocol.QUEUE_JOINED:
            logger.info(f"Waiting in queue ({payload['playersInQueue']}/{payload['neededPlayers']})")

        elif message.type == protocol.MATCH_FOUND:
            state = ClientGameState.from_payload(payload)
            logger.info(f"Match {payload['sessionId']} found, playing as seat {state.my_index}")
            take_turn(conn, strategy, state)

        elif message.type == protocol.RECONNECTED:
            conn.player_id = payload["playerId"]
            state = ClientGameState.from_payload(payload)
            logger.info(f"Resumed seat {state.my_index} in {state.session_id}")
            take_turn(conn, strategy, state)

        elif message.type == protocol.DICE_ROLLED:
            logger.debug(f"Player {payload['playerIndex']} rolled {payload['diceValue']}")
            if payload["playerId"] == conn.player_id and not payload["noValidMoves"]:
                token = strategy.select_token(state, payload["diceValue"], payload["validMoves"])
                move_token(conn, token)
            elif payload["turnSwitched"] and payload["nextPlayer"] == state.my_index:
                roll_dice(conn)

        elif message.type == protocol.TOKEN_MOVED:
            state.apply_board(payload["gameState"])
            if not payload["hasWon"] and payload["nextPlayer"] == state.my_index:
                roll_dice(conn)

        elif message.type == protocol.MOVE_FAILED:
            logger.warning(f"Move rejected: {payload['message']}")
            if payload["validMoves"]:
                move_token(conn, payload["validMoves"][0])

        elif message.type == protocol.GAME_STATE:
            state = ClientGameState.from_payload(payload, state.my_index)
            take_turn(conn, strategy, state)

        elif message.type == protocol.PLAYER_LEFT:
            logger.info(f"{payload['playerName'] or payload['playerId']} left the game")

        elif message.type == protocol.GAME_OVER:
            logger.info(f"Game over, winner: {payload['winnerName']} (seat {payload['winnerIndex']})")
            return payload["winnerId"]

        elif message.type == protocol.LEFT_GAME:
            logger.info(f"Left session {payload['sessionId']}")
            return None

        elif message.type == protocol.ERROR:
            code = payload.get("code")
            logger.warning(f"Server error [{code}]: {payload.get('error')}")
            if code in RESYNC_CODES:
                request_state(conn)

        else:
            logger.debug(f"Ignoring {message.type}")


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    setup_logging(args.verbose)

    logger.info(f"Connecting to {args.host}:{args.port} as '{args.name}'")

    strategy = SimpleStrategy()

    try:
        with GameConnection(args.host, args.port) as conn:
            try:
                winner = run_game_loop(
                    conn, strategy, args.name, args.room_type, args.players, reconnect_id=args.reconnect
                )
            except KeyboardInterrupt:
                logger.info("Interrupted by user, leaving the game")
                leave_game(conn)
                return 0
            if winner == conn.player_id:
                logger.info("We won!")

    except ConnectionRefusedError:
        logger.error(f"Could not connect to server at {args.host}:{args.port}")
        return 1
    except ConnectionError as e:
        logger.error(f"Connection error: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 0

    logger.info("Client finished")
    return 0


if __name__ == "__main__":
    sys.exit(main())
