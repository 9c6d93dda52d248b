"""TCP connection handling for the Ludo client."""

import logging
import socket

from ludo_client.network.protocol import (
    GET_STATE,
    JOIN_QUEUE,
    LEAVE_GAME,
    MOVE_TOKEN,
    RECONNECT,
    ROLL_DICE,
    Message,
    decode_message,
    encode_message,
)

logger = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8765


class GameConnection:
    """Manages the TCP connection to a Ludo server."""

    def __init__(self, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT):
        """Initialize connection parameters.

        Args:
            host: Server hostname or IP address
            port: Server port number
        """
        self.host = host
        self.port = port
        self._socket: socket.socket | None = None
        self._buffer = bytearray()
        self.player_id = ""

    def connect(self) -> None:
        """Establish TCP connection to server."""
        if self._socket is not None:
            raise RuntimeError("Already connected")

        self._socket = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._socket.connect((self.host, self.port))
        logger.info(f"Connected to {self.host}:{self.port}")

    def close(self) -> None:
        """Close the connection."""
        if self._socket is not None:
            self._socket.close()
            self._socket = None
            self._buffer.clear()
            logger.info("Connection closed")

    def send(self, msg_type: str, payload: dict | None = None) -> None:
        """Send a message to the server."""
        if self._socket is None:
            raise RuntimeError("Not connected")
        self._socket.sendall(encode_message(msg_type, payload))
        logger.debug(f"Sent {msg_type}: {payload}")

    def receive(self) -> Message:
        """Receive the next message from the server.

        Raises:
            ConnectionError: If the server closes the connection
        """
        message = decode_message(self._read_line())
        logger.debug(f"Received {message.type}")
        return message

    def _read_line(self) -> bytes:
        if self._socket is None:
            raise RuntimeError("Not connected")

        while True:
            newline = self._buffer.find(b"\n")
            if newline >= 0:
                line = bytes(self._buffer[:newline])
                del self._buffer[: newline + 1]
                if line.strip():
                    return line
                continue
            chunk = self._socket.recv(4096)
            if not chunk:
                raise ConnectionError("Connection closed by server")
            self._buffer.extend(chunk)

    def __enter__(self) -> "GameConnection":
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.close()


# High-level request helpers

def join_queue(conn: GameConnection, name: str, room_type: str = "casual", player_count: int = 4) -> None:
    conn.send(JOIN_QUEUE, {"playerName": name, "roomType": room_type, "playerCount": player_count})


def roll_dice(conn: GameConnection, forced_value: int = 0) -> None:
    payload = {"forcedValue": forced_value} if forced_value else {}
    conn.send(ROLL_DICE, payload)


def move_token(conn: GameConnection, token_index: int) -> None:
    conn.send(MOVE_TOKEN, {"tokenIndex": token_index})


def request_state(conn: GameConnection) -> None:
    conn.send(GET_STATE)


def leave_game(conn: GameConnection) -> None:
    conn.send(LEAVE_GAME)


def reconnect(conn: GameConnection, player_id: str) -> None:
    conn.send(RECONNECT, {"playerId": player_id})
