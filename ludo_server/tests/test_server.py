"""End-to-end tests over a real TCP socket."""

import json
import socket
import threading

import pytest

from ludo_server.config import Config, ServerConfig
from ludo_server.network.server import ClientConnection, GameServer


class LineClient:
    """Minimal newline-JSON test client."""

    def __init__(self, port: int):
        self.sock = socket.create_connection(("127.0.0.1", port), timeout=5)
        self.buffer = b""

    def send(self, msg_type: str, **payload) -> None:
        self.sock.sendall((json.dumps({"type": msg_type, "payload": payload}) + "\n").encode())

    def send_raw(self, data: bytes) -> None:
        self.sock.sendall(data)

    def receive(self) -> dict:
        while b"\n" not in self.buffer:
            chunk = self.sock.recv(4096)
            if not chunk:
                raise ConnectionError("closed")
            self.buffer += chunk
        line, self.buffer = self.buffer.split(b"\n", 1)
        return json.loads(line)

    def receive_until(self, msg_type: str) -> dict:
        for _ in range(50):
            message = self.receive()
            if message["type"] == msg_type:
                return message["payload"]
        raise AssertionError(f"No {msg_type} received")

    def close(self) -> None:
        self.sock.close()


def read_lines(sock: socket.socket, count: int) -> list[dict]:
    buffer = b""
    while buffer.count(b"\n") < count:
        chunk = sock.recv(4096)
        if not chunk:
            break
        buffer += chunk
    return [json.loads(line) for line in buffer.splitlines()]


@pytest.fixture
def socket_pair():
    server_side, client_side = socket.socketpair()
    client_side.settimeout(5)
    yield server_side, client_side
    client_side.close()


class TestClientConnection:
    """Tests for the queued connection writer."""

    def test_messages_arrive_in_order(self, socket_pair):
        """Test queued messages are written in send order."""
        server_side, client_side = socket_pair
        connection = ClientConnection(server_side, ("local", 0))
        try:
            for index in range(3):
                assert connection.send_message({"type": "tick", "payload": {"n": index}})
            assert [m["payload"]["n"] for m in read_lines(client_side, 3)] == [0, 1, 2]
        finally:
            connection.close()

    def test_stalled_peer_is_dropped(self, socket_pair):
        """Test sends never block on a peer that stops reading."""
        server_side, _ = socket_pair
        connection = ClientConnection(server_side, ("local", 0), outbox_size=1)
        big = {"type": "blob", "payload": {"data": "x" * 1_000_000}}
        try:
            results = [connection.send_message(big) for _ in range(3)]
            assert results[0] is True
            assert False in results
            assert not connection.is_open
            assert connection.send_message(big) is False
        finally:
            connection.close()


@pytest.fixture
def server():
    config = Config(server=ServerConfig(host="127.0.0.1", port=0))
    game_server = GameServer(config)
    game_server.start()
    thread = threading.Thread(target=game_server.serve_forever, daemon=True)
    thread.start()
    yield game_server
    game_server.close()
    thread.join(timeout=5)


class TestGameServer:
    """Tests for GameServer."""

    def test_start_requires_bind(self):
        """Test serving before start() fails."""
        with pytest.raises(RuntimeError):
            GameServer().serve_forever()

    def test_connected_greeting(self, server):
        """Test clients are greeted with a player ID."""
        client = LineClient(server.port)
        try:
            greeting = client.receive()
            assert greeting["type"] == "connected"
            assert greeting["payload"]["playerId"]
        finally:
            client.close()

    def test_protocol_error_keeps_connection(self, server):
        """Test a bad frame yields an error and the connection stays usable."""
        client = LineClient(server.port)
        try:
            client.receive()
            client.send_raw(b"this is not json\n")
            assert client.receive_until("error")["code"] == "PROTOCOL_ERROR"
            client.send("leave_queue")
            client.send("get_state")
            assert client.receive_until("error")["code"] == "NOT_IN_GAME"
        finally:
            client.close()

    def test_two_player_match(self, server):
        """Test two clients are matched and can play a roll."""
        first = LineClient(server.port)
        second = LineClient(server.port)
        try:
            first_id = first.receive()["payload"]["playerId"]
            second.receive()
            first.send("join_queue", playerName="Ann", playerCount=2)
            first.receive_until("queue_joined")
            second.send("join_queue", playerName="Bob", playerCount=2)

            found = first.receive_until("match_found")
            second.receive_until("match_found")
            assert found["playerCount"] == 2
            assert found["playerIndex"] == 0
            assert found["gameState"]["diceValue"] == 0

            first.send("roll_dice", forcedValue=6)
            rolled = second.receive_until("dice_rolled")
            assert rolled["playerId"] == first_id
            assert rolled["validMoves"] == [0, 1, 2, 3]
        finally:
            first.close()
            second.close()

    def test_disconnect_notifies_opponent(self, server):
        """Test a dropped client is reported to the other player."""
        first = LineClient(server.port)
        second = LineClient(server.port)
        try:
            first.receive()
            second_id = second.receive()["payload"]["playerId"]
            first.send("join_queue", playerCount=2)
            first.receive_until("queue_joined")
            second.send("join_queue", playerCount=2)
            first.receive_until("match_found")
            second.receive_until("match_found")

            second.close()
            assert first.receive_until("player_disconnected") == {"playerId": second_id}
        finally:
            first.close()
