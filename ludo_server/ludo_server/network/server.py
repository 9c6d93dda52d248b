"""TCP server for Ludo games."""

import logging
import queue
import random
import socket
import threading
from typing import Iterator

from ludo_server.config import Config
from ludo_server.game.events import EventBus
from ludo_server.game.rules import RulesEngine
from ludo_server.logging import GameLogger
from ludo_server.matchmaking.queue import MatchmakingQueue
from ludo_server.matchmaking.registry import SessionRegistry

from .protocol import MAX_FRAME_BYTES, encode_message
from .router import MessageRouter

logger = logging.getLogger(__name__)

RECV_CHUNK = 4096

# How often blocked accept()/recv() calls wake up to check for shutdown (seconds)
POLL_INTERVAL = 0.5

# Messages a slow client may have waiting before it is dropped
OUTBOX_SIZE = 256


class ClientConnection:
    """One client socket: line-framed reads and a queued writer.

    ``send_message`` only enqueues; a per-connection writer thread performs
    the blocking ``sendall``. A peer whose outbox fills up is dropped.
    """

    def __init__(
        self,
        sock: socket.socket,
        address: tuple,
        send_timeout: float = 5.0,
        outbox_size: int = OUTBOX_SIZE,
    ):
        """Initialize connection and start its writer thread.

        Args:
            sock: Accepted client socket
            address: Peer address
            send_timeout: Seconds a send may block before the client is dropped
            outbox_size: Messages that may wait for the writer
        """
        self.player_id = ""
        self.address = address
        self._socket = sock
        self._socket.settimeout(send_timeout)
        self._outbox: queue.Queue[bytes | None] = queue.Queue(maxsize=outbox_size)
        self._closed = threading.Event()
        self._writer = threading.Thread(
            target=self._write_loop,
            name=f"writer-{address[0]}:{address[1]}",
            daemon=True,
        )
        self._writer.start()

    @property
    def is_open(self) -> bool:
        return not self._closed.is_set()

    def send_message(self, message: dict) -> bool:
        """Queue one message for sending.

        Returns:
            False if the connection is closed or its outbox is full
        """
        if self._closed.is_set():
            return False
        try:
            self._outbox.put_nowait(encode_message(message))
        except queue.Full:
            logger.warning(f"Dropping {self.address}: outbox full")
            self.close()
            return False
        return True

    def _write_loop(self) -> None:
        while True:
            data = self._outbox.get()
            if data is None or self._closed.is_set():
                return
            try:
                self._socket.sendall(data)
            except OSError as e:
                logger.warning(f"Send to {self.address} failed: {e}")
                self.close()
                return

    def read_lines(self, stop: threading.Event | None = None) -> Iterator[bytes]:
        """Yield complete lines until the peer disconnects.

        Args:
            stop: Ends iteration when set
        """
        buffer = bytearray()
        while self.is_open and not (stop and stop.is_set()):
            try:
                chunk = self._socket.recv(RECV_CHUNK)
            except socket.timeout:
                continue
            except OSError as e:
                logger.debug(f"Read from {self.address} failed: {e}")
                return
            if not chunk:
                return

            buffer.extend(chunk)
            while True:
                newline = buffer.find(b"\n")
                if newline < 0:
                    break
                line = bytes(buffer[:newline])
                del buffer[: newline + 1]
                yield line

            if len(buffer) > MAX_FRAME_BYTES:
                logger.warning(f"Dropping {self.address}: frame exceeds {MAX_FRAME_BYTES} bytes")
                return

    def close(self) -> None:
        """Close the socket (idempotent)."""
        if self._closed.is_set():
            return
        self._closed.set()
        try:
            self._outbox.put_nowait(None)  # Wake the writer
        except queue.Full:
            pass  # Writer exits on its next get
        try:
            self._socket.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass  # Already disconnected
        self._socket.close()

    def __repr__(self) -> str:
        return f"ClientConnection(player_id={self.player_id!r}, address={self.address})"


class GameServer:
    """TCP server hosting any number of concurrent Ludo sessions."""

    def __init__(
        self,
        config: Config | None = None,
        game_logger: GameLogger | None = None,
        event_bus: EventBus | None = None,
        rng: random.Random | None = None,
    ):
        """Initialize server.

        Args:
            config: Server configuration (uses defaults if not provided)
            game_logger: JSONL game logger
            event_bus: Event bus shared by all sessions
            rng: Dice source shared by all sessions
        """
        self.config = config or Config()
        self.host = self.config.server.host
        self.port = self.config.server.port
        self.game_logger = game_logger
        self.event_bus = event_bus or EventBus()

        if game_logger is not None:
            game_logger.attach(self.event_bus)

        self.registry = SessionRegistry(
            self.config.session,
            engine=RulesEngine(self.config.rules),
            event_bus=self.event_bus,
            rng=rng,
            game_logger=game_logger,
        )
        self.queue = MatchmakingQueue(self.config.matchmaking, is_seated=self.registry.is_seated)
        self.router = MessageRouter(self.queue, self.registry, self.config.rules)

        self._socket: socket.socket | None = None
        self._stop = threading.Event()
        self._connections: set[ClientConnection] = set()
        self._connections_lock = threading.Lock()
        self._sweeper: threading.Thread | None = None

    @property
    def connections(self) -> list[ClientConnection]:
        """Get open client connections."""
        with self._connections_lock:
            return list(self._connections)

    def start(self) -> None:
        """Bind and listen. The actual port is stored in self.port."""
        self._socket = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._socket.bind((self.host, self.port))
        self._socket.listen()
        self._socket.settimeout(POLL_INTERVAL)
        self.port = self._socket.getsockname()[1]
        self._stop.clear()
        logger.info(f"Server listening on {self.host}:{self.port}")

        if self.game_logger is not None:
            self.game_logger.log_server_start(self.host, self.port)

    def serve_forever(self) -> None:
        """Accept clients until close() is called."""
        listener = self._socket
        if listener is None:
            raise RuntimeError("Server not started")

        self._sweeper = threading.Thread(target=self._sweep_loop, name="session-sweeper", daemon=True)
        self._sweeper.start()

        while not self._stop.is_set():
            try:
                sock, address = listener.accept()
            except socket.timeout:
                continue
            except OSError:
                if self._stop.is_set():
                    break
                raise

            logger.info(f"Connection from {address}")
            connection = ClientConnection(sock, address, self.config.server.send_timeout_seconds)
            with self._connections_lock:
                self._connections.add(connection)
            threading.Thread(
                target=self._handle_client,
                args=(connection,),
                name=f"client-{address[0]}:{address[1]}",
                daemon=True,
            ).start()

    def _handle_client(self, connection: ClientConnection) -> None:
        """Read and route messages from one client until it disconnects."""
        try:
            self.router.on_connect(connection)
            for line in connection.read_lines(self._stop):
                if line.strip():
                    self.router.handle(connection, line)
        finally:
            # Closed first so a match formed concurrently sees the dead socket
            connection.close()
            self.router.on_disconnect(connection)
            with self._connections_lock:
                self._connections.discard(connection)
            logger.info(f"Client {connection.player_id} disconnected")

    def _sweep_loop(self) -> None:
        interval = self.config.session.sweep_interval_seconds
        while not self._stop.wait(interval):
            try:
                self.registry.sweep()
            except Exception:
                logger.exception("Session sweep failed")

    def close(self) -> None:
        """Stop accepting, then close all connections and the server socket."""
        self._stop.set()

        if self._socket:
            self._socket.close()
            self._socket = None

        for connection in self.connections:
            connection.close()

        logger.info("Server closed")

    def __enter__(self) -> "GameServer":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
