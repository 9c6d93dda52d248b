"""Shared fixtures for server tests."""

import random

import pytest

from ludo_server.config import RulesConfig, SafeTileBlockades
from ludo_server.game.events import EventBus
from ludo_server.game.rules import RulesEngine
from ludo_server.game.session import GameSession
from ludo_server.models.board import BoardState
from ludo_server.models.player import PlayerSlot


class FakeConnection:
    """Records messages instead of sending them."""

    def __init__(self, player_id: str = "", fail: bool = False):
        self.player_id = player_id
        self.messages: list[dict] = []
        self.fail = fail
        self.is_open = True

    def send_message(self, message: dict) -> bool:
        if self.fail:
            raise OSError("Broken pipe")
        self.messages.append(message)
        return True

    def types(self) -> list[str]:
        return [m["type"] for m in self.messages]

    def last(self, msg_type: str) -> dict:
        for message in reversed(self.messages):
            if message["type"] == msg_type:
                return message["payload"]
        raise AssertionError(f"No {msg_type} message in {self.types()}")

    def clear(self) -> None:
        self.messages.clear()


class FakeClock:
    """Manually advanced wall clock."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def engine() -> RulesEngine:
    return RulesEngine()


@pytest.fixture
def enforce_engine() -> RulesEngine:
    return RulesEngine(RulesConfig(safe_tile_blockades=SafeTileBlockades.ENFORCE))


@pytest.fixture
def board() -> BoardState:
    return BoardState.create(4)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def connection_factory():
    """Create FakeConnection objects."""
    return FakeConnection


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def make_session(clock, event_bus):
    """Create a session with N connected fake players (p0, p1, ...)."""

    def _make(player_count: int = 4, **kwargs) -> GameSession:
        players = [
            PlayerSlot(
                player_id=f"p{i}",
                display_name=f"Player{i}",
                connection=FakeConnection(f"p{i}"),
            )
            for i in range(player_count)
        ]
        kwargs.setdefault("rng", random.Random(42))
        kwargs.setdefault("event_bus", event_bus)
        kwargs.setdefault("clock", clock)
        return GameSession("test-session", players, **kwargs)

    return _make
