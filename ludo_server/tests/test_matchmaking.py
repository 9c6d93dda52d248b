"""Tests for the matchmaking queue."""

import threading

import pytest

from ludo_server.config import MatchmakingConfig
from ludo_server.errors import (
    AlreadyInGameError,
    AlreadyQueuedError,
    InvalidPlayerCountError,
    QueueFullError,
    UnknownRoomTypeError,
)
from ludo_server.matchmaking.queue import MatchmakingQueue


@pytest.fixture
def queue(clock) -> MatchmakingQueue:
    return MatchmakingQueue(clock=clock)


def join(queue: MatchmakingQueue, player_id: str, room_type: str = "casual", count: int = 4):
    return queue.join_queue(player_id, player_id.upper(), None, room_type, count)


class TestJoinQueue:
    """Tests for joining the queue."""

    def test_first_join(self, queue):
        """Test a join below the bucket size waits."""
        result = join(queue, "a")
        assert result.match is None
        assert result.position == 1
        assert result.waiting == 1
        assert result.needed == 4
        assert queue.is_queued("a")

    def test_scenario_e_full_bucket(self, queue):
        """Test the fourth join forms exactly one match and empties the bucket."""
        results = [join(queue, pid) for pid in ("a", "b", "c", "d")]
        assert [r.match is None for r in results] == [True, True, True, False]
        match = results[-1].match
        assert match.player_ids == ["a", "b", "c", "d"]
        assert match.room_type == "casual"
        assert match.player_count == 4
        assert queue.bucket_size("casual", 4) == 0
        assert queue.waiting_count == 0

    def test_fifo_order(self, queue):
        """Test the oldest entries are matched first."""
        for pid in ("a", "b", "c"):
            result = join(queue, pid, count=2)
        assert result.match is None
        assert [e.player_id for e in queue.entries("casual", 2)] == ["c"]

    def test_buckets_are_separate(self, queue):
        """Test room types and sizes do not mix."""
        join(queue, "a", "casual", 2)
        join(queue, "b", "ranked", 2)
        join(queue, "c", "casual", 3)
        assert queue.bucket_size("casual", 2) == 1
        assert queue.bucket_size("ranked", 2) == 1
        assert queue.bucket_size("casual", 3) == 1

    def test_entry_fields(self, queue, clock):
        """Test queue entries record the request."""
        queue.join_queue("a", "Alice", "conn", "ranked", 3)
        entry = queue.entries("ranked", 3)[0]
        assert entry.display_name == "Alice"
        assert entry.connection == "conn"
        assert entry.wanted_count == 3
        assert entry.joined_at == clock.now

    @pytest.mark.parametrize("count", [0, 1, 5])
    def test_invalid_player_count(self, queue, count):
        """Test bucket sizes outside 2-4 are rejected."""
        with pytest.raises(InvalidPlayerCountError):
            join(queue, "a", count=count)

    def test_unknown_room_type(self, queue):
        """Test room types must be configured."""
        with pytest.raises(UnknownRoomTypeError):
            join(queue, "a", "tournament")

    def test_already_queued(self, queue):
        """Test a player can wait in only one bucket."""
        join(queue, "a", count=3)
        with pytest.raises(AlreadyQueuedError):
            join(queue, "a", "ranked", 2)

    def test_already_in_game(self, clock):
        """Test seated players cannot queue."""
        queue = MatchmakingQueue(is_seated=lambda pid: pid == "a", clock=clock)
        with pytest.raises(AlreadyInGameError):
            join(queue, "a")

    def test_queue_full(self, clock):
        """Test the waiting-player cap."""
        queue = MatchmakingQueue(MatchmakingConfig(max_waiting_players=2), clock=clock)
        join(queue, "a")
        join(queue, "b")
        with pytest.raises(QueueFullError):
            join(queue, "c")

    def test_concurrent_joins(self, queue):
        """Test simultaneous joins never double-match a player."""
        matches = []
        lock = threading.Lock()

        def worker(pid: str) -> None:
            result = join(queue, pid, count=2)
            if result.match:
                with lock:
                    matches.append(result.match)

        threads = [threading.Thread(target=worker, args=(f"p{i}",)) for i in range(40)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        matched = [pid for match in matches for pid in match.player_ids]
        assert len(matches) == 20
        assert len(set(matched)) == 40
        assert queue.waiting_count == 0


class TestLeaveQueue:
    """Tests for leaving the queue."""

    def test_scenario_f_not_queued(self, queue):
        """Test leaving without being queued is a no-op."""
        assert queue.leave_queue("ghost") is False

    def test_leave(self, queue):
        """Test leaving removes the entry."""
        join(queue, "a")
        join(queue, "b")
        assert queue.leave_queue("a")
        assert not queue.is_queued("a")
        assert [e.player_id for e in queue.entries("casual", 4)] == ["b"]

    def test_rejoin_after_leave(self, queue):
        """Test a player may queue again after leaving."""
        join(queue, "a")
        queue.leave_queue("a")
        assert join(queue, "a", "ranked", 2).waiting == 1
        assert queue.bucket_of("a") == ("ranked", 2)
