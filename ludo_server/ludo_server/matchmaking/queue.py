"""Matchmaking queue: FIFO buckets keyed by room type and player count."""

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Callable

from ludo_server.config import MatchmakingConfig
from ludo_server.errors import (
    AlreadyInGameError,
    AlreadyQueuedError,
    InvalidPlayerCountError,
    QueueFullError,
    UnknownRoomTypeError,
)
from ludo_server.models.board import MAX_PLAYERS, MIN_PLAYERS

logger = logging.getLogger(__name__)

BucketKey = tuple[str, int]


@dataclass
class QueueEntry:
    """A player waiting for a match."""

    player_id: str
    display_name: str
    connection: Any
    room_type: str
    wanted_count: int
    joined_at: float = 0.0


@dataclass
class Match:
    """Players dequeued together, oldest first."""

    room_type: str
    player_count: int
    entries: list[QueueEntry] = field(default_factory=list)

    @property
    def player_ids(self) -> list[str]:
        return [entry.player_id for entry in self.entries]


@dataclass
class JoinResult:
    """Result of joining the queue."""

    position: int  # 1-based place in the bucket (0 once matched)
    waiting: int  # Players in the bucket after this join
    needed: int  # Bucket size that triggers a match
    match: Match | None = None


class MatchmakingQueue:
    """Groups waiting players into matches.

    Each (room_type, player_count) bucket is FIFO. When a bucket reaches its
    player count, exactly that many entries are removed, oldest first, in the
    same locked step that added the last one.
    """

    def __init__(
        self,
        config: MatchmakingConfig | None = None,
        is_seated: Callable[[str], bool] | None = None,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize queue.

        Args:
            config: Matchmaking configuration
            is_seated: Returns True if a player already sits in a game
            clock: Wall-clock function (seconds)
        """
        self.config = config or MatchmakingConfig()
        self._is_seated = is_seated or (lambda player_id: False)
        self._clock = clock
        self._lock = threading.Lock()
        self._buckets: dict[BucketKey, OrderedDict[str, QueueEntry]] = {}
        self._index: dict[str, BucketKey] = {}

    def join_queue(
        self,
        player_id: str,
        display_name: str,
        connection: Any,
        room_type: str,
        wanted_count: int,
    ) -> JoinResult:
        """Add a player to a bucket, forming a match when it fills.

        Raises:
            InvalidPlayerCountError: wanted_count outside 2-4
            UnknownRoomTypeError: room_type not configured
            AlreadyQueuedError: player already waiting
            AlreadyInGameError: player already seated in a session
            QueueFullError: too many players waiting server-wide
        """
        if not MIN_PLAYERS <= wanted_count <= MAX_PLAYERS:
            raise InvalidPlayerCountError(
                f"Player count must be between {MIN_PLAYERS} and {MAX_PLAYERS}",
                context={"player_count": wanted_count},
            )
        if room_type not in self.config.room_types:
            raise UnknownRoomTypeError(
                f"Unknown room type: {room_type}",
                context={"room_types": list(self.config.room_types)},
            )
        if self._is_seated(player_id):
            raise AlreadyInGameError("Player is already in a game")

        key = (room_type, wanted_count)
        with self._lock:
            if player_id in self._index:
                raise AlreadyQueuedError("Player is already in a queue")
            if len(self._index) >= self.config.max_waiting_players:
                raise QueueFullError(
                    "Matchmaking queue is full",
                    context={"max_waiting_players": self.config.max_waiting_players},
                )

            bucket = self._buckets.setdefault(key, OrderedDict())
            bucket[player_id] = QueueEntry(
                player_id=player_id,
                display_name=display_name,
                connection=connection,
                room_type=room_type,
                wanted_count=wanted_count,
                joined_at=self._clock(),
            )
            self._index[player_id] = key
            waiting = len(bucket)
            logger.info(f"{display_name} joined {room_type}/{wanted_count} queue ({waiting}/{wanted_count})")

            if waiting < wanted_count:
                return JoinResult(position=waiting, waiting=waiting, needed=wanted_count)

            entries = [bucket.popitem(last=False)[1] for _ in range(wanted_count)]
            for entry in entries:
                del self._index[entry.player_id]
            if not bucket:
                del self._buckets[key]

        match = Match(room_type=room_type, player_count=wanted_count, entries=entries)
        logger.info(f"Match formed in {room_type}/{wanted_count}: {match.player_ids}")
        return JoinResult(position=0, waiting=waiting, needed=wanted_count, match=match)

    def leave_queue(self, player_id: str) -> bool:
        """Remove a player from whatever bucket holds them.

        Returns:
            True if the player was waiting
        """
        with self._lock:
            key = self._index.pop(player_id, None)
            if key is None:
                return False
            bucket = self._buckets[key]
            del bucket[player_id]
            if not bucket:
                del self._buckets[key]
        logger.info(f"Player {player_id} left {key[0]}/{key[1]} queue")
        return True

    def bucket_size(self, room_type: str, player_count: int) -> int:
        with self._lock:
            return len(self._buckets.get((room_type, player_count), ()))

    def entries(self, room_type: str, player_count: int) -> list[QueueEntry]:
        """Get a bucket's entries, oldest first."""
        with self._lock:
            return list(self._buckets.get((room_type, player_count), {}).values())

    def is_queued(self, player_id: str) -> bool:
        with self._lock:
            return player_id in self._index

    def bucket_of(self, player_id: str) -> BucketKey | None:
        with self._lock:
            return self._index.get(player_id)

    @property
    def waiting_count(self) -> int:
        with self._lock:
            return len(self._index)
