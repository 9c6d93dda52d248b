"""Matchmaking and session bookkeeping."""

from .queue import JoinResult, Match, MatchmakingQueue, QueueEntry
from .registry import SessionRegistry

__all__ = [
    "JoinResult",
    "Match",
    "MatchmakingQueue",
    "QueueEntry",
    "SessionRegistry",
]
