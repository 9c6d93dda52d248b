"""Message framing for the Ludo server protocol.

Each message is one JSON object per line::

    {"type": "roll_dice", "payload": {}}
"""

import json
from dataclasses import dataclass, field
from typing import Any

# Client -> server
JOIN_QUEUE = "join_queue"
LEAVE_QUEUE = "leave_queue"
ROLL_DICE = "roll_dice"
MOVE_TOKEN = "move_token"
GET_STATE = "get_state"
LEAVE_GAME = "leave_game"
RECONNECT = "reconnect"

# Server -> client
CONNECTED = "connected"
QUEUE_JOINED = "queue_joined"
QUEUE_UPDATE = "queue_update"
LEFT_QUEUE = "left_queue"
MATCH_FOUND = "match_found"
DICE_ROLLED = "dice_rolled"
TOKEN_MOVED = "token_moved"
MOVE_FAILED = "move_failed"
GAME_STATE = "game_state"
GAME_OVER = "game_over"
PLAYER_LEFT = "player_left"
PLAYER_DISCONNECTED = "player_disconnected"
PLAYER_RECONNECTED = "player_reconnected"
RECONNECTED = "reconnected"
LEFT_GAME = "left_game"
ERROR = "error"


@dataclass
class Message:
    """A decoded server message."""

    type: str
    payload: dict[str, Any] = field(default_factory=dict)


def encode_message(msg_type: str, payload: dict[str, Any] | None = None) -> bytes:
    """Encode a message as one newline-terminated frame."""
    return (json.dumps({"type": msg_type, "payload": payload or {}}) + "\n").encode("utf-8")


def decode_message(line: bytes | str) -> Message:
    """Decode one frame.

    Raises:
        ValueError: If the frame is not a JSON object with a string type
    """
    data = json.loads(line)
    if not isinstance(data, dict) or not isinstance(data.get("type"), str):
        raise ValueError(f"Malformed message: {line!r}")
    return Message(type=data["type"], payload=data.get("payload") or {})
