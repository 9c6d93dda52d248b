"""Wire protocol.

Every frame is one UTF-8 JSON document on its own line::

    {"type": "<message type>", "payload": {...}}

Inbound messages are decoded into a closed set of pydantic models keyed on
``type``. Anything else (bad JSON, unknown type, missing or mistyped field)
is a ProtocolError. Payload field names are camelCase on the wire.
"""

import json
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from ludo_server.errors import LudoError, ProtocolError
from ludo_server.models.board import TOTAL_TOKENS

MAX_FRAME_BYTES = 64 * 1024
MAX_NAME_LENGTH = 32


class ServerMessageType(str, Enum):
    """Server to client message types."""

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


# =============================================================================
# Client -> server payloads
# =============================================================================


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class EmptyPayload(_Payload):
    pass


class JoinQueuePayload(_Payload):
    player_name: str = Field("Player", alias="playerName", min_length=1, max_length=MAX_NAME_LENGTH)
    room_type: str = Field("casual", alias="roomType")
    player_count: int = Field(4, alias="playerCount")  # Range checked by the queue


class RollDicePayload(_Payload):
    forced_value: int = Field(0, alias="forcedValue", ge=0, le=6)  # 0 = random


class MoveTokenPayload(_Payload):
    token_index: int = Field(alias="tokenIndex", ge=0, lt=TOTAL_TOKENS)


class ReconnectPayload(_Payload):
    player_id: str = Field(alias="playerId", min_length=1)


# =============================================================================
# Client -> server messages
# =============================================================================


class JoinQueueMessage(BaseModel):
    type: Literal["join_queue"]
    payload: JoinQueuePayload = Field(default_factory=JoinQueuePayload)


class LeaveQueueMessage(BaseModel):
    type: Literal["leave_queue"]
    payload: EmptyPayload = Field(default_factory=EmptyPayload)


class RollDiceMessage(BaseModel):
    type: Literal["roll_dice"]
    payload: RollDicePayload = Field(default_factory=RollDicePayload)


class MoveTokenMessage(BaseModel):
    type: Literal["move_token"]
    payload: MoveTokenPayload


class GetStateMessage(BaseModel):
    type: Literal["get_state"]
    payload: EmptyPayload = Field(default_factory=EmptyPayload)


class LeaveGameMessage(BaseModel):
    type: Literal["leave_game"]
    payload: EmptyPayload = Field(default_factory=EmptyPayload)


class ReconnectMessage(BaseModel):
    type: Literal["reconnect"]
    payload: ReconnectPayload


ClientMessage = Annotated[
    Union[
        JoinQueueMessage,
        LeaveQueueMessage,
        RollDiceMessage,
        MoveTokenMessage,
        GetStateMessage,
        LeaveGameMessage,
        ReconnectMessage,
    ],
    Field(discriminator="type"),
]

_client_message_adapter: TypeAdapter[ClientMessage] = TypeAdapter(ClientMessage)


def decode_client_message(text: str | bytes) -> ClientMessage:
    """Decode one inbound frame.

    Args:
        text: JSON text of a single message

    Returns:
        The matching message model

    Raises:
        ProtocolError: If the frame is not a valid client message
    """
    if len(text) > MAX_FRAME_BYTES:
        raise ProtocolError("Message too large", context={"limit": MAX_FRAME_BYTES})
    try:
        return _client_message_adapter.validate_json(text)
    except ValidationError as e:
        raise ProtocolError(_describe(e)) from e


def _describe(error: ValidationError) -> str:
    first = error.errors()[0]
    kind = first["type"]
    if kind == "json_invalid":
        return "Invalid JSON"
    if kind == "union_tag_invalid":
        return f"Unknown message type: {first.get('ctx', {}).get('tag')}"
    if kind in ("union_tag_not_found", "model_attributes_type"):
        return "Message must be an object with a 'type' field"
    location = ".".join(str(part) for part in first["loc"][1:])
    if not location:
        return f"Invalid message: {first['msg']}"
    return f"Invalid field {location}: {first['msg']}"


# =============================================================================
# Server -> client messages
# =============================================================================


def make_message(msg_type: ServerMessageType, payload: dict[str, Any] | None = None) -> dict[str, Any]:
    """Build an outbound message."""
    return {"type": msg_type.value, "payload": payload or {}}


def error_message(error: LudoError) -> dict[str, Any]:
    """Build an ``error`` message from an exception."""
    return make_message(ServerMessageType.ERROR, {"error": error.message, "code": error.code})


def encode_message(message: dict[str, Any]) -> bytes:
    """Serialize a message as one newline-terminated frame."""
    return (json.dumps(message, ensure_ascii=False, separators=(",", ":")) + "\n").encode("utf-8")
