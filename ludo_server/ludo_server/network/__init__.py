"""Network layer."""

from .protocol import ServerMessageType, decode_client_message, encode_message, make_message
from .router import MessageRouter
from .server import ClientConnection, GameServer

__all__ = [
    "ClientConnection",
    "GameServer",
    "MessageRouter",
    "ServerMessageType",
    "decode_client_message",
    "encode_message",
    "make_message",
]
