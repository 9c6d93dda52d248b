"""Network module for Ludo client."""

from ludo_client.network.connection import GameConnection
from ludo_client.network.protocol import Message

__all__ = ["GameConnection", "Message"]
