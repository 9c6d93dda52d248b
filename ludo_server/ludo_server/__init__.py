"""Ludo rules engine and multiplayer game server."""

__version__ = "0.1.0"
