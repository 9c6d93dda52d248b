"""Reference bot client for the Ludo server."""

__version__ = "0.1.0"
