"""Strategy module for Ludo client."""

from ludo_client.strategy.base import Strategy
from ludo_client.strategy.simple import SimpleStrategy

__all__ = ["Strategy", "SimpleStrategy"]
