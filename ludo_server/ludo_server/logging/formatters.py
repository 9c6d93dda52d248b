"""Formatters for game log output."""

from ludo_server.models.board import (
    POS_BASE,
    POS_FINISHED,
    POS_HOME_STRETCH_START,
    BoardState,
    player_tokens,
)
from ludo_server.models.player import Color

# Colour codes for log output
COLOR_CODES: dict[Color, str] = {
    Color.RED: "red",
    Color.BLUE: "blue",
    Color.GREEN: "green",
    Color.YELLOW: "yellow",
}


def format_color(player_index: int) -> str:
    """Format a seat index as its colour name (e.g. 0 -> "red")."""
    return COLOR_CODES[Color(player_index)]


def format_position(position: int) -> str:
    """Format a relative token position.

    Args:
        position: Relative position (-1 to 57).

    Returns:
        "B" for BASE, "M<n>" on the main loop, "H<n>" for home-stretch
        step 1-6, "F" for FINISHED.
    """
    if position == POS_BASE:
        return "B"
    if position == POS_FINISHED:
        return "F"
    if position >= POS_HOME_STRETCH_START:
        return f"H{position - POS_HOME_STRETCH_START + 1}"
    if position < POS_BASE:
        raise ValueError(f"Invalid position: {position}")
    return f"M{position}"


def format_tokens(state: BoardState) -> dict[str, str]:
    """Format every active player's tokens.

    Returns:
        Dict mapping colour name to comma-separated positions
        (e.g. {"red": "B,M12,H3,F"}).
    """
    return {
        format_color(player): ",".join(
            format_position(state.token_positions[t]) for t in player_tokens(player)
        )
        for player in range(state.player_count)
    }
