"""Main entry point for the Ludo server."""

import argparse
import logging
import sys
from pathlib import Path

from ludo_server.config import GameLogSettings, load_config
from ludo_server.errors import ConfigError
from ludo_server.logging import GameLogger
from ludo_server.network.server import GameServer
from ludo_server.utils.logger import ServerDisplay, setup_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Ludo multiplayer game server"
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        help="Path to config file (YAML)",
    )
    parser.add_argument(
        "--host",
        help="Host address to bind (overrides config)",
    )
    parser.add_argument(
        "-p",
        "--port",
        type=int,
        help="Server port (overrides config)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    parser.add_argument(
        "--game-log",
        type=Path,
        help="Path of the JSONL game log (enables game logging)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point.

    Returns:
        Exit code (0 for success)
    """
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    # Apply command-line overrides
    if args.host:
        config.server.host = args.host
    if args.port is not None:
        config.server.port = args.port
    if args.verbose:
        config.logging.level = "DEBUG"
    if args.game_log:
        config.game_log = GameLogSettings(enabled=True, output_path=str(args.game_log))

    setup_logging(config.logging.level)
    display = ServerDisplay(show_boards=args.verbose)

    try:
        with GameLogger(config.game_log) as game_logger:
            server = GameServer(config, game_logger=game_logger)
            display.attach(server.event_bus)
            with server:
                display.print_startup(
                    config,
                    server.host,
                    server.port,
                    config.game_log.output_path if config.game_log.enabled else None,
                )
                server.serve_forever()
        return 0

    except KeyboardInterrupt:
        display.print_shutdown()
        return 0
    except Exception as e:
        logger.exception(f"Server error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
