"""Configuration management."""

from enum import Enum
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from ludo_server.errors import ConfigError


class SafeTileBlockades(str, Enum):
    """How blockades behave on the fixed safe tiles."""

    EXEMPT = "exempt"  # Safe tiles never host a blockade
    ENFORCE = "enforce"  # Blockades on safe tiles block passage and landing


class TwoPlayerLayout(str, Enum):
    """Start corners used by 2-player games."""

    OPPOSITE = "opposite"  # 0, 26
    ADJACENT = "adjacent"  # 0, 13


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = "0.0.0.0"
    port: int = 8765
    send_timeout_seconds: float = 5.0


class RulesConfig(BaseModel):
    """Rules configuration."""

    safe_tile_blockades: SafeTileBlockades = SafeTileBlockades.EXEMPT
    two_player_layout: TwoPlayerLayout = TwoPlayerLayout.OPPOSITE
    allow_forced_dice: bool = True  # Clients may request a specific dice value


class MatchmakingConfig(BaseModel):
    """Matchmaking configuration."""

    room_types: list[str] = Field(default_factory=lambda: ["casual", "ranked"])
    max_waiting_players: int = 1000


class SessionConfig(BaseModel):
    """Session lifetime configuration."""

    sweep_interval_seconds: float = 300.0  # 5 minutes
    idle_timeout_seconds: float = 1800.0  # 30 minutes
    finished_grace_seconds: float = 60.0


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"


class GameLogSettings(BaseModel):
    """JSONL game log configuration."""

    enabled: bool = False
    output_path: str = "logs/ludo_games.jsonl"


class Config(BaseModel):
    """Root configuration."""

    server: ServerConfig = ServerConfig()
    rules: RulesConfig = RulesConfig()
    matchmaking: MatchmakingConfig = MatchmakingConfig()
    session: SessionConfig = SessionConfig()
    logging: LoggingConfig = LoggingConfig()
    game_log: GameLogSettings = GameLogSettings()


def load_config(path: Path | str | None = None) -> Config:
    """Load configuration from YAML file.

    Args:
        path: Path to config file. If None, uses default config.

    Returns:
        Config object.

    Raises:
        ConfigError: If the file is not valid YAML or has invalid values.
    """
    if path is None:
        return Config()

    config_path = Path(path)
    if not config_path.exists():
        return Config()

    try:
        with open(config_path) as f:
            data = yaml.safe_load(f)
        return Config(**data) if data else Config()
    except (yaml.YAMLError, ValidationError, TypeError) as e:
        raise ConfigError(f"Invalid config file {config_path}: {e}") from e
