"""
Configuration Management for duelstats

Provides configuration loading from multiple sources:
- Default values
- Configuration files (YAML, TOML, JSON)
- Environment variables
- Command line arguments

Configuration precedence (highest to lowest):
1. Command line arguments
2. Environment variables (DUELSTATS_*)
3. Configuration file
4. Default values
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from datetime import tzinfo
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from duelstats.core.constants import (
    BLITZ,
    DEFAULT_SESSION_GAP_MINUTES,
    FILTER_CACHE_CAPACITY,
    HIGHLIGHT_TOP_N,
    MEMO_FLUSH_THRESHOLD,
    TIME_PRESSURE_SECONDS,
)

logger = logging.getLogger(__name__)


# ============================================================================
# Configuration Dataclasses
# ============================================================================


@dataclass
class DataConfig:
    """Where the monthly archive lives and which games to keep."""

    data_dir: str = "data/games"
    # Only games of this speed category are loaded
    speed: str = BLITZ


@dataclass
class SessionConfig:
    """Configuration for session clustering."""

    max_gap_minutes: int = DEFAULT_SESSION_GAP_MINUTES


@dataclass
class StatsConfig:
    """Configuration for the aggregate statistics engine."""

    # Wins with less than this many seconds left count as time-pressure wins
    time_pressure_seconds: float = TIME_PRESSURE_SECONDS


@dataclass
class HighlightConfig:
    """Configuration for interesting-game rankings."""

    top_n: int = HIGHLIGHT_TOP_N


@dataclass
class CacheConfig:
    """Configuration for the in-memory caches."""

    filter_capacity: int = FILTER_CACHE_CAPACITY
    memo_flush_threshold: int = MEMO_FLUSH_THRESHOLD


@dataclass
class ExportConfig:
    """Configuration for data export."""

    default_format: str = "json"
    json_indent: int = 2
    csv_delimiter: str = ","


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: str | None = None


@dataclass
class DuelStatsConfig:
    """Main configuration container."""

    data: DataConfig = field(default_factory=DataConfig)
    sessions: SessionConfig = field(default_factory=SessionConfig)
    stats: StatsConfig = field(default_factory=StatsConfig)
    highlights: HighlightConfig = field(default_factory=HighlightConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    export: ExportConfig = field(default_factory=ExportConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # IANA zone used for calendar-day logic; None means the system local zone
    timezone: str | None = None

    config_version: str = "1.0"

    def get_tzinfo(self) -> tzinfo | None:
        """Resolve ``timezone`` to a tzinfo, falling back to local time."""
        if not self.timezone:
            return None
        try:
            return ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning(f"Unknown timezone '{self.timezone}', using local time")
            return None


_SECTIONS = ("data", "sessions", "stats", "highlights", "cache", "export", "logging")


# ============================================================================
# Configuration Loading
# ============================================================================


def get_default_config_paths() -> list[Path]:
    """Get the default paths to search for configuration files."""
    paths = []

    # Current directory
    paths.append(Path.cwd() / "duelstats.yaml")
    paths.append(Path.cwd() / "duelstats.toml")
    paths.append(Path.cwd() / "duelstats.json")

    # User home directory
    home = Path.home()
    xdg_config = os.environ.get("XDG_CONFIG_HOME", str(home / ".config"))
    paths.append(Path(xdg_config) / "duelstats" / "config.yaml")
    paths.append(Path(xdg_config) / "duelstats" / "config.toml")

    return paths


def load_yaml_config(path: Path) -> dict[str, Any]:
    """Load configuration from a YAML file."""
    import yaml

    with open(path) as f:
        return yaml.safe_load(f) or {}


def load_toml_config(path: Path) -> dict[str, Any]:
    """Load configuration from a TOML file."""
    import tomllib

    with open(path, "rb") as f:
        return tomllib.load(f)


def load_json_config(path: Path) -> dict[str, Any]:
    """Load configuration from a JSON file."""
    with open(path) as f:
        return json.load(f)


def load_config_file(path: Path) -> dict[str, Any]:
    """Load configuration from a file, detecting format from extension."""
    if not path.exists():
        return {}

    suffix = path.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return load_yaml_config(path)
    elif suffix == ".toml":
        return load_toml_config(path)
    elif suffix == ".json":
        return load_json_config(path)
    else:
        logger.warning(f"Unknown config file format: {suffix}")
        return {}


def load_env_config() -> dict[str, Any]:
    """Load configuration from environment variables."""
    config: dict[str, Any] = {}

    env_mappings = {
        "DUELSTATS_DATA_DIR": ("data", "data_dir"),
        "DUELSTATS_SPEED": ("data", "speed"),
        "DUELSTATS_SESSION_GAP": ("sessions", "max_gap_minutes"),
        "DUELSTATS_TIME_PRESSURE_SECONDS": ("stats", "time_pressure_seconds"),
        "DUELSTATS_HIGHLIGHT_TOP_N": ("highlights", "top_n"),
        "DUELSTATS_FILTER_CACHE_SIZE": ("cache", "filter_capacity"),
        "DUELSTATS_EXPORT_FORMAT": ("export", "default_format"),
        "DUELSTATS_LOG_LEVEL": ("logging", "level"),
        "DUELSTATS_LOG_FILE": ("logging", "file"),
    }

    for env_var, (section, key) in env_mappings.items():
        value: Any = os.environ.get(env_var)
        if value is not None:
            if section not in config:
                config[section] = {}

            # Type conversion
            if value.lower() in ("true", "false"):
                value = value.lower() == "true"
            elif value.isdigit():
                value = int(value)
            else:
                try:
                    value = float(value)
                except ValueError:
                    pass

            config[section][key] = value

    tz = os.environ.get("DUELSTATS_TIMEZONE")
    if tz:
        config["timezone"] = tz

    return config


def merge_configs(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge two configuration dictionaries."""
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value

    return result


def dict_to_config(data: dict[str, Any]) -> DuelStatsConfig:
    """Convert a dictionary to DuelStatsConfig. Unknown keys are ignored."""
    config = DuelStatsConfig()

    for section in _SECTIONS:
        values = data.get(section)
        if not isinstance(values, dict):
            continue
        target = getattr(config, section)
        for key, value in values.items():
            if hasattr(target, key):
                setattr(target, key, value)
            else:
                logger.debug(f"Ignoring unknown config key {section}.{key}")

    if data.get("timezone"):
        config.timezone = str(data["timezone"])

    return config


def load_config(config_file: Path | None = None, include_env: bool = True) -> DuelStatsConfig:
    """
    Load configuration from all sources.

    Args:
        config_file: Explicit path to a config file (optional)
        include_env: Whether to include environment variables

    Returns:
        Merged DuelStatsConfig
    """
    config_data: dict[str, Any] = {}

    if config_file:
        config_data = load_config_file(config_file)
        logger.info(f"Loaded config from: {config_file}")
    else:
        for path in get_default_config_paths():
            if path.exists():
                config_data = load_config_file(path)
                logger.info(f"Loaded config from: {path}")
                break

    if include_env:
        env_config = load_env_config()
        config_data = merge_configs(config_data, env_config)

    return dict_to_config(config_data)


# ============================================================================
# Configuration Saving
# ============================================================================


def config_to_dict(config: DuelStatsConfig) -> dict[str, Any]:
    """Convert DuelStatsConfig to a dictionary."""
    return asdict(config)


def save_config(config: DuelStatsConfig, path: Path) -> None:
    """
    Save configuration to a file.

    Args:
        config: Configuration to save
        path: Path to save to (format detected from extension)
    """
    data = config_to_dict(config)
    suffix = path.suffix.lower()

    if suffix in (".yaml", ".yml"):
        import yaml

        with open(path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

    elif suffix == ".toml":
        import toml

        with open(path, "w") as f:
            toml.dump(data, f)

    elif suffix == ".json":
        with open(path, "w") as f:
            json.dump(data, f, indent=2)

    else:
        raise ValueError(f"Unknown config format: {suffix}")

    logger.info(f"Saved config to: {path}")


def setup_logging(config: LoggingConfig) -> None:
    """Configure the root logger from a LoggingConfig."""
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if config.file:
        handlers.append(logging.FileHandler(config.file))

    logging.basicConfig(
        level=getattr(logging, str(config.level).upper(), logging.INFO),
        format=config.format,
        handlers=handlers,
        force=True,
    )


# ============================================================================
# Configuration Templates
# ============================================================================

DEFAULT_CONFIG_YAML = """# duelstats configuration

# Monthly archive settings
data:
  data_dir: data/games
  speed: blitz

# Session clustering (gap is capped at 120 minutes)
sessions:
  max_gap_minutes: 15

# Aggregate statistics
stats:
  time_pressure_seconds: 30

# Interesting-game rankings
highlights:
  top_n: 10

# In-memory caches
cache:
  filter_capacity: 20
  memo_flush_threshold: 10000

# Export settings
export:
  default_format: json
  json_indent: 2
  csv_delimiter: ","

# Logging settings
logging:
  level: INFO
  # file: /path/to/duelstats.log

# Calendar-day logic zone (omit for system local time)
# timezone: Europe/Berlin
"""


def generate_default_config(path: Path) -> None:
    """Generate a default configuration file."""
    suffix = path.suffix.lower()

    if suffix in (".yaml", ".yml"):
        path.write_text(DEFAULT_CONFIG_YAML)
    else:
        save_config(DuelStatsConfig(), path)

    logger.info(f"Generated default config at: {path}")
