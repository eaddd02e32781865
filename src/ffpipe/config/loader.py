"""Configuration loader with precedence handling.

Configuration is loaded with the following precedence (highest to lowest):
1. CLI arguments (passed directly to functions)
2. Environment variables (FFPIPE_*)
3. Config file (~/.ffpipe/config.toml)
4. Default values

Environment variables:
- FFPIPE_CONFIG_PATH: Path to config file (overrides default location)
- FFPIPE_FFMPEG_PATH: Path to ffmpeg executable
- FFPIPE_FFPROBE_PATH: Path to ffprobe executable
- FFPIPE_LOG_LEVEL: debug, info, warning or error
- FFPIPE_LOG_FORMAT: text or json
- FFPIPE_LOG_FILE: Path to a log file
- FFPIPE_LOG_INCLUDE_STDERR: Also log to stderr when logging to a file
"""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any

from ffpipe.config.env import EnvReader
from ffpipe.config.models import (
    FfpipeConfig,
    InterlaceConfig,
    LoggingConfig,
    ToolPathsConfig,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path.home() / ".ffpipe"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.toml"


def get_default_config_path(env: EnvReader | None = None) -> Path:
    """Get the config file path, honoring FFPIPE_CONFIG_PATH."""
    env = env or EnvReader()
    return env.get_path("FFPIPE_CONFIG_PATH") or DEFAULT_CONFIG_FILE


def load_config_file(path: Path) -> dict[str, Any]:
    """Load configuration from a TOML file.

    Args:
        path: Path to config file.

    Returns:
        Parsed configuration dict. Empty dict if the file doesn't exist or
        cannot be parsed.
    """
    if not path.exists():
        logger.debug("Config file not found: %s", path)
        return {}

    try:
        with path.open("rb") as f:
            config = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning("Failed to load config file %s: %s", path, e)
        return {}

    logger.debug("Loaded config from %s", path)
    return config


def _file_path(section: dict[str, Any], key: str) -> Path | None:
    value = section.get(key)
    return Path(value).expanduser() if value else None


def get_config(
    config_path: Path | None = None,
    *,
    ffmpeg_path: Path | None = None,
    ffprobe_path: Path | None = None,
    env: EnvReader | None = None,
) -> FfpipeConfig:
    """Build the configuration with full precedence handling.

    Args:
        config_path: Path to config file (overrides FFPIPE_CONFIG_PATH).
        ffmpeg_path: CLI override for the ffmpeg path.
        ffprobe_path: CLI override for the ffprobe path.
        env: Environment reader; defaults to os.environ.

    Returns:
        FfpipeConfig with merged configuration.
    """
    env = env or EnvReader()
    file_config = load_config_file(config_path or get_default_config_path(env))

    tools_file = file_config.get("tools", {})
    tools = ToolPathsConfig(
        ffmpeg=(
            ffmpeg_path
            or env.get_path("FFPIPE_FFMPEG_PATH", must_exist=True)
            or _file_path(tools_file, "ffmpeg")
        ),
        ffprobe=(
            ffprobe_path
            or env.get_path("FFPIPE_FFPROBE_PATH", must_exist=True)
            or _file_path(tools_file, "ffprobe")
        ),
    )

    logging_file = file_config.get("logging", {})
    logging_config = LoggingConfig(
        level=env.get_str("FFPIPE_LOG_LEVEL") or logging_file.get("level", "warning"),
        file=env.get_path("FFPIPE_LOG_FILE") or _file_path(logging_file, "file"),
        format=env.get_str("FFPIPE_LOG_FORMAT") or logging_file.get("format", "text"),
        include_stderr=env.get_bool(
            "FFPIPE_LOG_INCLUDE_STDERR",
            logging_file.get("include_stderr", False),
        ),
        max_bytes=logging_file.get("max_bytes", 10_485_760),
        backup_count=logging_file.get("backup_count", 5),
    )

    interlace_file = file_config.get("interlace", {})
    interlace = InterlaceConfig(
        start_percent=interlace_file.get("start_percent", 35),
        sample_seconds=interlace_file.get("sample_seconds", 35),
        min_frames=interlace_file.get("min_frames", 250),
    )

    return FfpipeConfig(tools=tools, logging=logging_config, interlace=interlace)
