"""Configuration management for ffpipe.

Configuration is loaded with precedence handling:
1. CLI flags (highest priority)
2. Environment variables (FFPIPE_*)
3. Config file (~/.ffpipe/config.toml)
4. Default values (lowest priority)
"""

from ffpipe.config.env import EnvReader
from ffpipe.config.loader import (
    get_config,
    get_default_config_path,
    load_config_file,
)
from ffpipe.config.logging_factory import build_logging_config
from ffpipe.config.models import (
    FfpipeConfig,
    InterlaceConfig,
    LoggingConfig,
    ToolPathsConfig,
)

__all__ = [
    "EnvReader",
    "FfpipeConfig",
    "InterlaceConfig",
    "LoggingConfig",
    "ToolPathsConfig",
    "build_logging_config",
    "get_config",
    "get_default_config_path",
    "load_config_file",
]
