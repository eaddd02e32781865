"""Environment variable reader with dependency injection support.

This module provides the EnvReader class for reading and parsing environment
variables with type conversion and validation. It accepts an optional env
mapping so tests do not have to modify os.environ.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

logger = logging.getLogger(__name__)


class EnvReader:
    """Environment variable reader with type conversion and validation.

    Example:
        reader = EnvReader(env={"FFPIPE_LOG_LEVEL": "debug"})
        level = reader.get_str("FFPIPE_LOG_LEVEL", "warning")  # "debug"
    """

    def __init__(self, env: Mapping[str, str] | None = None) -> None:
        """Initialize the environment reader.

        Args:
            env: Optional mapping to use instead of os.environ.
        """
        self._env: Mapping[str, str] = env if env is not None else os.environ

    def get_str(self, var: str, default: str | None = None) -> str | None:
        """Get a string from environment variable, or ``default`` if unset."""
        value = self._env.get(var)
        if value is None:
            return default
        return value

    def get_bool(self, var: str, default: bool = False) -> bool:
        """Get a boolean from environment variable.

        "true", "1", "yes" and "on" (any case) are true; anything else set
        is false.
        """
        value = self._env.get(var)
        if value is None:
            return default
        return value.strip().lower() in ("true", "1", "yes", "on")

    def get_path(self, var: str, must_exist: bool = False) -> Path | None:
        """Get a path from environment variable.

        Args:
            var: Environment variable name.
            must_exist: If True, return None (with a warning) when the path
                does not exist.

        Returns:
            Expanded path, or None if unset, empty or missing.
        """
        value = self._env.get(var)
        if not value:
            return None
        path = Path(value).expanduser()
        if must_exist and not path.exists():
            logger.warning(
                "Environment variable %s points to non-existent path: %s",
                var,
                value,
            )
            return None
        return path
