"""External tool resolution.

ffmpeg and ffprobe are looked up once per process and captured in an
immutable :class:`ToolPaths` value. Transcoders and the probe take a
``ToolPaths`` explicitly; :func:`get_tools` provides the process-wide
default, resolved lazily from configuration and PATH.
"""

from __future__ import annotations

import logging
import re
import shutil
import subprocess  # nosec B404 - subprocess is required for version detection
import threading
from dataclasses import dataclass
from pathlib import Path

from ffpipe.config.models import ToolPathsConfig
from ffpipe.exceptions import ToolNotFoundError
from ffpipe.process import Command

logger = logging.getLogger(__name__)

# Non-interactive, banner-free, machine readable progress on stderr
FFMPEG_ARGS: tuple[str, ...] = (
    "-hide_banner",
    "-nostdin",
    "-nostats",
    "-progress",
    "pipe:2",
)

FFPROBE_ARGS: tuple[str, ...] = (
    "-hide_banner",
    "-v",
    "error",
    "-print_format",
    "json",
    "-sexagesimal",
    "-show_format",
    "-show_streams",
    "-show_chapters",
    "-show_programs",
)

# Timeout for version detection commands (seconds)
DETECTION_TIMEOUT = 10


@dataclass(frozen=True)
class ToolPaths:
    """Resolved locations of the external tools."""

    ffmpeg: Path | None = None
    ffprobe: Path | None = None

    def require(self, name: str) -> Path:
        """Return the path of ``name``.

        Raises:
            ToolNotFoundError: If the tool was not found.
        """
        path = getattr(self, name, None)
        if path is None:
            raise ToolNotFoundError(
                name,
                f"Required tool not available: {name}. Install ffmpeg or set "
                f"FFPIPE_{name.upper()}_PATH.",
            )
        return path

    def ffmpeg_command(self) -> Command:
        """The ffmpeg command with its fixed argument prefix."""
        return Command(str(self.require("ffmpeg")), FFMPEG_ARGS)

    def ffprobe_command(self) -> Command:
        """The ffprobe command with its fixed argument prefix."""
        return Command(str(self.require("ffprobe")), FFPROBE_ARGS)


def _find_tool(name: str, configured_path: Path | None = None) -> Path | None:
    """Find a tool executable, preferring a configured path."""
    if configured_path:
        if configured_path.is_file():
            return configured_path
        logger.warning(
            "Configured path for %s is not a file: %s", name, configured_path
        )

    which_result = shutil.which(name)
    if which_result:
        return Path(which_result)

    logger.warning("%s: no such file or directory", name)
    return None


def resolve_tools(config: ToolPathsConfig | None = None) -> ToolPaths:
    """Look up ffmpeg and ffprobe.

    Args:
        config: Configured paths; unset entries fall back to PATH.

    Returns:
        ToolPaths with None for tools that could not be found.
    """
    config = config or ToolPathsConfig()
    return ToolPaths(
        ffmpeg=_find_tool("ffmpeg", config.ffmpeg),
        ffprobe=_find_tool("ffprobe", config.ffprobe),
    )


_tools: ToolPaths | None = None
_tools_lock = threading.Lock()


def get_tools() -> ToolPaths:
    """Return the process-wide tool paths, resolving them on first use."""
    global _tools

    if _tools is not None:
        return _tools

    with _tools_lock:
        if _tools is None:
            from ffpipe.config import get_config

            _tools = resolve_tools(get_config().tools)
        return _tools


def set_tools(tools: ToolPaths | None) -> None:
    """Replace the process-wide tool paths (None forces re-resolution)."""
    global _tools
    with _tools_lock:
        _tools = tools


def parse_version_string(version_str: str) -> tuple[int, ...] | None:
    """Parse a version string into a comparable tuple.

    - "6.1.1" -> (6, 1, 1)
    - "n6.1.1" -> (6, 1, 1)  (ffmpeg nightlies)

    Returns:
        Tuple of version components, or None if parsing fails.
    """
    if not version_str:
        return None

    match = re.match(r"(\d+(?:\.\d+)*)", version_str.lstrip("nv"))
    if not match:
        return None
    return tuple(int(p) for p in match.group(1).split("."))


def detect_version(path: Path) -> str | None:
    """Run ``<tool> -version`` and return the reported version string."""
    try:
        result = subprocess.run(  # nosec B603 - path is a resolved tool path
            [str(path), "-version"],
            capture_output=True,
            text=True,
            errors="replace",
            timeout=DETECTION_TIMEOUT,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.warning("Version detection failed for %s: %s", path, e)
        return None

    match = re.search(r"version\s+(\S+)", result.stdout)
    return match.group(1) if match else None
