"""Configuration data models."""

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class ToolPathsConfig:
    """Configuration for external tool paths.

    All paths are optional. If not specified, tools are looked up in PATH.
    """

    ffmpeg: Path | None = None
    ffprobe: Path | None = None


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    # Log level: debug, info, warning, error
    level: str = "warning"

    # Log file path (None = stderr only)
    file: Path | None = None

    # Log format: text or json
    format: str = "text"

    # Also log to stderr when file is set
    include_stderr: bool = False

    # Rotation threshold in bytes (default 10MB)
    max_bytes: int = 10_485_760

    # Number of rotated files to keep
    backup_count: int = 5

    def __post_init__(self) -> None:
        """Validate configuration."""
        valid_levels = {"debug", "info", "warning", "error"}
        if self.level.lower() not in valid_levels:
            raise ValueError(f"level must be one of {valid_levels}, got {self.level}")
        valid_formats = {"text", "json"}
        if self.format.lower() not in valid_formats:
            raise ValueError(
                f"format must be one of {valid_formats}, got {self.format}"
            )


@dataclass
class InterlaceConfig:
    """Tunables for interlace detection."""

    # Where to start sampling, as a percentage of the stream duration
    start_percent: int = 35

    # Maximum number of seconds to analyze
    sample_seconds: int = 35

    # Fewer sampled frames than this cannot be classified
    min_frames: int = 250

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not 0 <= self.start_percent < 100:
            raise ValueError(
                f"start_percent must be in [0, 100), got {self.start_percent}"
            )
        if self.sample_seconds <= 0:
            raise ValueError(
                f"sample_seconds must be positive, got {self.sample_seconds}"
            )
        if self.min_frames < 1:
            raise ValueError(f"min_frames must be at least 1, got {self.min_frames}")


@dataclass
class FfpipeConfig:
    """Top-level ffpipe configuration."""

    tools: ToolPathsConfig = field(default_factory=ToolPathsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    interlace: InterlaceConfig = field(default_factory=InterlaceConfig)
