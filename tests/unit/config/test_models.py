"""Tests for configuration data models."""

from __future__ import annotations

import pytest

from ffpipe.config.models import FfpipeConfig, InterlaceConfig, LoggingConfig


class TestLoggingConfig:
    """Tests for LoggingConfig validation."""

    def test_defaults(self) -> None:
        config = LoggingConfig()
        assert config.level == "warning"
        assert config.format == "text"
        assert config.file is None

    def test_level_case_insensitive(self) -> None:
        """Should accept levels in any case."""
        assert LoggingConfig(level="DEBUG").level == "DEBUG"

    def test_invalid_level(self) -> None:
        with pytest.raises(ValueError, match="level must be one of"):
            LoggingConfig(level="trace")

    def test_invalid_format(self) -> None:
        with pytest.raises(ValueError, match="format must be one of"):
            LoggingConfig(format="xml")


class TestInterlaceConfig:
    """Tests for InterlaceConfig validation."""

    def test_defaults(self) -> None:
        config = InterlaceConfig()
        assert (config.start_percent, config.sample_seconds, config.min_frames) == (
            35,
            35,
            250,
        )

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"start_percent": -1},
            {"start_percent": 100},
            {"sample_seconds": 0},
            {"min_frames": 0},
        ],
    )
    def test_invalid_values(self, kwargs: dict) -> None:
        with pytest.raises(ValueError):
            InterlaceConfig(**kwargs)


class TestFfpipeConfig:
    """Tests for the top-level config."""

    def test_sections_are_independent(self) -> None:
        """Should give each instance its own section objects."""
        first, second = FfpipeConfig(), FfpipeConfig()
        first.logging.level = "debug"
        assert second.logging.level == "warning"
