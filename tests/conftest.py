"""Shared test fixtures for ffpipe."""

import json
import os
import sys
import textwrap
from collections.abc import Callable, Iterator
from pathlib import Path
from unittest.mock import patch

import pytest

from ffpipe.process import Command
from ffpipe.tools import ToolPaths, set_tools

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def load_ffprobe_fixture(name: str) -> dict:
    """Load an ffprobe JSON fixture by name.

    Args:
        name: Name of the fixture file (without .json extension).

    Returns:
        Parsed JSON data from the fixture.
    """
    fixture_path = FIXTURES_DIR / "ffprobe" / f"{name}.json"
    return json.loads(fixture_path.read_text())


@pytest.fixture
def ffprobe_fixtures_dir() -> Path:
    """Return the path to the ffprobe fixtures directory."""
    return FIXTURES_DIR / "ffprobe"


@pytest.fixture
def interlaced_dvd_fixture() -> dict:
    """Load the interlaced DVD ffprobe fixture."""
    return load_ffprobe_fixture("interlaced_dvd")


@pytest.fixture
def python_command() -> Callable[[str], Command]:
    """Build a Command that runs a Python snippet in place of ffmpeg.

    Arguments appended by options end up in the snippet's ``sys.argv[1:]``.
    """

    def factory(script: str) -> Command:
        return Command(sys.executable, ("-c", textwrap.dedent(script)))

    return factory


@pytest.fixture
def fake_tools(tmp_path: Path) -> ToolPaths:
    """ToolPaths pointing at files that exist but are never executed."""
    ffmpeg = tmp_path / "ffmpeg"
    ffprobe = tmp_path / "ffprobe"
    ffmpeg.touch()
    ffprobe.touch()
    return ToolPaths(ffmpeg=ffmpeg, ffprobe=ffprobe)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path) -> Iterator[Path]:
    """Point ffpipe at an empty config and forget resolved tool paths.

    Keeps a developer's ~/.ffpipe/config.toml and FFPIPE_* variables from
    leaking into tests.
    """
    config_path = tmp_path / "config.toml"
    env = {
        key: value for key, value in os.environ.items() if not key.startswith("FFPIPE_")
    }
    env["FFPIPE_CONFIG_PATH"] = str(config_path)
    with patch.dict(os.environ, env, clear=True):
        set_tools(None)
        yield config_path
    set_tools(None)
