"""Fixtures for CLI tests."""

import logging
from collections.abc import Iterator

import pytest
from click.testing import CliRunner


@pytest.fixture
def runner() -> CliRunner:
    """Create a CLI runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def reset_root_logger() -> Iterator[None]:
    """Undo the logging setup done by the main command group."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    yield
    root.handlers[:] = original_handlers
    root.setLevel(original_level)
