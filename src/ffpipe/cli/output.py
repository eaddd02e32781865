"""Shared output helpers for ffpipe commands."""

from __future__ import annotations

import sys
from typing import NoReturn

import click

from ffpipe.cli.exit_codes import ExitCode


def error_exit(message: str, code: ExitCode | int = ExitCode.GENERAL_ERROR) -> NoReturn:
    """Print ``message`` to stderr and exit with ``code``."""
    click.echo(f"Error: {message}", err=True)
    sys.exit(int(code))
