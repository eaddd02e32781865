"""ffpipe doctor command for checking external tool health."""

from __future__ import annotations

import json
import sys

import click

from ffpipe.cli.exit_codes import ExitCode
from ffpipe.tools import ToolPaths, detect_version

TOOL_NAMES = ("ffmpeg", "ffprobe")


def _format_status(available: bool) -> str:
    """Format status for display."""
    return "✓" if available else "✗"


def _collect(tools: ToolPaths) -> dict[str, dict[str, str | None]]:
    report: dict[str, dict[str, str | None]] = {}
    for name in TOOL_NAMES:
        path = getattr(tools, name)
        report[name] = {
            "path": str(path) if path else None,
            "version": detect_version(path) if path else None,
        }
    return report


@click.command("doctor")
@click.option(
    "--json",
    "json_output",
    is_flag=True,
    help="Output results as JSON",
)
@click.pass_context
def doctor_command(ctx: click.Context, json_output: bool) -> None:
    """Check that ffmpeg and ffprobe can be found.

    Exit codes:
      0 - Both tools available
      3 - A tool is missing
    """
    report = _collect(ctx.obj["tools"])
    missing = [name for name, info in report.items() if info["path"] is None]

    if json_output:
        click.echo(json.dumps(report, indent=2))
    else:
        for name, info in report.items():
            status = _format_status(info["path"] is not None)
            version = info["version"] or "unknown version"
            if info["path"] is None:
                click.echo(f"  {status} {name}: not found")
                click.echo("    └─ Install ffmpeg: https://ffmpeg.org/download.html")
            else:
                click.echo(f"  {status} {name}: {version} ({info['path']})")

    if missing:
        sys.exit(int(ExitCode.TOOL_NOT_FOUND))
