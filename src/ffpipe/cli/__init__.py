"""Command line interface for ffpipe."""

from __future__ import annotations

import logging
from pathlib import Path

import click

from ffpipe.config import build_logging_config, get_config
from ffpipe.logging import configure_logging
from ffpipe.tools import resolve_tools

logger = logging.getLogger(__name__)


@click.group()
@click.version_option(package_name="ffpipe")
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default=None,
    help="Override log level (default: warning).",
)
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Override log file path.",
)
@click.option(
    "--log-json",
    is_flag=True,
    default=False,
    help="Use JSON log format.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Config file to use instead of ~/.ffpipe/config.toml.",
)
@click.pass_context
def main(
    ctx: click.Context,
    log_level: str | None,
    log_file: Path | None,
    log_json: bool,
    config_path: Path | None,
) -> None:
    """Run, monitor and inspect ffmpeg jobs."""
    ctx.ensure_object(dict)

    config = get_config(config_path)
    configure_logging(
        build_logging_config(
            config.logging,
            level=log_level,
            file=log_file,
            format="json" if log_json else None,
        )
    )
    ctx.obj.setdefault("config", config)

    # Preserve tool paths injected by tests
    if "tools" not in ctx.obj:
        ctx.obj["tools"] = resolve_tools(config.tools)
    logger.debug("Using tools: %s", ctx.obj["tools"])


# Defer import to avoid circular dependency
def _register_commands() -> None:
    from ffpipe.cli.doctor import doctor_command
    from ffpipe.cli.interlace import detect_interlace_command
    from ffpipe.cli.probe import probe_command
    from ffpipe.cli.transcode import check_command, copy_command, transcode_command

    main.add_command(probe_command)
    main.add_command(check_command)
    main.add_command(copy_command)
    main.add_command(transcode_command)
    main.add_command(detect_interlace_command)
    main.add_command(doctor_command)


_register_commands()
