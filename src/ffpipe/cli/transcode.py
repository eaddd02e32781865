"""ffpipe check, copy and transcode commands."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import NoReturn

import click

from ffpipe.cli.exit_codes import ExitCode
from ffpipe.cli.output import error_exit
from ffpipe.exceptions import (
    FfpipeError,
    LaunchError,
    ProbeError,
    TimecodeParseError,
    TranscodeError,
)
from ffpipe.inputs import Input, InputOption, duration, input_filename, start
from ffpipe.jobs import TranscodeJob, Transcoder
from ffpipe.options import Option, video_filter
from ffpipe.outputs import (
    Output,
    OutputOption,
    copy_audio,
    default_h264,
    default_matroska,
    output_filename,
    output_format,
)
from ffpipe.timecode import parse_timecode
from ffpipe.transcoders import CheckTranscoder, CopyTranscoder

logger = logging.getLogger(__name__)


def _transcoder(ctx: click.Context) -> Transcoder:
    return Transcoder(tools=ctx.obj["tools"])


def _launch_error_exit(e: FfpipeError) -> NoReturn:
    if isinstance(e, LaunchError):
        error_exit(str(e), ExitCode.TOOL_NOT_FOUND)
    if isinstance(e, ProbeError):
        error_exit(str(e), ExitCode.PROBE_FAILED)
    error_exit(str(e), ExitCode.GENERAL_ERROR)


def _run_with_progress(job: TranscodeJob, label: str) -> None:
    """Show a progress bar until ``job`` finishes, cancelling it on Ctrl-C."""
    try:
        with click.progressbar(length=100, label=label) as bar:
            shown = 0
            for snapshot in job.progress:
                percent = int(snapshot.percent)
                if percent > shown:
                    bar.update(percent - shown)
                    shown = percent
        job.wait()
    except KeyboardInterrupt:
        job.cancel()
        try:
            job.wait()
        except TranscodeError as e:
            logger.debug("Cancelled job ended with: %s", e)
        error_exit("interrupted", ExitCode.INTERRUPTED)
    except TranscodeError as e:
        error_exit(str(e), ExitCode.TRANSCODE_FAILED)


def _parse_timecode_option(
    ctx: click.Context, param: click.Parameter, value: str | None
) -> timedelta | None:
    if value is None:
        return None
    try:
        return parse_timecode(value)
    except TimecodeParseError as e:
        raise click.BadParameter(str(e)) from e


@click.command("check")
@click.argument("filename")
@click.pass_context
def check_command(ctx: click.Context, filename: str) -> None:
    """Decode FILENAME completely and report any errors ffmpeg finds."""
    try:
        job = CheckTranscoder(_transcoder(ctx)).check(Input(input_filename(filename)))
    except FfpipeError as e:
        _launch_error_exit(e)

    try:
        job.wait()
    except TranscodeError as e:
        if e.log:
            click.echo(e.log)
        error_exit(str(e), ExitCode.TRANSCODE_FAILED)

    log = job.log()
    if log:
        click.echo(log)
    else:
        click.echo(f"{filename}: OK")


@click.command("copy")
@click.argument("source")
@click.argument("destination")
@click.pass_context
def copy_command(ctx: click.Context, source: str, destination: str) -> None:
    """Remux SOURCE into DESTINATION without re-encoding."""
    try:
        job = CopyTranscoder(_transcoder(ctx)).transcode(
            Input(input_filename(source)), Output(output_filename(destination))
        )
    except FfpipeError as e:
        _launch_error_exit(e)

    _run_with_progress(job, f"Copying {source}")


@click.command("transcode")
@click.argument("source")
@click.argument("destination")
@click.option(
    "--filter",
    "filter_chain",
    default=None,
    help="Video filter chain, passed to ffmpeg as -lavfi.",
)
@click.option("--format", "fmt", default=None, help="Force the output container.")
@click.option("--h264", is_flag=True, help="Encode video with libx264.")
@click.option(
    "--matroska",
    is_flag=True,
    help="Write a Matroska container and keep chapters.",
)
@click.option(
    "--copy-audio/--encode-audio",
    "keep_audio",
    default=True,
    help="Copy audio streams (default) or let ffmpeg re-encode them.",
)
@click.option(
    "--start",
    "start_at",
    callback=_parse_timecode_option,
    default=None,
    help="Start position, HH:MM:SS[.ffffff].",
)
@click.option(
    "--duration",
    "length",
    callback=_parse_timecode_option,
    default=None,
    help="Maximum length to process, HH:MM:SS[.ffffff].",
)
@click.pass_context
def transcode_command(
    ctx: click.Context,
    source: str,
    destination: str,
    filter_chain: str | None,
    fmt: str | None,
    h264: bool,
    matroska: bool,
    keep_audio: bool,
    start_at: timedelta | None,
    length: timedelta | None,
) -> None:
    """Transcode SOURCE into DESTINATION with live progress."""
    input_options: list[InputOption] = [input_filename(source)]
    if start_at is not None:
        input_options.append(start(start_at))
    if length is not None:
        input_options.append(duration(length))

    output_options: list[OutputOption] = []
    if h264:
        output_options.append(default_h264())
    if keep_audio:
        output_options.append(copy_audio())
    if matroska:
        output_options.append(default_matroska())
    if fmt:
        output_options.append(output_format(fmt))
    output_options.append(output_filename(destination))

    options: list[Option] = [Input(*input_options)]
    if filter_chain:
        options.append(video_filter(filter_chain))
    options.append(Output(*output_options))

    try:
        job = _transcoder(ctx).transcode(*options)
    except FfpipeError as e:
        _launch_error_exit(e)

    _run_with_progress(job, f"Transcoding {source}")

