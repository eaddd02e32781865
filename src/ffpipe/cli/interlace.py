"""ffpipe detect-interlace command."""

from __future__ import annotations

import click

from ffpipe.cli.exit_codes import ExitCode
from ffpipe.cli.output import error_exit
from ffpipe.exceptions import (
    FfpipeError,
    LaunchError,
    ProbeError,
    StreamTooShortError,
    TranscodeError,
)
from ffpipe.inputs import Input, input_filename
from ffpipe.interlace import InterlaceDetector
from ffpipe.jobs import Transcoder


@click.command("detect-interlace")
@click.argument("filename")
@click.pass_context
def detect_interlace_command(ctx: click.Context, filename: str) -> None:
    """Report whether FILENAME is progressive, interlaced or telecined.

    Samples a window starting part way into the video (35% and 35 seconds
    by default, see the [interlace] config section).
    """
    detector = InterlaceDetector(
        Transcoder(tools=ctx.obj["tools"]), ctx.obj["config"].interlace
    )
    try:
        verdict = detector.detect(Input(input_filename(filename)))
    except StreamTooShortError as e:
        error_exit(str(e), ExitCode.STREAM_TOO_SHORT)
    except LaunchError as e:
        error_exit(str(e), ExitCode.TOOL_NOT_FOUND)
    except ProbeError as e:
        error_exit(str(e), ExitCode.PROBE_FAILED)
    except TranscodeError as e:
        error_exit(str(e), ExitCode.TRANSCODE_FAILED)
    except FfpipeError as e:
        error_exit(str(e), ExitCode.GENERAL_ERROR)

    click.echo(f"{filename}: {verdict}")
