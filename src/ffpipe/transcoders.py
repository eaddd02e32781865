"""Ready-made pipelines built on :class:`~ffpipe.jobs.Transcoder`."""

from __future__ import annotations

from ffpipe.inputs import Input
from ffpipe.jobs import TranscodeJob, Transcoder
from ffpipe.options import discard
from ffpipe.outputs import Output, copy_output


class CopyTranscoder:
    """Remuxes audio and video without re-encoding."""

    def __init__(self, transcoder: Transcoder | None = None) -> None:
        self.transcoder = transcoder or Transcoder()

    def transcode(self, inp: Input, output: Output) -> TranscodeJob:
        return self.transcoder.transcode(inp, output.with_options(copy_output()))


class CheckTranscoder:
    """Decodes an input completely to find errors in it."""

    def __init__(self, transcoder: Transcoder | None = None) -> None:
        self.transcoder = transcoder or Transcoder()

    def check(self, inp: Input) -> TranscodeJob:
        return self.transcoder.transcode(inp, discard())


def copy(
    inp: Input, output: Output, transcoder: Transcoder | None = None
) -> TranscodeJob:
    """Start copying the audio and video streams of ``inp`` into ``output``."""
    return CopyTranscoder(transcoder).transcode(inp, output)


def check(inp: Input, transcoder: Transcoder | None = None) -> str:
    """Decode ``inp`` to a null output and return ffmpeg's diagnostics.

    Returns:
        The job log; empty for a clean file.

    Raises:
        TranscodeError: If ffmpeg fails. Its ``log`` attribute holds the
            full diagnostics.
    """
    job = CheckTranscoder(transcoder).check(inp)
    job.wait()
    return job.log()
