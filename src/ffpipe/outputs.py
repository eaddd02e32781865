"""Transcoder outputs.

An :class:`Output` is an option that renders the codec, container and
destination of the transcode. Output options fill in its fields; the
arguments are always emitted as video codec, audio codec, subtitle codec,
format, then destination, regardless of the order the options were given.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import IO

from ffpipe.options import PendingJob

OutputOption = Callable[["Output"], None]


class Output:
    """Codec, container and destination of a transcode."""

    def __init__(self, *options: OutputOption) -> None:
        self.options: tuple[OutputOption, ...] = options
        self.filename: str | None = None
        self.writer: IO[bytes] | None = None
        self.video_codec = ""
        self.video_codec_options: list[str] = []
        self.audio_codec = ""
        self.audio_codec_options: list[str] = []
        self.subtitle_codec = ""
        self.format = ""
        self.format_options: list[str] = []

    def with_options(self, *options: OutputOption) -> Output:
        """Return a new output with ``options`` appended."""
        return Output(*self.options, *options)

    def render(self) -> tuple[list[str], IO[bytes] | None]:
        """Run the output options and return (arguments, stdout sink)."""
        for option in self.options:
            option(self)

        args: list[str] = []
        if self.video_codec:
            args.extend(["-c:v", self.video_codec, *self.video_codec_options])
        if self.audio_codec:
            args.extend(["-c:a", self.audio_codec, *self.audio_codec_options])
        if self.subtitle_codec:
            args.extend(["-c:s", self.subtitle_codec])
        if self.format:
            args.extend(["-f", self.format, *self.format_options])

        if self.filename:
            args.extend(["-y", self.filename])
            return args, None
        if self.writer is not None:
            args.append("-")
            return args, self.writer
        return args, None

    def apply(self, job: PendingJob) -> None:
        args, writer = self.render()
        job.append_args(*args)
        if writer is not None:
            job.stdout = writer

    def __repr__(self) -> str:
        return f"Output({self.filename or self.writer!r})"


def default_h264() -> OutputOption:
    """Encode video with libx264, medium preset, film tuning."""

    def option(out: Output) -> None:
        out.video_codec = "libx264"
        out.video_codec_options = ["-preset", "medium", "-tune", "film"]

    return option


def default_matroska() -> OutputOption:
    """Write a Matroska container, keeping chapters from the first input."""

    def option(out: Output) -> None:
        out.format = "matroska"
        out.format_options = ["-map_chapters", "0"]

    return option


def output_filename(filename: str) -> OutputOption:
    """Write to ``filename``, overwriting it if it exists."""

    def option(out: Output) -> None:
        out.filename = filename

    return option


def output_writer(writer: IO[bytes]) -> OutputOption:
    """Stream the output to ``writer`` through ffmpeg's stdout.

    ffmpeg cannot guess a container for a pipe, so combine this with
    :func:`output_format` or :func:`default_matroska`.
    """

    def option(out: Output) -> None:
        out.writer = writer

    return option


def copy_audio() -> OutputOption:
    """Copy audio streams without re-encoding."""

    def option(out: Output) -> None:
        out.audio_codec = "copy"

    return option


def copy_subtitles() -> OutputOption:
    """Copy subtitle streams without re-encoding."""

    def option(out: Output) -> None:
        out.subtitle_codec = "copy"

    return option


def copy_output() -> OutputOption:
    """Copy both audio and video streams without re-encoding."""

    def option(out: Output) -> None:
        out.audio_codec = "copy"
        out.video_codec = "copy"

    return option


def output_format(fmt: str) -> OutputOption:
    """Force the container format. The name is not validated."""

    def option(out: Output) -> None:
        out.format = fmt

    return option
