"""Transcoder inputs.

An :class:`Input` is an option that adds one ``-i`` source to the command,
along with its seek position and duration limit. It is configured by input
options, small callables that run against the input the first time it is
rendered::

    Input(input_filename("movie.mkv"), start_percent(35), duration(35 * SECOND))

Rendering probes the media where the source is a local file, so the probed
duration is available to later input options and to the job's progress
reports. The rendered arguments are cached; reusing an input does not probe
it again.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import timedelta
from typing import BinaryIO

from ffpipe.exceptions import OptionError
from ffpipe.options import PendingJob
from ffpipe.probe import MediaInfo, stat
from ffpipe.timecode import format_timecode, percent_of
from ffpipe.tools import ToolPaths

logger = logging.getLogger(__name__)

SECOND = timedelta(seconds=1)

STDIN_URL = "pipe:0"

InputOption = Callable[["Input"], None]


class Input:
    """One media source for a transcode.

    Attributes:
        url: Source passed to ``-i`` when it is not a probed file.
        start: Position to seek to before decoding (``-ss``).
        duration: Maximum length to read (``-t``); zero means no limit.
        info: Probed media descriptor, if the source was probed.
        file: Binary stream fed to ffmpeg on stdin, if any.
    """

    def __init__(self, *options: InputOption) -> None:
        self.options: tuple[InputOption, ...] = options
        self.url: str | None = None
        self.start = timedelta(0)
        self.duration = timedelta(0)
        self.info: MediaInfo | None = None
        self.file: BinaryIO | None = None
        self.tools: ToolPaths | None = None
        self._args: list[str] | None = None

    def with_options(self, *options: InputOption) -> Input:
        """Return a new, unrendered input with ``options`` appended."""
        return Input(*self.options, *options)

    @property
    def declared_duration(self) -> timedelta:
        """Length of media this input contributes to the job.

        The explicit duration limit when one is set, otherwise the probed
        duration, otherwise zero.
        """
        if self.duration > timedelta(0):
            return self.duration
        if self.info is not None:
            return self.info.duration
        return timedelta(0)

    def render(self, tools: ToolPaths | None = None) -> list[str]:
        """Run the input options once and return the input's arguments.

        Raises:
            OptionError: If an input option is misconfigured.
            ProbeError: If the source could not be probed.
        """
        if self._args is not None:
            return self._args

        self.tools = tools
        for option in self.options:
            option(self)

        args: list[str] = []
        if self.start:
            args.extend(["-ss", format_timecode(self.start)])
        if self.duration:
            args.extend(["-t", format_timecode(self.duration)])
        if self.file is not None:
            args.extend(["-i", STDIN_URL])
        elif self.url is not None:
            args.extend(["-i", self.url])
        elif self.info is not None:
            args.extend(["-i", self.info.filename])
        else:
            raise OptionError("input has no source")

        self._args = args
        return args

    def apply(self, job: PendingJob) -> None:
        job.append_args(*self.render(job.tools))
        if self.file is not None:
            job.stdin = self.file
        job.declare_duration(self.declared_duration)

    def __repr__(self) -> str:
        source = self.url or (self.info.filename if self.info else None)
        return f"Input({source!r})"


def input_filename(filename: str) -> InputOption:
    """Read from a local file, probing it with ffprobe first."""

    def option(inp: Input) -> None:
        inp.info = stat(filename, inp.tools)

    return option


def input_url(url: str) -> InputOption:
    """Read from any URL ffmpeg understands. The source is not probed."""

    def option(inp: Input) -> None:
        inp.url = url

    return option


def input_file(file: BinaryIO) -> InputOption:
    """Feed an open file to ffmpeg on stdin.

    The file is probed by name, so it must be backed by a named file.
    """

    def option(inp: Input) -> None:
        name = getattr(file, "name", None)
        if not isinstance(name, str):
            raise OptionError("input_file requires a named file")
        inp.info = stat(name, inp.tools)
        inp.file = file

    return option


def start(position: timedelta) -> InputOption:
    """Seek to ``position`` before decoding (``-ss``)."""

    def option(inp: Input) -> None:
        inp.start = position

    return option


def start_percent(percent: float) -> InputOption:
    """Seek to ``percent`` percent of the probed duration.

    Must follow an option that probes the source.
    """

    def option(inp: Input) -> None:
        if inp.info is None:
            raise OptionError("start_percent can only be used on a probed file input")
        inp.start = percent_of(inp.info.duration, percent)
        logger.debug("Starting at %s (%s%%)", inp.start, percent)

    return option


def duration(length: timedelta) -> InputOption:
    """Read at most ``length`` of the input (``-t``)."""

    def option(inp: Input) -> None:
        inp.duration = length

    return option
