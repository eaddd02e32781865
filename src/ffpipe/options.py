"""Options that configure an ffmpeg invocation before it starts.

An option is anything with an ``apply(job)`` method. :class:`Transcoder`
creates a :class:`PendingJob` for every invocation and applies its options
to it in order; the first option that raises aborts the launch before any
process exists. Options hold configuration only and may be reused across
invocations.

:class:`~ffpipe.inputs.Input` and :class:`~ffpipe.outputs.Output` are
options too. This module holds the generic ones that act on the command as
a whole.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import IO, TYPE_CHECKING, BinaryIO, Protocol

from ffpipe.process import Process

if TYPE_CHECKING:
    from ffpipe.tools import ToolPaths


class Option(Protocol):
    """Protocol for transcoder options."""

    def apply(self, job: PendingJob) -> None:
        """Render this option into the pending invocation.

        Args:
            job: The invocation being assembled.

        Raises:
            FfpipeError: If the option cannot be rendered. Launch is aborted
                and the exception reaches the caller of ``transcode``.
        """
        ...


class PendingJob:
    """An ffmpeg invocation under construction.

    Attributes:
        process: The not yet started process; arguments accumulate on it.
        tools: Tool paths for options that need to run ffprobe (None means
            the process-wide default).
        duration: Longest duration declared by any input so far.
        stderr_tees: Binary sinks that receive a raw copy of stderr.
        log_writers: Text sinks that receive each diagnostic line.
    """

    def __init__(self, process: Process, tools: ToolPaths | None = None) -> None:
        self.process = process
        self.tools = tools
        self.duration = timedelta(0)
        self.stderr_tees: list[BinaryIO] = []
        self.log_writers: list[IO[str]] = []

    @property
    def args(self) -> list[str]:
        return self.process.args

    def append_args(self, *args: str) -> None:
        self.process.append_args(*args)

    @property
    def stdin(self) -> BinaryIO | None:
        return self.process.stdin

    @stdin.setter
    def stdin(self, stream: BinaryIO | None) -> None:
        self.process.stdin = stream

    @property
    def stdout(self) -> IO[bytes] | None:
        return self.process.stdout

    @stdout.setter
    def stdout(self, stream: IO[bytes] | None) -> None:
        self.process.stdout = stream

    def declare_duration(self, duration: timedelta) -> None:
        """Record an input duration; the longest one wins."""
        if duration > self.duration:
            self.duration = duration


@dataclass(frozen=True)
class VideoFilter:
    chain: str

    def apply(self, job: PendingJob) -> None:
        job.append_args("-lavfi", self.chain)


@dataclass(frozen=True)
class Discard:
    def apply(self, job: PendingJob) -> None:
        job.append_args("-f", "null", "-")


@dataclass(frozen=True)
class MapStream:
    index: int

    def apply(self, job: PendingJob) -> None:
        job.append_args("-map", str(self.index))


@dataclass(frozen=True)
class MapMetadata:
    index: int

    def apply(self, job: PendingJob) -> None:
        job.append_args("-map_metadata", str(self.index))


@dataclass(frozen=True)
class StreamDisposition:
    index: int
    value: str

    def apply(self, job: PendingJob) -> None:
        job.append_args(f"-disposition:{self.index}", self.value)


@dataclass(frozen=True)
class StderrTee:
    writer: BinaryIO

    def apply(self, job: PendingJob) -> None:
        job.stderr_tees.append(self.writer)


@dataclass(frozen=True)
class LogWriter:
    writer: IO[str]

    def apply(self, job: PendingJob) -> None:
        job.log_writers.append(self.writer)


def video_filter(chain: str) -> Option:
    """Run the filter graph ``chain`` (``-lavfi``).

    The chain is passed to ffmpeg verbatim; a malformed chain only shows up
    as a failed job.
    """
    return VideoFilter(chain)


def discard() -> Option:
    """Decode everything and throw the output away (``-f null -``)."""
    return Discard()


def map_stream(index: int) -> Option:
    """Select input stream ``index`` for the output (``-map``)."""
    return MapStream(index)


def map_metadata(index: int) -> Option:
    """Copy global metadata from input ``index`` (``-map_metadata``)."""
    return MapMetadata(index)


def disposition(index: int, value: str) -> Option:
    """Set the disposition of output stream ``index``, e.g. ``"default"``."""
    return StreamDisposition(index, value)


def stderr_tee(writer: BinaryIO) -> Option:
    """Copy ffmpeg's raw stderr, progress included, to ``writer``."""
    return StderrTee(writer)


def log_writer(writer: IO[str]) -> Option:
    """Write each diagnostic line (not progress or stats) to ``writer``."""
    return LogWriter(writer)
