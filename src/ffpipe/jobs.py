"""Launching and supervising ffmpeg jobs.

:meth:`Transcoder.transcode` renders its options into one ffmpeg command,
starts it and returns a :class:`TranscodeJob`. Each job runs two daemon
threads:

- a reader that frames and classifies ffmpeg's stderr and posts the lines
  to the job's mailbox, and
- a monitor that takes items from the mailbox one at a time, feeding
  progress lines into a :class:`~ffpipe.progress.ProgressAggregator` and
  collecting everything else as the job's log.

:meth:`TranscodeJob.cancel` posts to the same mailbox, so the monitor sees
a cancellation and the next line in whichever order they arrive, without
polling. When the monitor stops it waits for ffmpeg to exit, records the
terminal error, closes the progress feed and only then signals completion.
"""

from __future__ import annotations

import logging
import queue
import shlex
import threading
from collections.abc import Iterator
from datetime import timedelta
from typing import IO, BinaryIO, NamedTuple

from ffpipe.exceptions import ProgressParseError, TranscodeError
from ffpipe.logging.context import job_context
from ffpipe.options import Option, PendingJob
from ffpipe.process import Command, Process
from ffpipe.progress import (
    FINAL_STATS_PATTERN,
    PROGRESS_PATTERN,
    REPEAT_PATTERN,
    STATS_PATTERN,
    ClassifiedLine,
    LineClassifier,
    ProgressAggregator,
    TranscodeProgress,
)
from ffpipe.tools import ToolPaths, get_tools

logger = logging.getLogger(__name__)

# Number of trailing log lines used as the failure message
ERROR_CONTEXT_LINES = 2


class ProgressFeed:
    """Single-slot mailbox of progress snapshots.

    Publishing never blocks: a new snapshot replaces one the consumer has
    not picked up yet, so a slow consumer only ever sees the freshest
    state. Iterating yields snapshots until the job finishes.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._snapshot: TranscodeProgress | None = None
        self._closed = False

    def publish(self, snapshot: TranscodeProgress) -> None:
        """Offer a snapshot, replacing any unconsumed one."""
        with self._cond:
            if self._closed:
                return
            self._snapshot = snapshot
            self._cond.notify_all()

    def close(self) -> None:
        """Mark the feed finished. A pending snapshot can still be read."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    @property
    def closed(self) -> bool:
        return self._closed

    def get(self, timeout: float | None = None) -> TranscodeProgress | None:
        """Take the pending snapshot, waiting for one if necessary.

        Args:
            timeout: Seconds to wait; None waits until a snapshot arrives or
                the feed is closed.

        Returns:
            The freshest snapshot, or None if the feed is closed and
            drained or the timeout expired.
        """
        with self._cond:
            self._cond.wait_for(
                lambda: self._snapshot is not None or self._closed, timeout
            )
            snapshot, self._snapshot = self._snapshot, None
            return snapshot

    def __iter__(self) -> Iterator[TranscodeProgress]:
        while True:
            snapshot = self.get()
            if snapshot is None:
                return
            yield snapshot


class _StreamEnd(NamedTuple):
    error: Exception | None


_CANCEL = object()


class TranscodeJob:
    """A running (or finished) ffmpeg process and its monitoring state.

    Jobs are created by :meth:`Transcoder.transcode`. The log and the
    latest snapshot are written only by the monitor thread; reading them
    while the job runs gives a consistent but possibly stale view.
    """

    def __init__(
        self,
        process: Process,
        duration: timedelta = timedelta(0),
        stderr_tees: list[BinaryIO] | None = None,
        log_writers: list[IO[str]] | None = None,
    ) -> None:
        self._process = process
        self._duration = duration
        self._stderr_tees = list(stderr_tees or [])
        self._log_writers = list(log_writers or [])

        self._mailbox: queue.Queue[object] = queue.Queue()
        self._log: list[str] = []
        self._latest: TranscodeProgress | None = None
        self._error: TranscodeError | None = None
        self._feed = ProgressFeed()

        self._cancel_lock = threading.Lock()
        self._cancel_requested = False
        self._cancelled = False
        self._read_failed = False
        self._done = threading.Event()

    def start(self) -> None:
        """Start the reader and monitor threads for a started process."""
        threading.Thread(
            target=self._read, name=f"ffpipe-reader-{self.pid}", daemon=True
        ).start()
        threading.Thread(
            target=self._monitor, name=f"ffpipe-monitor-{self.pid}", daemon=True
        ).start()

    @property
    def pid(self) -> int | None:
        return self._process.pid

    @property
    def argv(self) -> list[str]:
        """The ffmpeg command line."""
        return self._process.argv

    @property
    def inputs(self) -> list[str]:
        """Sources passed to ffmpeg with ``-i``."""
        argv = self.argv
        return [argv[i + 1] for i, arg in enumerate(argv[:-1]) if arg == "-i"]

    @property
    def duration(self) -> timedelta:
        """Declared duration of the media being processed."""
        return self._duration

    @property
    def progress(self) -> ProgressFeed:
        """Live feed of progress snapshots."""
        return self._feed

    @property
    def latest(self) -> TranscodeProgress | None:
        """Most recent progress snapshot, if any has been parsed."""
        return self._latest

    @property
    def error(self) -> TranscodeError | None:
        """Terminal error; None while running or after success."""
        return self._error if self._done.is_set() else None

    @property
    def returncode(self) -> int | None:
        return self._process.returncode if self._done.is_set() else None

    @property
    def cancelled(self) -> bool:
        """True once the monitor has killed ffmpeg on request."""
        return self._cancelled

    def done(self) -> bool:
        return self._done.is_set()

    def log(self) -> str:
        """Diagnostic lines collected so far, joined by newlines."""
        return "\n".join(self._log)

    def cancel(self) -> None:
        """Ask the monitor to kill ffmpeg.

        Safe to call any number of times from any thread; never blocks.
        Does nothing once the job has finished. A request that arrives after
        ffmpeg has closed its output is ignored and leaves
        :attr:`cancelled` False.
        """
        with self._cancel_lock:
            if self._cancel_requested or self._done.is_set():
                return
            self._cancel_requested = True
        logger.debug("Cancelling ffmpeg", extra={"pid": self.pid})
        self._mailbox.put(_CANCEL)

    def wait(self) -> None:
        """Block until the job has finished.

        Raises:
            TranscodeError: If ffmpeg failed or was cancelled. Every call
                raises the same exception object.
        """
        self._done.wait()
        if self._error is not None:
            raise self._error

    def _read(self) -> None:
        with job_context(self.pid, self.inputs):
            self._read_lines()

    def _read_lines(self) -> None:
        classifier = LineClassifier(
            self._process.stderr,
            PROGRESS_PATTERN,
            STATS_PATTERN,
            FINAL_STATS_PATTERN,
            REPEAT_PATTERN,
            tees=self._stderr_tees,
        )
        error: Exception | None = None
        try:
            for line in classifier:
                self._mailbox.put(line)
        except Exception as e:
            # Includes failing tees; the monitor must always get an end marker
            error = e
        finally:
            self._mailbox.put(_StreamEnd(error))
            self._process.stderr.close()

    def _monitor(self) -> None:
        with job_context(self.pid, self.inputs):
            self._monitor_lines()

    def _monitor_lines(self) -> None:
        aggregator = ProgressAggregator(self._duration)
        try:
            while True:
                item = self._mailbox.get()
                if item is _CANCEL:
                    self._cancelled = True
                    self._process.kill()
                    break
                if isinstance(item, _StreamEnd):
                    # A clean EOF means ffmpeg closed stderr on exit
                    if item.error is not None:
                        self._read_failed = True
                        self._append_log(f"error reading ffmpeg output: {item.error}")
                        self._process.kill()
                    break
                if isinstance(item, ClassifiedLine):
                    self._handle_line(item, aggregator)
        finally:
            self._finish()

    def _handle_line(
        self, line: ClassifiedLine, aggregator: ProgressAggregator
    ) -> None:
        if line.pattern is None:
            if line.text:
                self._append_log(line.text)
            return
        if line.pattern is not PROGRESS_PATTERN:
            return

        try:
            snapshot = aggregator.add(line.text)
        except ProgressParseError as e:
            logger.warning("Dropping unparsable progress update: %s", e)
            return
        if snapshot is not None:
            self._latest = snapshot
            self._feed.publish(snapshot)

    def _append_log(self, text: str) -> None:
        self._log.append(text)
        for writer in list(self._log_writers):
            try:
                writer.write(text + "\n")
            except (OSError, ValueError) as e:
                logger.warning("Log writer failed, detaching it: %s", e)
                self._log_writers.remove(writer)

    def _finish(self) -> None:
        returncode = self._process.wait()
        if returncode != 0 or self._read_failed:
            self._error = TranscodeError(
                self._failure_message(returncode), returncode, self.log()
            )
            logger.debug("ffmpeg failed: %s", self._error)
        self._feed.close()
        self._done.set()

    def _failure_message(self, returncode: int) -> str:
        if len(self._log) >= ERROR_CONTEXT_LINES:
            return "\n".join(self._log[-ERROR_CONTEXT_LINES:])
        if self._log:
            return self._log[0].strip()
        return f"ffmpeg exited with status {returncode}"

    def __repr__(self) -> str:
        state = "done" if self.done() else "running"
        return f"<TranscodeJob pid={self.pid} {state}>"


class Transcoder:
    """Builds and launches ffmpeg jobs.

    Options given to the constructor are applied to every job before the
    options given to :meth:`transcode`.

    Args:
        *options: Options applied to every job.
        tools: Tool paths; defaults to the process-wide ones.
        command: Command to run instead of the configured ffmpeg.
    """

    def __init__(
        self,
        *options: Option,
        tools: ToolPaths | None = None,
        command: Command | None = None,
    ) -> None:
        self.options: tuple[Option, ...] = options
        self._tools = tools
        self._command = command

    @property
    def tools(self) -> ToolPaths:
        return self._tools or get_tools()

    @property
    def command(self) -> Command:
        return self._command or self.tools.ffmpeg_command()

    def transcode(self, *options: Option) -> TranscodeJob:
        """Render the options into a command and start it.

        Returns:
            The running job.

        Raises:
            FfpipeError: Whatever an option raised; nothing is started.
            LaunchError: If ffmpeg could not be started.
        """
        pending = PendingJob(self.command.process(), self._tools)
        for option in (*self.options, *options):
            option.apply(pending)

        process = pending.process
        process.start()
        logger.info(
            "Started ffmpeg: %s",
            shlex.join(process.argv),
            extra={"pid": process.pid, "argv": process.argv},
        )

        job = TranscodeJob(
            process,
            duration=pending.duration,
            stderr_tees=pending.stderr_tees,
            log_writers=pending.log_writers,
        )
        job.start()
        return job
