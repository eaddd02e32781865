"""Test doubles for code that launches transcodes.

:class:`FakeTranscoder` has the same ``transcode`` signature as
:class:`~ffpipe.jobs.Transcoder` but never runs ffmpeg. The jobs it returns
are already finished and report whatever the test configured::

    transcoder = FakeTranscoder(job_error=TranscodeError("boom", 1))
    job = transcoder.transcode(Input(input_url("x")), discard())
    with pytest.raises(TranscodeError):
        job.wait()
"""

from __future__ import annotations

from ffpipe.exceptions import FfpipeError, TranscodeError
from ffpipe.jobs import ProgressFeed
from ffpipe.options import Option
from ffpipe.progress import TranscodeProgress


class FakeJob:
    """A finished job with a canned log and error.

    Attributes:
        cancelled: Set by :meth:`cancel`, for asserting that code under
            test cancelled the job.
        options: Options the job was "launched" with.
    """

    def __init__(
        self,
        log: str = "",
        error: TranscodeError | None = None,
        options: tuple[Option, ...] = (),
    ) -> None:
        self.cancelled = False
        self.options = options
        self._log = log
        self._error = error
        self._latest = TranscodeProgress()
        self._feed = ProgressFeed()
        self._feed.publish(self._latest)
        self._feed.close()

    @property
    def progress(self) -> ProgressFeed:
        """A feed holding exactly one empty snapshot, already closed."""
        return self._feed

    @property
    def latest(self) -> TranscodeProgress:
        return self._latest

    @property
    def error(self) -> TranscodeError | None:
        return self._error

    @property
    def returncode(self) -> int | None:
        if self._error is None:
            return 0
        return self._error.returncode

    def done(self) -> bool:
        return True

    def log(self) -> str:
        return self._log

    def cancel(self) -> None:
        self.cancelled = True

    def wait(self) -> None:
        if self._error is not None:
            raise self._error

    def __repr__(self) -> str:
        return "<FakeJob>"


class FakeTranscoder:
    """Stands in for :class:`~ffpipe.jobs.Transcoder` in unit tests.

    Args:
        transcode_error: Raised by :meth:`transcode` instead of returning a
            job, like an option or launch failure.
        job_error: Terminal error of every returned job.
        log: Log text of every returned job.

    Attributes:
        jobs: Every job returned so far, in order.
    """

    def __init__(
        self,
        transcode_error: FfpipeError | None = None,
        job_error: TranscodeError | None = None,
        log: str = "",
    ) -> None:
        self.transcode_error = transcode_error
        self.job_error = job_error
        self.log = log
        self.jobs: list[FakeJob] = []

    def transcode(self, *options: Option) -> FakeJob:
        if self.transcode_error is not None:
            raise self.transcode_error
        job = FakeJob(self.log, self.job_error, options)
        self.jobs.append(job)
        return job
