"""Job identity for log records.

A job's reader and monitor threads run inside :func:`job_context`, so every
record they emit can be traced back to one ffmpeg process. Context variables
are per thread, so concurrent jobs never see each other's identity.
"""

from __future__ import annotations

import contextvars
import logging
from collections.abc import Iterable, Iterator
from contextlib import contextmanager

_job_pid: contextvars.ContextVar[int | None] = contextvars.ContextVar(
    "job_pid", default=None
)
_job_inputs: contextvars.ContextVar[tuple[str, ...]] = contextvars.ContextVar(
    "job_inputs", default=()
)


@contextmanager
def job_context(pid: int | None, inputs: Iterable[str] = ()) -> Iterator[None]:
    """Tag log records emitted in this block with an ffmpeg job.

    Args:
        pid: Process id of the ffmpeg child.
        inputs: Sources the job reads, as passed to ``-i``.
    """
    pid_token = _job_pid.set(pid)
    inputs_token = _job_inputs.set(tuple(inputs))
    try:
        yield
    finally:
        _job_pid.reset(pid_token)
        _job_inputs.reset(inputs_token)


def get_job_context() -> tuple[int | None, tuple[str, ...]]:
    """Return the (pid, inputs) of the current job, if any."""
    return _job_pid.get(), _job_inputs.get()


class JobContextFilter(logging.Filter):
    """Add ``pid``, ``inputs`` and a text ``job_tag`` to every record.

    Values passed explicitly with ``extra=`` take precedence over the
    surrounding :func:`job_context`.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        pid, inputs = get_job_context()
        if getattr(record, "pid", None) is None:
            record.pid = pid
        if not getattr(record, "inputs", None):
            record.inputs = list(inputs)
        record.job_tag = f"[ffmpeg {record.pid}] " if record.pid is not None else ""
        return True
