"""Structured logging for ffpipe.

Text or JSON output, file rotation, and job identity on every record.
"""

from ffpipe.logging.config import configure_logging
from ffpipe.logging.context import JobContextFilter, job_context
from ffpipe.logging.handlers import JSONFormatter

__all__ = [
    "JSONFormatter",
    "JobContextFilter",
    "configure_logging",
    "job_context",
]
