"""JSON log output for ffpipe.

Records tagged by :class:`~ffpipe.logging.context.JobContextFilter` get a
``job`` object identifying the ffmpeg process; anything else passed with
``extra=`` lands in ``context``.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

# Attributes every LogRecord has, plus those added by formatting
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime"}

# Job identity attributes set by JobContextFilter
_JOB_ATTRS = ("pid", "inputs")


class JSONFormatter(logging.Formatter):
    """Format each record as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
        }
        if record.name != "root":
            entry["logger"] = record.name

        job = {
            attr: getattr(record, attr)
            for attr in _JOB_ATTRS
            if getattr(record, attr, None)
        }
        if job:
            entry["job"] = job

        context = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS
            and key not in _JOB_ATTRS
            and key != "job_tag"
            and not key.startswith("_")
        }
        if context:
            entry["context"] = context

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)
