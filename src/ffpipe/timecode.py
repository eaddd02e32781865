"""Timecode parsing and formatting.

ffmpeg and ffprobe (with ``-sexagesimal``) report times as
``HH:MM:SS.ffffff``. Durations are represented as ``datetime.timedelta``
throughout ffpipe.
"""

from __future__ import annotations

import re
from datetime import timedelta

from ffpipe.exceptions import TimecodeParseError

_TIMECODE_RE = re.compile(r"^(-)?(\d+):(\d{1,2}):(\d{1,2})(?:\.(\d+))?$")


def parse_timecode(text: str) -> timedelta:
    """Parse an ``HH:MM:SS.ffffff`` string.

    The fractional part is a decimal fraction of a second; digits beyond
    microsecond precision are truncated.

    Args:
        text: Timecode string, e.g. "00:05:03.000000".

    Returns:
        The corresponding timedelta.

    Raises:
        TimecodeParseError: If the text is not a timecode.
    """
    match = _TIMECODE_RE.match(text.strip())
    if not match:
        raise TimecodeParseError(f"invalid timecode: {text!r}")

    sign, hours, minutes, seconds, fraction = match.groups()
    micros = int((fraction or "0")[:6].ljust(6, "0"))
    value = timedelta(
        hours=int(hours),
        minutes=int(minutes),
        seconds=int(seconds),
        microseconds=micros,
    )
    return -value if sign else value


def format_timecode(value: timedelta) -> str:
    """Format a timedelta as ``HH:MM:SS.ffffff``.

    Hours are not wrapped at 24.
    """
    total_us = (value.days * 86_400 + value.seconds) * 1_000_000 + value.microseconds
    sign = "-" if total_us < 0 else ""
    total_us = abs(total_us)
    seconds, micros = divmod(total_us, 1_000_000)
    minutes, seconds = divmod(seconds, 60)
    hours, minutes = divmod(minutes, 60)
    return f"{sign}{hours:02d}:{minutes:02d}:{seconds:02d}.{micros:06d}"


def percent_of(value: timedelta, percent: float) -> timedelta:
    """Return ``percent`` percent of ``value``.

    >>> percent_of(timedelta(hours=1), 10)
    datetime.timedelta(seconds=360)
    """
    return value * percent / 100
