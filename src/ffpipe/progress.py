"""Line framing, classification and progress aggregation for ffmpeg stderr.

ffmpeg started with ``-progress pipe:2`` interleaves three kinds of text on
its diagnostic stream:

- ``key=value`` progress fields, one per line, each group terminated by a
  ``progress=continue`` / ``progress=end`` line,
- human readable stats (``frame= ... speed=``) and the final summary line,
- free-text log lines (warnings, errors, filter reports).

Stats lines are redrawn in place with a bare carriage return, so framing has
to treat ``\\r`` as a line terminator as well as ``\\n`` and ``\\r\\n``.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from datetime import timedelta
from typing import BinaryIO, NamedTuple

from ffpipe.exceptions import ProgressParseError, TimecodeParseError
from ffpipe.timecode import parse_timecode

logger = logging.getLogger(__name__)

PROGRESS_PATTERN = re.compile(r"^([^=]+)=\s*(\S+)$")
STATS_PATTERN = re.compile(
    r"^frame=\s*\S+\s+fps=\s*\S+\s+q=\s*\S+\s+L?size=\s*\S+\s+time=\s*\S+"
    r"\s+bitrate=\s*\S+\s+speed=\s*\S+$"
)
FINAL_STATS_PATTERN = re.compile(
    r"^video:\S+\s+audio:\S+\s+subtitle:\S+\s+other\s+streams:\S+"
    r"\s+global\s+headers:\S+\s+muxing\s+overhead:\s+\S+$"
)
REPEAT_PATTERN = re.compile(r"^Last message repeated")

# Key that closes a group of progress fields
PROGRESS_SENTINEL = "progress"

DEFAULT_CHUNK_SIZE = 4096


def _find_line_end(
    data: bytes | bytearray, pos: int, at_eof: bool
) -> tuple[int, int] | None:
    """Locate the first line terminator at or after ``pos``.

    Returns:
        Tuple of (end of the line text, start of the next line), or None
        when no complete terminator has arrived yet.
    """
    size = len(data)
    lf = data.find(b"\n", pos)
    cr = data.find(b"\r", pos, size if lf < 0 else lf)
    if cr >= 0:
        if cr + 1 < size:
            return cr, cr + 2 if data[cr + 1] == 0x0A else cr + 1
        # A final \r may be the first half of \r\n
        if at_eof:
            return cr, cr + 1
        return None
    if lf >= 0:
        return lf, lf + 1
    return None


def split_line(data: bytes, at_eof: bool) -> tuple[int, bytes | None]:
    """Find the first complete line in ``data``.

    A line ends at ``\\n`` (dropping a preceding ``\\r``) or at a lone
    ``\\r`` used by ffmpeg to overwrite its stats line. A ``\\r`` in the
    last byte is undecided until the next byte arrives, which keeps the
    result independent of how the stream was chunked. At end of stream any
    remaining bytes form a final line.

    Args:
        data: Buffered, not yet consumed bytes.
        at_eof: True when no more data will arrive.

    Returns:
        Tuple of (bytes to consume, line). ``line`` is None when more data
        is needed.
    """
    found = _find_line_end(data, 0, at_eof)
    if found is not None:
        end, advance = found
        return advance, data[:end]
    if at_eof and data:
        return len(data), data
    return 0, None


class LineSplitter:
    """Incremental line framer following :func:`split_line`.

    Bytes already searched without finding a terminator are not searched
    again, so a long unterminated line costs linear time.
    """

    def __init__(self) -> None:
        self._buffer = bytearray()
        self._scanned = 0

    def feed(self, chunk: bytes) -> list[bytes]:
        """Add a chunk and return every line it completed."""
        self._buffer += chunk
        return self._drain(at_eof=False)

    def flush(self) -> list[bytes]:
        """Return whatever is left as final lines."""
        return self._drain(at_eof=True)

    def _drain(self, at_eof: bool) -> list[bytes]:
        buffer = self._buffer
        lines: list[bytes] = []
        begin = 0
        pos = self._scanned
        while True:
            found = _find_line_end(buffer, pos, at_eof)
            if found is None:
                break
            end, pos = found
            lines.append(bytes(buffer[begin:end]))
            begin = pos
        if at_eof and begin < len(buffer):
            lines.append(bytes(buffer[begin:]))
            begin = len(buffer)

        del buffer[:begin]
        self._scanned = len(buffer) - 1 if buffer.endswith(b"\r") else len(buffer)
        return lines


class LineScanner:
    """Iterate decoded lines from a binary stream.

    Every raw chunk read is also written to ``tees`` before framing. Read
    errors propagate to the caller; a clean end of stream simply ends the
    iteration. A scanner can only be iterated once.
    """

    def __init__(
        self,
        stream: BinaryIO,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        tees: Iterable[BinaryIO] = (),
    ) -> None:
        self._stream = stream
        self._chunk_size = chunk_size
        self._tees = list(tees)
        self._splitter = LineSplitter()
        self._consumed = False

    def _read(self) -> bytes:
        read1 = getattr(self._stream, "read1", None)
        if read1 is not None:
            return read1(self._chunk_size)
        return self._stream.read(self._chunk_size)

    def __iter__(self) -> Iterator[str]:
        if self._consumed:
            raise RuntimeError("LineScanner can only be iterated once")
        self._consumed = True

        while True:
            chunk = self._read()
            if not chunk:
                break
            for tee in self._tees:
                tee.write(chunk)
            for line in self._splitter.feed(chunk):
                yield line.decode("utf-8", errors="replace")

        for line in self._splitter.flush():
            yield line.decode("utf-8", errors="replace")


class ClassifiedLine(NamedTuple):
    """A trimmed line and the first pattern it matched (None for log text)."""

    text: str
    pattern: re.Pattern[str] | None


class LineClassifier:
    """Classify the lines of a stream against an ordered list of patterns."""

    def __init__(
        self,
        stream: BinaryIO,
        *patterns: re.Pattern[str],
        tees: Iterable[BinaryIO] = (),
    ) -> None:
        self._scanner = LineScanner(stream, tees=tees)
        self._patterns = patterns

    def classify(self, text: str) -> ClassifiedLine:
        """Trim ``text`` and match it against the patterns, first match wins."""
        text = text.strip()
        for pattern in self._patterns:
            if pattern.match(text):
                return ClassifiedLine(text, pattern)
        return ClassifiedLine(text, None)

    def __iter__(self) -> Iterator[ClassifiedLine]:
        for line in self._scanner:
            yield self.classify(line)


def parse_progress_field(text: str) -> tuple[str, str]:
    """Split a ``key=value`` progress line into its stripped parts."""
    key, _, value = text.partition("=")
    return key.strip(), value.strip()


@dataclass
class TranscodeProgress:
    """One point-in-time summary of a running transcode.

    Attributes:
        duration: Declared length of the media being processed.
        frame: Current frame number.
        fps: Frames processed per second.
        bitrate: Output bitrate in kbit/s.
        total_size: Bytes written so far.
        time: Stream timestamp currently being processed.
        dup_frames: Duplicated frames so far.
        drop_frames: Dropped frames so far.
        speed: Processing speed relative to real time (2.0 = twice as fast).
    """

    duration: timedelta = field(default_factory=timedelta)
    frame: int = 0
    fps: float = 0.0
    bitrate: float = 0.0
    total_size: int = 0
    time: timedelta = field(default_factory=timedelta)
    dup_frames: int = 0
    drop_frames: int = 0
    speed: float = 0.0

    @property
    def percent(self) -> float:
        """Progress percentage (0.0 to 100.0), or 0.0 if duration is unknown."""
        if self.duration <= timedelta(0):
            return 0.0
        return min(100.0, self.time / self.duration * 100)

    def update(self, values: Mapping[str, str]) -> None:
        """Apply a group of progress fields.

        ``N/A`` values are skipped and unknown keys are ignored. Fields are
        applied in order, so when a value is rejected the keys after it are
        left untouched.

        Args:
            values: Mapping of progress key to raw value.

        Raises:
            ProgressParseError: If a recognized key has an unparsable value.
        """
        for key, raw in values.items():
            value = raw.strip()
            if value == "N/A":
                continue
            try:
                self._apply(key, value)
            except (ValueError, TimecodeParseError) as e:
                raise ProgressParseError(key, raw) from e

    def _apply(self, key: str, value: str) -> None:
        if key == "frame":
            self.frame = int(value)
        elif key == "fps":
            self.fps = float(value)
        elif key == "bitrate":
            self.bitrate = float(value.removesuffix("kbits/s"))
        elif key == "total_size":
            self.total_size = int(value)
        elif key == "out_time":
            self.time = parse_timecode(value)
        elif key == "dup_frames":
            self.dup_frames = int(value)
        elif key == "drop_frames":
            self.drop_frames = int(value)
        elif key == "speed":
            self.speed = float(value.removesuffix("x"))
        # out_time_us / out_time_ms duplicate out_time; progress is the sentinel


class ProgressAggregator:
    """Collect ``key=value`` lines until the sentinel closes a group."""

    def __init__(self, duration: timedelta | None = None) -> None:
        self.duration = duration or timedelta(0)
        self._values: dict[str, str] = {}

    def add(self, text: str) -> TranscodeProgress | None:
        """Add one progress line.

        Returns:
            A new snapshot when ``text`` closed a group, otherwise None.

        Raises:
            ProgressParseError: If the closed group has an unparsable value.
                The group is discarded either way.
        """
        key, value = parse_progress_field(text)
        self._values[key] = value
        if key != PROGRESS_SENTINEL:
            return None

        values, self._values = self._values, {}
        snapshot = TranscodeProgress(duration=self.duration)
        snapshot.update(values)
        return snapshot
