"""Interlace and telecine detection.

Detection runs ffmpeg's ``idet`` filter over a window of the stream and
reads the three histograms it prints when it finishes (shown without the
``[Parsed_idet_0 @ 0x...]`` prefix)::

    Repeated Fields: Neither:  1041 Top:     9 Bottom:     0
    Single frame detection: TFF:   431 BFF:     0 Progressive:   418 Undetermined:   201
    Multi frame detection: TFF:   604 BFF:     0 Progressive:   446 Undetermined:     0

Content that looks interlaced is analyzed a second time behind a
``fieldmatch`` filter. Telecined film reassembles into progressive frames
once its fields are matched; truly interlaced video does not.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import timedelta

from ffpipe.config.models import InterlaceConfig
from ffpipe.exceptions import InterlaceParseError, StreamTooShortError
from ffpipe.inputs import Input, duration, input_filename, start_percent
from ffpipe.jobs import TranscodeJob, Transcoder
from ffpipe.options import Option, discard, video_filter
from ffpipe.outputs import Output
from ffpipe.types import InterlaceType

logger = logging.getLogger(__name__)

MIN_FRAMES = 250

# Progressive frames must outnumber interlaced ones by this factor
PROGRESSIVE_RATIO = 20

REPEATED_FIELDS_MARKER = "Repeated Fields:"
SINGLE_FRAME_MARKER = "Single frame detection:"
MULTI_FRAME_MARKER = "Multi frame detection:"

_REPEATED_RE = re.compile(r"Neither:\s*(\d+)\s+Top:\s*(\d+)\s+Bottom:\s*(\d+)")
_DETECTION_RE = re.compile(
    r"TFF:\s*(\d+)\s+BFF:\s*(\d+)\s+Progressive:\s*(\d+)\s+Undetermined:\s*(\d+)"
)

_FIELD_MATCH_ORDER = {
    InterlaceType.INTERLACED_TFF: "tff",
    InterlaceType.INTERLACED_BFF: "bff",
}


def _payload(text: str, prefix: str) -> str:
    index = text.find(prefix)
    if index < 0:
        raise InterlaceParseError(f"{prefix.strip()!r} not found in {text!r}")
    return text[index + len(prefix) :]


@dataclass(frozen=True)
class RepeatedFields:
    """Counts of frames by which field, if any, was repeated."""

    neither: int = 0
    top: int = 0
    bottom: int = 0

    @property
    def frames(self) -> int:
        """Total number of frames examined."""
        return self.neither + self.top + self.bottom

    @classmethod
    def parse(cls, text: str) -> RepeatedFields:
        """Parse an idet ``Repeated Fields:`` line.

        Raises:
            InterlaceParseError: If the counts are missing, out of order or
                their labels have the wrong case.
        """
        payload = _payload(text, "Fields: ")
        match = _REPEATED_RE.match(payload)
        if not match:
            raise InterlaceParseError(f"invalid repeated fields line: {text!r}")
        return cls(*(int(group) for group in match.groups()))


@dataclass(frozen=True)
class FieldDetection:
    """Counts of frames by detected field order."""

    tff: int = 0
    bff: int = 0
    progressive: int = 0
    undetermined: int = 0

    @classmethod
    def parse(cls, text: str) -> FieldDetection:
        """Parse an idet single or multi frame detection line.

        Raises:
            InterlaceParseError: If the counts are missing, out of order or
                their labels have the wrong case.
        """
        payload = _payload(text, "detection: ")
        match = _DETECTION_RE.match(payload)
        if not match:
            raise InterlaceParseError(f"invalid frame detection line: {text!r}")
        return cls(*(int(group) for group in match.groups()))


@dataclass(frozen=True)
class InterlaceInfo:
    """The idet histograms of one analysis run."""

    repeated_fields: RepeatedFields = field(default_factory=RepeatedFields)
    single_frame: FieldDetection = field(default_factory=FieldDetection)
    multi_frame: FieldDetection = field(default_factory=FieldDetection)

    @property
    def tff(self) -> int:
        return self.single_frame.tff + self.multi_frame.tff

    @property
    def bff(self) -> int:
        return self.single_frame.bff + self.multi_frame.bff

    @property
    def interlaced(self) -> int:
        return self.tff + self.bff

    @property
    def progressive(self) -> int:
        return self.single_frame.progressive + self.multi_frame.progressive

    @property
    def determined(self) -> int:
        return self.interlaced + self.progressive

    @property
    def undetermined(self) -> int:
        return self.single_frame.undetermined + self.multi_frame.undetermined

    @property
    def frames(self) -> int:
        return self.repeated_fields.frames

    def classify(
        self,
        min_frames: int = MIN_FRAMES,
        progressive_ratio: int = PROGRESSIVE_RATIO,
    ) -> InterlaceType:
        """Decide what kind of scan the histograms describe.

        The stream is unknown unless more frames were determined than not.
        It is interlaced unless progressive frames outnumber interlaced ones
        by ``progressive_ratio``; the field order is the strict majority of
        TFF and BFF counts, and unspecified on a tie.

        Args:
            min_frames: Fewest frames that can be classified.
            progressive_ratio: Required progressive to interlaced ratio.

        Raises:
            StreamTooShortError: If fewer than ``min_frames`` were examined.
        """
        if self.frames < min_frames:
            raise StreamTooShortError(self.frames, min_frames)
        if self.determined <= self.undetermined:
            return InterlaceType.UNKNOWN
        if self.progressive < self.interlaced * progressive_ratio:
            if self.bff < self.tff:
                return InterlaceType.INTERLACED_TFF
            if self.tff < self.bff:
                return InterlaceType.INTERLACED_BFF
            return InterlaceType.INTERLACED
        return InterlaceType.PROGRESSIVE


def parse_idet_log(lines: Iterable[str]) -> InterlaceInfo:
    """Collect the idet histograms from ffmpeg log lines.

    Other lines are ignored. If a histogram appears more than once the last
    one wins.

    Raises:
        InterlaceParseError: If a histogram line does not scan.
    """
    repeated = RepeatedFields()
    single = FieldDetection()
    multi = FieldDetection()
    for line in lines:
        if REPEATED_FIELDS_MARKER in line:
            repeated = RepeatedFields.parse(line)
        elif SINGLE_FRAME_MARKER in line:
            single = FieldDetection.parse(line)
        elif MULTI_FRAME_MARKER in line:
            multi = FieldDetection.parse(line)
    return InterlaceInfo(repeated, single, multi)


class InterlaceDetector:
    """Runs interlace detection and deinterlacing through a transcoder.

    Args:
        transcoder: Transcoder used to launch ffmpeg.
        config: Sampling window and frame threshold.
    """

    def __init__(
        self,
        transcoder: Transcoder | None = None,
        config: InterlaceConfig | None = None,
    ) -> None:
        self.transcoder = transcoder or Transcoder()
        self.config = config or InterlaceConfig()

    def analyze(self, inp: Input, *options: Option) -> InterlaceInfo:
        """Run ``inp`` through ``options`` into a null output and parse idet.

        Raises:
            TranscodeError: If ffmpeg fails.
            InterlaceParseError: If its idet summary does not scan.
        """
        job = self.transcoder.transcode(inp, *options, discard())
        job.wait()
        return parse_idet_log(job.log().splitlines())

    def detect(self, inp: Input) -> InterlaceType:
        """Classify the scan type of ``inp``.

        ``inp`` must probe its source (e.g. :func:`input_filename`); the
        analysis window starts at a percentage of the probed duration.

        Returns:
            UNKNOWN, PROGRESSIVE, TELECINE or INTERLACED.

        Raises:
            StreamTooShortError: If the window holds too few frames.
            OptionError: If ``inp`` was not probed.
            TranscodeError: If ffmpeg fails.
        """
        window = inp.with_options(
            start_percent(self.config.start_percent),
            duration(timedelta(seconds=self.config.sample_seconds)),
        )
        verdict = self._classify(self.analyze(window, video_filter("idet")))
        logger.debug("First idet pass for %r: %s", inp, verdict)
        if not verdict.is_interlaced:
            return verdict

        order = _FIELD_MATCH_ORDER.get(verdict, "auto")
        matched = self._classify(
            self.analyze(window, video_filter(f"fieldmatch=order={order},idet"))
        )
        logger.debug("Field matched idet pass for %r: %s", inp, matched)
        # The field order found by the first pass is not carried over
        if matched is InterlaceType.PROGRESSIVE:
            return InterlaceType.TELECINE
        return InterlaceType.INTERLACED

    def deinterlace(
        self, kind: InterlaceType, inp: Input, output: Output
    ) -> TranscodeJob:
        """Start a job that deinterlaces ``inp`` into ``output``.

        Telecined input is inverse telecined; anything else goes through
        ``bwdif``, with the field parity set when the order is known.
        """
        if kind is InterlaceType.TELECINE:
            chain = "fieldmatch,decimate"
        else:
            chain = "bwdif=mode=1"
            if kind is InterlaceType.INTERLACED_TFF:
                chain += ":parity=0"
            elif kind is InterlaceType.INTERLACED_BFF:
                chain += ":parity=1"
        return self.transcoder.transcode(inp, video_filter(chain), output)

    def _classify(self, info: InterlaceInfo) -> InterlaceType:
        return info.classify(min_frames=self.config.min_frames)


def is_interlaced(filename: str, detector: InterlaceDetector | None = None) -> bool:
    """Return True if ``filename`` is interlaced or telecined.

    Raises:
        StreamTooShortError: If the stream is too short to classify.
    """
    detector = detector or InterlaceDetector()
    return detector.detect(Input(input_filename(filename))) in (
        InterlaceType.TELECINE,
        InterlaceType.INTERLACED,
    )
