"""Enumerations and value types shared across ffpipe.

Enum values are the strings ffprobe prints, so members can be built
directly from its JSON output.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from ffpipe.exceptions import RationalParseError


class MediaType(Enum):
    """Kind of media carried by a stream."""

    VIDEO = "video"
    AUDIO = "audio"
    DATA = "data"
    SUBTITLE = "subtitle"
    ATTACHMENT = "attachment"


class ColorRange(Enum):
    """How color values of a video stream are encoded."""

    UNSPECIFIED = "unknown"
    MPEG = "tv"  # limited range
    JPEG = "pc"  # full range

    @classmethod
    def _missing_(cls, value: object) -> ColorRange:
        return cls.UNSPECIFIED


class ColorSpace(Enum):
    """Color matrix of a video stream."""

    RGB = "gbr"
    BT709 = "bt709"
    UNSPECIFIED = "unknown"
    RESERVED = "reserved"
    FCC = "fcc"
    BT470BG = "bt470bg"
    SMPTE170M = "smpte170m"
    SMPTE240M = "smpte240m"
    YCOCG = "ycgco"
    BT2020NC = "bt2020nc"
    BT2020C = "bt2020c"
    SMPTE2085 = "smpte2085"
    CHROMA_DERIVED_NC = "chroma-derived-nc"
    CHROMA_DERIVED_C = "chroma-derived-c"
    ICTCP = "ictcp"

    @classmethod
    def _missing_(cls, value: object) -> ColorSpace:
        return cls.UNSPECIFIED


class FieldOrder(Enum):
    """Field order as declared by the container or codec."""

    UNKNOWN = "unknown"
    PROGRESSIVE = "progressive"
    TT = "tt"  # top coded first, top displayed first
    BB = "bb"  # bottom coded first, bottom displayed first
    TB = "tb"  # top coded first, bottom displayed first
    BT = "bt"  # bottom coded first, top displayed first

    @classmethod
    def _missing_(cls, value: object) -> FieldOrder:
        return cls.UNKNOWN


class InterlaceType(Enum):
    """Verdict of the interlace detector."""

    UNKNOWN = "unknown"
    TELECINE = "telecine"
    INTERLACED = "interlaced"
    INTERLACED_TFF = "interlaced TFF"
    INTERLACED_BFF = "interlaced BFF"
    PROGRESSIVE = "progressive"

    @property
    def is_interlaced(self) -> bool:
        """True for any interlaced verdict, regardless of field order."""
        return self in (
            InterlaceType.INTERLACED,
            InterlaceType.INTERLACED_TFF,
            InterlaceType.INTERLACED_BFF,
        )

    def __str__(self) -> str:
        return self.value


_RATIONAL_RE = re.compile(r"^(-?\d+)([:/])(-?\d+)$")


@dataclass(frozen=True)
class Rational:
    """A rational number such as a frame rate or aspect ratio.

    The separator is kept so the value prints the way ffprobe printed it
    ("16:9" for aspect ratios, "30000/1001" for rates).
    """

    numerator: int
    denominator: int
    separator: str = "/"

    @classmethod
    def parse(cls, text: str) -> Rational:
        """Parse ``N/D`` or ``N:D``.

        Raises:
            RationalParseError: If the text has neither separator.
        """
        match = _RATIONAL_RE.match(text.strip())
        if not match:
            raise RationalParseError(f"unknown format for {text!r}")
        num, sep, den = match.groups()
        return cls(int(num), int(den), sep)

    def __float__(self) -> float:
        if self.denominator == 0:
            return 0.0
        return self.numerator / self.denominator

    def __str__(self) -> str:
        return f"{self.numerator}{self.separator}{self.denominator}"
