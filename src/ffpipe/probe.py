"""Media descriptors read with ffprobe.

:func:`stat` runs ffprobe on a file or URL and parses its JSON report into a
:class:`MediaInfo`. Transcoding only needs ``format.filename`` and
``format.duration`` from it; the rest is exposed for callers.
"""

from __future__ import annotations

import io
import json
import logging
from datetime import timedelta
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from ffpipe.exceptions import ProbeError, RationalParseError, TimecodeParseError
from ffpipe.timecode import parse_timecode
from ffpipe.tools import ToolPaths, get_tools
from ffpipe.types import ColorRange, ColorSpace, FieldOrder, MediaType, Rational

logger = logging.getLogger(__name__)


def _parse_time(value: Any) -> Any:
    if value is None or value == "N/A":
        return timedelta(0)
    if isinstance(value, str):
        try:
            return parse_timecode(value)
        except TimecodeParseError as e:
            raise ValueError(str(e)) from e
    return value


def _parse_rational(value: Any) -> Any:
    if value is None or value == "N/A":
        return None
    if isinstance(value, str):
        try:
            return Rational.parse(value)
        except RationalParseError as e:
            raise ValueError(str(e)) from e
    return value


class Disposition(BaseModel):
    """Stream disposition flags."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    default: int = 0
    dub: int = 0
    original: int = 0
    comment: int = 0
    lyrics: int = 0
    karaoke: int = 0
    forced: int = 0
    hearing_impaired: int = 0
    visual_impaired: int = 0
    clean_effects: int = 0
    attached_pic: int = 0
    timed_thumbnails: int = 0


class StreamInfo(BaseModel):
    """Fields common to every stream."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    index: int = 0
    codec_type: MediaType
    codec_name: str = ""
    codec_long_name: str = ""
    profile: str = ""
    codec_tag_string: str = ""
    codec_tag: str = ""
    r_frame_rate: Rational | None = None
    avg_frame_rate: Rational | None = None
    time_base: Rational | None = None
    start_pts: int = 0
    duration: timedelta = timedelta(0)
    disposition: Disposition = Field(default_factory=Disposition)

    @field_validator("r_frame_rate", "avg_frame_rate", "time_base", mode="before")
    @classmethod
    def validate_rational(cls, v: Any) -> Any:
        return _parse_rational(v)

    @field_validator("duration", mode="before")
    @classmethod
    def validate_duration(cls, v: Any) -> Any:
        return _parse_time(v)


class VideoStreamInfo(StreamInfo):
    """A video stream."""

    width: int = 0
    height: int = 0
    coded_width: int = 0
    coded_height: int = 0
    has_b_frames: int = 0
    sample_aspect_ratio: Rational | None = None
    display_aspect_ratio: Rational | None = None
    pix_fmt: str = ""
    level: int = 0
    color_range: ColorRange = ColorRange.UNSPECIFIED
    color_space: ColorSpace = ColorSpace.UNSPECIFIED
    color_transfer: str = ""
    color_primaries: str = ""
    chroma_location: str = ""
    field_order: FieldOrder = FieldOrder.UNKNOWN
    refs: int = 0

    @field_validator("sample_aspect_ratio", "display_aspect_ratio", mode="before")
    @classmethod
    def validate_aspect(cls, v: Any) -> Any:
        return _parse_rational(v)

    @field_validator("color_range", mode="before")
    @classmethod
    def validate_color_range(cls, v: Any) -> Any:
        return ColorRange(v)

    @field_validator("color_space", mode="before")
    @classmethod
    def validate_color_space(cls, v: Any) -> Any:
        return ColorSpace(v)

    @field_validator("field_order", mode="before")
    @classmethod
    def validate_field_order(cls, v: Any) -> Any:
        return FieldOrder(v)


class AudioStreamInfo(StreamInfo):
    """An audio stream."""

    sample_fmt: str = ""
    sample_rate: str = ""
    channels: int = 0
    channel_layout: str = ""
    bits_per_sample: int = 0


class SubtitleStreamInfo(StreamInfo):
    """A subtitle stream."""

    width: int = 0
    height: int = 0


class ChapterInfo(BaseModel):
    """A chapter marker."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: int = 0
    start_time: timedelta = timedelta(0)
    end_time: timedelta = timedelta(0)

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def validate_time(cls, v: Any) -> Any:
        return _parse_time(v)


class FormatInfo(BaseModel):
    """Container level information."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    filename: str = ""
    format_name: str = ""
    format_long_name: str = ""
    start_time: timedelta = timedelta(0)
    duration: timedelta = timedelta(0)
    size: str = ""
    bit_rate: str = ""
    probe_score: int = 0

    @field_validator("start_time", "duration", mode="before")
    @classmethod
    def validate_time(cls, v: Any) -> Any:
        return _parse_time(v)


_STREAM_MODELS: dict[str, tuple[str, type[StreamInfo]]] = {
    MediaType.VIDEO.value: ("video_streams", VideoStreamInfo),
    MediaType.AUDIO.value: ("audio_streams", AudioStreamInfo),
    MediaType.SUBTITLE.value: ("subtitle_streams", SubtitleStreamInfo),
}


class MediaInfo(BaseModel):
    """Everything ffprobe reported about a media file."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    programs: list[dict[str, Any]] = Field(default_factory=list)
    video_streams: list[VideoStreamInfo] = Field(default_factory=list)
    audio_streams: list[AudioStreamInfo] = Field(default_factory=list)
    subtitle_streams: list[SubtitleStreamInfo] = Field(default_factory=list)
    chapters: list[ChapterInfo] = Field(default_factory=list)
    format: FormatInfo = Field(default_factory=FormatInfo)

    @model_validator(mode="before")
    @classmethod
    def split_streams(cls, data: Any) -> Any:
        """Sort ffprobe's flat ``streams`` list by codec type.

        Data and attachment streams are dropped.
        """
        if not isinstance(data, dict) or "streams" not in data:
            return data
        data = dict(data)
        for stream in data.pop("streams") or []:
            target = _STREAM_MODELS.get(stream.get("codec_type", ""))
            if target is not None:
                data.setdefault(target[0], []).append(stream)
        return data

    @property
    def is_video(self) -> bool:
        """True if the media has at least one video stream."""
        return len(self.video_streams) > 0

    @property
    def duration(self) -> timedelta:
        return self.format.duration

    @property
    def filename(self) -> str:
        return self.format.filename


def parse_media_info(data: bytes | str) -> MediaInfo:
    """Parse ffprobe's JSON report.

    Raises:
        ProbeError: If the JSON is malformed or does not validate.
    """
    try:
        return MediaInfo.model_validate(json.loads(data))
    except (json.JSONDecodeError, ValidationError) as e:
        raise ProbeError(f"invalid ffprobe output: {e}") from e


def stat(filename: str, tools: ToolPaths | None = None) -> MediaInfo:
    """Run ffprobe on ``filename`` and parse the result.

    Args:
        filename: File name or URL to probe.
        tools: Tool paths; defaults to the process-wide ones.

    Returns:
        The parsed media descriptor.

    Raises:
        ProbeError: If ffprobe exits non-zero or its output is unusable.
        LaunchError: If ffprobe cannot be started.
    """
    tools = tools or get_tools()
    process = tools.ffprobe_command().process()
    process.append_args(filename)
    stdout = io.BytesIO()
    process.stdout = stdout
    process.start()

    stderr = process.stderr.read()
    returncode = process.wait()
    if returncode != 0:
        message = stderr.decode("utf-8", errors="replace").strip()
        raise ProbeError(message or f"ffprobe exited with status {returncode}")

    info = parse_media_info(stdout.getvalue())
    logger.debug("Probed %s: duration %s", filename, info.duration)
    return info


def is_video(filename: str, tools: ToolPaths | None = None) -> bool:
    """Return True if ``filename`` has at least one video stream."""
    return stat(filename, tools).is_video
