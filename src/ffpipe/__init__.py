"""ffpipe - run, monitor and cancel ffmpeg jobs from Python.

Typical use::

    from ffpipe import Input, Output, Transcoder, input_filename, output_filename

    job = Transcoder().transcode(
        Input(input_filename("in.mkv")), Output(output_filename("out.mkv"))
    )
    for snapshot in job.progress:
        print(f"{snapshot.percent:.0f}%")
    job.wait()
"""

from ffpipe.exceptions import (
    FfpipeError,
    InterlaceParseError,
    LaunchError,
    OptionError,
    ParseError,
    ProbeError,
    ProgressParseError,
    StreamTooShortError,
    TimecodeParseError,
    ToolNotFoundError,
    TranscodeError,
)
from ffpipe.inputs import (
    Input,
    duration,
    input_file,
    input_filename,
    input_url,
    start,
    start_percent,
)
from ffpipe.interlace import InterlaceDetector, InterlaceInfo, is_interlaced
from ffpipe.jobs import ProgressFeed, TranscodeJob, Transcoder
from ffpipe.options import (
    Option,
    PendingJob,
    discard,
    disposition,
    log_writer,
    map_metadata,
    map_stream,
    stderr_tee,
    video_filter,
)
from ffpipe.outputs import (
    Output,
    copy_audio,
    copy_output,
    copy_subtitles,
    default_h264,
    default_matroska,
    output_filename,
    output_format,
    output_writer,
)
from ffpipe.probe import MediaInfo, is_video, stat
from ffpipe.progress import TranscodeProgress
from ffpipe.transcoders import check, copy
from ffpipe.types import InterlaceType

__version__ = "0.1.0"

__all__ = [
    "FfpipeError",
    "Input",
    "InterlaceDetector",
    "InterlaceInfo",
    "InterlaceParseError",
    "InterlaceType",
    "LaunchError",
    "MediaInfo",
    "Option",
    "OptionError",
    "Output",
    "ParseError",
    "PendingJob",
    "ProbeError",
    "ProgressFeed",
    "ProgressParseError",
    "StreamTooShortError",
    "TimecodeParseError",
    "ToolNotFoundError",
    "TranscodeError",
    "TranscodeJob",
    "TranscodeProgress",
    "Transcoder",
    "check",
    "copy",
    "copy_audio",
    "copy_output",
    "copy_subtitles",
    "default_h264",
    "default_matroska",
    "discard",
    "disposition",
    "duration",
    "input_file",
    "input_filename",
    "input_url",
    "is_interlaced",
    "is_video",
    "log_writer",
    "map_metadata",
    "map_stream",
    "output_filename",
    "output_format",
    "output_writer",
    "start",
    "start_percent",
    "stat",
    "stderr_tee",
    "video_filter",
]
