"""Exception hierarchy for ffpipe.

Errors are grouped by when they surface:

- Configuration and launch errors are raised synchronously by
  ``Transcoder.transcode`` and never leave a subprocess behind.
- Parse errors are raised to whoever called the parsing routine.
- Runtime errors (non-zero exit, broken stderr) are captured by the job's
  monitor and surface once, through ``TranscodeJob.wait`` / ``error``.
- ``StreamTooShortError`` is a domain condition of the interlace detector.
"""


class FfpipeError(Exception):
    """Base exception for all ffpipe errors."""


class OptionError(FfpipeError):
    """Raised by an option that cannot render itself into a command."""


class LaunchError(FfpipeError):
    """Raised when the ffmpeg subprocess fails to start."""


class ToolNotFoundError(LaunchError):
    """Raised when an external executable cannot be resolved.

    Attributes:
        tool: Name of the missing tool (e.g. "ffmpeg").
    """

    def __init__(self, tool: str, message: str | None = None) -> None:
        self.tool = tool
        super().__init__(message or f"Required tool not available: {tool}")


class ParseError(FfpipeError, ValueError):
    """Raised when text matched an expected shape but did not scan."""


class ProgressParseError(ParseError):
    """Raised when a progress field value cannot be converted.

    Attributes:
        key: The progress key whose value was rejected.
        value: The raw value.
    """

    def __init__(self, key: str, value: str) -> None:
        self.key = key
        self.value = value
        super().__init__(f"invalid value for progress field {key!r}: {value!r}")


class TimecodeParseError(ParseError):
    """Raised when a timecode is not in HH:MM:SS[.ffffff] form."""


class RationalParseError(ParseError):
    """Raised when a rational is not in N/D or N:D form."""


class InterlaceParseError(ParseError):
    """Raised when an idet summary line does not scan."""


class ProbeError(FfpipeError):
    """Raised when ffprobe fails or returns unusable output."""


class TranscodeError(FfpipeError):
    """Terminal error of a failed transcode job.

    The message is taken from ffmpeg's own trailing log lines when available,
    since the exit status alone rarely says what went wrong.

    Attributes:
        returncode: Exit status of the ffmpeg process.
        log: The job's full diagnostic log.
    """

    def __init__(
        self, message: str, returncode: int | None = None, log: str = ""
    ) -> None:
        self.returncode = returncode
        self.log = log
        super().__init__(message)


class StreamTooShortError(FfpipeError):
    """Raised when a stream has too few frames to classify interlacing.

    Attributes:
        frames: Number of frames that were sampled.
        required: Minimum number of frames needed.
    """

    def __init__(self, frames: int, required: int) -> None:
        self.frames = frames
        self.required = required
        super().__init__(
            f"stream was too short to process ({frames} frames, need {required})"
        )
