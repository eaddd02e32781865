"""Process exit codes used by ffpipe commands."""

from enum import IntEnum


class ExitCode(IntEnum):
    """Exit codes for ffpipe commands.

    0 is success, 1 a generic failure and 2 is left to click for usage
    errors; everything else names a specific failure.
    """

    SUCCESS = 0
    GENERAL_ERROR = 1
    INVALID_ARGUMENTS = 2
    TOOL_NOT_FOUND = 3
    PROBE_FAILED = 4
    TRANSCODE_FAILED = 5
    STREAM_TOO_SHORT = 6
    INTERRUPTED = 130
