"""Process exit statuses of the ffharness commands.

Codes are grouped by decade: 1x for rejected input or configuration, 2x for
missing files, 3x for a missing or incomplete ffmpeg build, 4x for work that
ran and failed.
"""

from enum import IntEnum


class ExitCode(IntEnum):
    """Exit statuses shared by every subcommand."""

    SUCCESS = 0
    GENERAL_ERROR = 1
    # Ctrl+C, or an extraction cancelled by its timeout
    INTERRUPTED = 2

    CONFIG_ERROR = 11
    # Format or bitrate rejected before the engine was started
    INVALID_REQUEST = 12

    TARGET_NOT_FOUND = 20

    TOOL_NOT_AVAILABLE = 30
    # probe: at least one named component is not in the build
    CAPABILITY_MISSING = 31

    # extract: the engine session did not succeed
    OPERATION_FAILED = 40
    # selftest: an attempted check failed
    CHECKS_FAILED = 41
