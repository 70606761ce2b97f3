"""Core utilities package.

Pure helpers shared across the harness: display formatting and the
standard subprocess wrapper.
"""

from ffharness.core.formatting import (
    format_duration_ms,
    format_file_size,
    tail_lines,
)
from ffharness.core.subprocess_utils import run_command

__all__ = [
    "format_duration_ms",
    "format_file_size",
    "run_command",
    "tail_lines",
]
