"""Engine output parsing.

This module parses the two streams the engine produces while running:
level-tagged log lines on stderr (``-loglevel level+info``) and key=value
progress blocks on stdout (``-progress pipe:1``).
"""

from __future__ import annotations

import re

from ffharness.engine.types import LogLevel, Statistics

# Optional "[ctx @ 0x..] " prefixes, then the "[level] " tag
_LEVEL_PREFIX = re.compile(
    r"^((?:\[[^\]]*\] )*?)"
    r"\[(quiet|panic|fatal|error|warning|info|verbose|debug|trace)\] ?",
    re.IGNORECASE,
)

# Keys that require numeric conversion (dropped on parse failure)
_INT_KEYS = frozenset(("frame", "total_size", "out_time_us", "out_time_ms"))
_FLOAT_KEYS = frozenset(("fps",))
_TEXT_KEYS = frozenset(("bitrate", "speed", "progress"))


def parse_log_line(line: str) -> tuple[LogLevel, str]:
    """Split a stderr line into its level and text.

    Lines without a level tag are reported as ``INFO``. Context prefixes such
    as ``[mp3 @ 0x55d0]`` are kept in the text.

    Args:
        line: Raw stderr line, with or without trailing newline.

    Returns:
        Tuple of (level, text).
    """
    line = line.rstrip("\r\n")
    match = _LEVEL_PREFIX.match(line)
    if not match:
        return LogLevel.INFO, line
    level = LogLevel.parse(match.group(2)) or LogLevel.INFO
    return level, match.group(1) + line[match.end() :]


def _convert_progress_value(key: str, value: str) -> int | float | str | None:
    if value == "N/A":
        return None
    if key in _INT_KEYS:
        try:
            return int(value)
        except ValueError:
            return None
    if key in _FLOAT_KEYS:
        try:
            return float(value)
        except ValueError:
            return None
    return value


def parse_progress_line(line: str) -> dict[str, int | float | str | None]:
    """Parse a single line from the engine's -progress output.

    Args:
        line: A ``key=value`` line.

    Returns:
        Dictionary with the parsed pair, or empty dict if the line is not a
        recognised progress key.
    """
    line = line.strip()
    if "=" not in line:
        return {}

    key, _, value = line.partition("=")
    key = key.strip()
    value = value.strip()

    if key not in _INT_KEYS | _FLOAT_KEYS | _TEXT_KEYS:
        return {}
    return {key: _convert_progress_value(key, value)}


class ProgressParser:
    """Accumulates -progress lines into Statistics.

    The engine writes one block of ``key=value`` lines per report, closed by
    ``progress=continue`` or ``progress=end``. ``feed`` returns a Statistics
    value when a line closes a block and None otherwise.
    """

    def __init__(self, session_id: int) -> None:
        self._session_id = session_id
        self._values: dict[str, int | float | str | None] = {}

    def is_progress_line(self, line: str) -> bool:
        """Return True if ``line`` belongs to a progress block."""
        return bool(parse_progress_line(line)) or _is_other_progress_key(line)

    def feed(self, line: str) -> Statistics | None:
        """Consume one stdout line."""
        parsed = parse_progress_line(line)
        if not parsed:
            return None
        if "progress" not in parsed:
            self._values.update(parsed)
            return None

        values, self._values = self._values, {}
        out_time_us = values.get("out_time_us")
        if out_time_us is None:
            # out_time_ms carries microseconds as well
            out_time_us = values.get("out_time_ms")
        return Statistics(
            session_id=self._session_id,
            frame=values.get("frame"),  # type: ignore[arg-type]
            fps=values.get("fps"),  # type: ignore[arg-type]
            bitrate=values.get("bitrate"),  # type: ignore[arg-type]
            size=values.get("total_size"),  # type: ignore[arg-type]
            time_ms=(
                out_time_us / 1000 if isinstance(out_time_us, int) else None
            ),
            speed=values.get("speed"),  # type: ignore[arg-type]
        )


# Progress keys that carry no Statistics field
_OTHER_PROGRESS_KEY = re.compile(
    r"^\s*(stream_\d+_\d+_q|out_time|dup_frames|drop_frames)=", re.IGNORECASE
)


def _is_other_progress_key(line: str) -> bool:
    return bool(_OTHER_PROGRESS_KEY.match(line))
