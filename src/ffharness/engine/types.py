"""Engine session types.

This module defines the values that cross the engine boundary: log levels,
log messages, statistics, and the session handle that tracks one engine
invocation from creation to its single terminal state.
"""

from __future__ import annotations

import itertools
import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum, IntEnum


class LogLevel(IntEnum):
    """Engine log levels.

    Values follow the engine's own numbering, so a lower value is more
    severe. ``QUIET`` marks output the engine was asked to suppress.
    """

    QUIET = -8
    PANIC = 0
    FATAL = 8
    ERROR = 16
    WARNING = 24
    INFO = 32
    VERBOSE = 40
    DEBUG = 48
    TRACE = 56

    @classmethod
    def parse(cls, token: str) -> LogLevel | None:
        """Map a level token such as ``"warning"`` to a LogLevel.

        Returns None for unknown tokens.
        """
        try:
            return cls[token.strip().upper()]
        except KeyError:
            return None

    def is_at_least(self, threshold: LogLevel) -> bool:
        """Return True if this level is as severe as ``threshold`` or more."""
        return self != LogLevel.QUIET and self <= threshold

    def to_logging(self) -> int:
        """Return the matching Python logging level."""
        if self <= LogLevel.ERROR:
            return logging.ERROR
        if self == LogLevel.WARNING:
            return logging.WARNING
        if self == LogLevel.INFO:
            return logging.INFO
        return logging.DEBUG


class SessionState(Enum):
    """Lifecycle state of an engine session."""

    CREATED = "created"
    RUNNING = "running"
    COMPLETED = "completed"  # Engine ran to the end (any return code)
    FAILED = "failed"  # Engine could not be started or timed out
    CANCELLED = "cancelled"  # Stopped on request

    @property
    def is_terminal(self) -> bool:
        """Return True for completed, failed and cancelled."""
        return self in (
            SessionState.COMPLETED,
            SessionState.FAILED,
            SessionState.CANCELLED,
        )


class ReturnCode:
    """Engine return code conventions."""

    SUCCESS = 0
    CANCEL = 255

    @staticmethod
    def is_success(code: int | None) -> bool:
        """Return True if ``code`` signals success."""
        return code == ReturnCode.SUCCESS

    @staticmethod
    def is_cancel(code: int | None) -> bool:
        """Return True if ``code`` signals a cancelled run."""
        return code == ReturnCode.CANCEL


@dataclass(frozen=True)
class LogMessage:
    """One line of engine log output."""

    session_id: int
    level: LogLevel
    text: str


@dataclass(frozen=True)
class Statistics:
    """One progress report of a running engine session.

    ``time_ms`` is the output position in milliseconds; ``size`` is the
    number of bytes written so far.
    """

    session_id: int
    frame: int | None = None
    fps: float | None = None
    bitrate: str | None = None
    size: int | None = None
    time_ms: float | None = None
    speed: str | None = None


_session_ids = itertools.count(1)
_session_ids_lock = threading.Lock()


def next_session_id() -> int:
    """Return a process-wide unique session id."""
    with _session_ids_lock:
        return next(_session_ids)


@dataclass
class EngineSession:
    """Handle to one engine invocation.

    A session moves from ``CREATED`` through ``RUNNING`` to exactly one
    terminal state. The first terminal transition wins; later attempts are
    ignored so late completions cannot overwrite a cancellation.
    """

    command: str
    session_id: int = field(default_factory=next_session_id)
    state: SessionState = SessionState.CREATED
    return_code: int | None = None
    fail_message: str | None = None
    start_time: float | None = None
    end_time: float | None = None
    cancel_requested: bool = False
    logs: list[LogMessage] = field(default_factory=list)
    _lock: threading.Lock = field(
        default_factory=threading.Lock, repr=False, compare=False
    )

    def mark_running(self) -> None:
        """Record the engine start."""
        with self._lock:
            if self.state == SessionState.CREATED:
                self.state = SessionState.RUNNING
                self.start_time = time.monotonic()

    def add_log(self, message: LogMessage) -> None:
        """Append a log line in arrival order."""
        with self._lock:
            self.logs.append(message)

    def finish(
        self,
        state: SessionState,
        return_code: int | None = None,
        fail_message: str | None = None,
    ) -> bool:
        """Move the session into a terminal state.

        Args:
            state: Terminal state to enter.
            return_code: Engine return code, if one is known.
            fail_message: Reason for a failed session.

        Returns:
            True if this call performed the transition, False if the session
            was already terminal.
        """
        if not state.is_terminal:
            raise ValueError(f"{state} is not a terminal state")
        with self._lock:
            if self.state.is_terminal:
                return False
            if self.start_time is None:
                self.start_time = time.monotonic()
            self.state = state
            self.return_code = return_code
            self.fail_message = fail_message
            self.end_time = time.monotonic()
            return True

    @property
    def is_terminal(self) -> bool:
        return self.state.is_terminal

    @property
    def duration_ms(self) -> int:
        """Elapsed milliseconds between start and end (or now, if running)."""
        if self.start_time is None:
            return 0
        end = self.end_time if self.end_time is not None else time.monotonic()
        return int((end - self.start_time) * 1000)

    def get_logs(self) -> list[LogMessage]:
        """Return a snapshot of the collected log lines."""
        with self._lock:
            return list(self.logs)

    def all_logs_as_string(self) -> str:
        """Return every collected log line joined by newlines."""
        return "\n".join(message.text for message in self.get_logs())
