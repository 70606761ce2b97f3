"""Engine protocol.

The engine is an injected collaborator: the extractor, the capability prober
and the self-test battery all receive an ``Engine`` rather than reaching for
a global. ``FFmpegEngine`` drives the real binary; ``ScriptedEngine`` replays
canned responses in tests.
"""

from collections.abc import Callable
from typing import Protocol

from ffharness.engine.types import EngineSession, LogMessage, Statistics

CompleteCallback = Callable[[EngineSession], None]
LogCallback = Callable[[LogMessage], None]
StatisticsCallback = Callable[[Statistics], None]


class EngineNotFoundError(RuntimeError):
    """Raised when the engine binary cannot be resolved."""


class Engine(Protocol):
    """Protocol for media engines.

    Commands are one space-joined string; arguments containing whitespace
    are wrapped in double quotes.
    """

    def execute(self, command: str) -> EngineSession:
        """Run a command to completion.

        Args:
            command: Engine arguments as one string.

        Returns:
            Terminal session with every output line collected as a log
            message.
        """
        ...

    def execute_async(
        self,
        command: str,
        complete_callback: CompleteCallback,
        log_callback: LogCallback | None = None,
        statistics_callback: StatisticsCallback | None = None,
    ) -> EngineSession:
        """Start a command and return immediately.

        Callbacks are invoked from the engine's own worker. The completion
        callback fires exactly once, including when the engine cannot be
        started (the session then ends ``FAILED``).

        Args:
            command: Engine arguments as one string.
            complete_callback: Called with the terminal session.
            log_callback: Called per log line.
            statistics_callback: Called per progress report.

        Returns:
            The session handle.
        """
        ...

    def cancel(self, session: EngineSession) -> None:
        """Request a cooperative stop; the session ends ``CANCELLED``."""
        ...

    def version(self) -> str | None:
        """Return the engine version string, or None if undiscoverable."""
        ...
