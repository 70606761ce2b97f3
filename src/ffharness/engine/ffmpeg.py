"""Subprocess-backed engine.

FFmpegEngine runs the ffmpeg binary with Popen and reads its output streams
on daemon threads, translating them into the engine callback channels.
"""

from __future__ import annotations

import contextvars
import logging
import re
import shlex
import shutil
import subprocess  # nosec B404 - subprocess is required for ffmpeg invocation
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any

from ffharness.core.subprocess_utils import run_command
from ffharness.engine.interface import (
    CompleteCallback,
    EngineNotFoundError,
    LogCallback,
    StatisticsCallback,
)
from ffharness.engine.output import ProgressParser, parse_log_line
from ffharness.engine.types import (
    EngineSession,
    LogLevel,
    LogMessage,
    ReturnCode,
    SessionState,
)

logger = logging.getLogger(__name__)

_LOGLEVEL_OPTIONS = frozenset(("-v", "-loglevel"))
_VERSION_PATTERN = re.compile(r"ffmpeg version (\S+)")


def find_ffmpeg(configured_path: Path | None = None) -> Path | None:
    """Find the ffmpeg executable.

    Args:
        configured_path: Optional configured path override.

    Returns:
        Path to the executable, or None if not found.
    """
    if configured_path:
        if configured_path.is_file():
            return configured_path
        logger.warning("Configured path for ffmpeg is not a file: %s", configured_path)

    which_result = shutil.which("ffmpeg")
    if which_result:
        return Path(which_result)
    return None


def tokenize(command: str) -> list[str]:
    """Split a command string into arguments, honouring double quotes."""
    return shlex.split(command)


def with_level_tags(args: list[str]) -> list[str]:
    """Make every loglevel option print ``[level]`` tags.

    Prepends ``-loglevel level+info`` and rewrites later absolute loglevel
    options (``-v error``) to their tagged form (``-v level+error``), since
    an absolute value clears the tag flag.
    """
    result = ["-loglevel", "level+info"]
    expect_level = False
    for arg in args:
        if expect_level and not arg.startswith(("+", "-")) and "+" not in arg:
            arg = f"level+{arg}"
        expect_level = arg in _LOGLEVEL_OPTIONS
        result.append(arg)
    return result


def _spawn(target: Callable[[], None], name: str) -> threading.Thread:
    # Each thread needs its own context copy; a Context is single-entry
    context = contextvars.copy_context()
    thread = threading.Thread(target=context.run, args=(target,), name=name, daemon=True)
    thread.start()
    return thread


class FFmpegEngine:
    """Engine that runs the ffmpeg binary.

    Provides:
    - Lazy tool path resolution (configured path, then PATH)
    - Level-tagged log capture from stderr
    - Progress statistics from ``-progress pipe:1`` on stdout
    - Cooperative cancellation by terminating the process
    """

    DEFAULT_TIMEOUT: float = 120.0  # Synchronous execute() limit
    STREAM_DRAIN_TIMEOUT: float = 5.0  # Reader join limit after process exit

    def __init__(
        self, ffmpeg_path: Path | None = None, timeout: float | None = None
    ) -> None:
        """Initialize the engine.

        Args:
            ffmpeg_path: Configured ffmpeg path. None looks ffmpeg up in PATH.
            timeout: Limit for synchronous execute() in seconds.
        """
        self._configured_path = ffmpeg_path
        self._tool_path: Path | None = None
        self._timeout = timeout if timeout is not None else self.DEFAULT_TIMEOUT
        self._processes: dict[int, subprocess.Popen[str]] = {}
        self._processes_lock = threading.Lock()

    @property
    def tool_path(self) -> Path:
        """Get path to ffmpeg, verifying availability.

        Raises:
            EngineNotFoundError: If ffmpeg cannot be found.
        """
        if self._tool_path is None:
            path = find_ffmpeg(self._configured_path)
            if path is None:
                raise EngineNotFoundError(
                    "ffmpeg not found. Install ffmpeg or set FFHARNESS_FFMPEG_PATH."
                )
            self._tool_path = path
        return self._tool_path

    def _build_args(self, command: str, progress: bool) -> list[str]:
        args = [str(self.tool_path), *with_level_tags(tokenize(command))]
        if progress:
            # Progress options must precede the output path
            args[-1:-1] = ["-progress", "pipe:1", "-nostats"]
        return args

    def execute(self, command: str) -> EngineSession:
        session = EngineSession(command=command)
        try:
            args = self._build_args(command, progress=False)
        except (EngineNotFoundError, ValueError) as e:
            session.finish(SessionState.FAILED, fail_message=str(e))
            return session

        session.mark_running()
        try:
            stdout, stderr, rc = run_command(args, timeout=self._timeout)
        except subprocess.TimeoutExpired:
            session.finish(
                SessionState.FAILED,
                fail_message=f"Timed out after {self._timeout}s",
            )
            return session
        except OSError as e:
            session.finish(SessionState.FAILED, fail_message=str(e))
            return session

        for line in stdout.splitlines():
            session.add_log(LogMessage(session.session_id, LogLevel.INFO, line))
        for line in stderr.splitlines():
            level, text = parse_log_line(line)
            session.add_log(LogMessage(session.session_id, level, text))
        session.finish(SessionState.COMPLETED, return_code=rc)
        return session

    def execute_async(
        self,
        command: str,
        complete_callback: CompleteCallback,
        log_callback: LogCallback | None = None,
        statistics_callback: StatisticsCallback | None = None,
    ) -> EngineSession:
        session = EngineSession(command=command)
        try:
            args = self._build_args(command, progress=statistics_callback is not None)
            session.mark_running()
            process = subprocess.Popen(  # nosec B603 - args are tokenized engine options
                args,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
            )
        except (EngineNotFoundError, ValueError, OSError) as e:
            logger.error("Failed to start ffmpeg: %s", e)
            session.finish(SessionState.FAILED, fail_message=str(e))
            self._notify(complete_callback, session)
            return session

        with self._processes_lock:
            self._processes[session.session_id] = process
        if session.cancel_requested:
            process.terminate()

        def emit_log(level: LogLevel, text: str) -> None:
            message = LogMessage(session.session_id, level, text)
            session.add_log(message)
            if log_callback is not None:
                self._notify(log_callback, message)

        def read_stderr() -> None:
            try:
                assert process.stderr is not None
                for line in process.stderr:
                    emit_log(*parse_log_line(line))
            except (ValueError, OSError) as e:
                # Pipe closed or process terminated
                logger.debug("Stderr reader stopped: %s", e)

        def read_stdout() -> None:
            parser = ProgressParser(session.session_id)
            try:
                assert process.stdout is not None
                for line in process.stdout:
                    if statistics_callback is not None and parser.is_progress_line(line):
                        statistics = parser.feed(line)
                        if statistics is not None:
                            self._notify(statistics_callback, statistics)
                    else:
                        emit_log(LogLevel.INFO, line.rstrip("\r\n"))
            except (ValueError, OSError) as e:
                logger.debug("Stdout reader stopped: %s", e)

        def wait() -> None:
            readers = [
                _spawn(read_stderr, f"ffmpeg-{session.session_id}-stderr"),
                _spawn(read_stdout, f"ffmpeg-{session.session_id}-stdout"),
            ]
            rc = process.wait()
            for reader in readers:
                reader.join(timeout=self.STREAM_DRAIN_TIMEOUT)
                if reader.is_alive():
                    logger.error(
                        "Reader thread %s failed to terminate. "
                        "Thread will be abandoned.",
                        reader.name,
                    )
            with self._processes_lock:
                self._processes.pop(session.session_id, None)

            if session.cancel_requested:
                session.finish(SessionState.CANCELLED, return_code=ReturnCode.CANCEL)
            else:
                session.finish(SessionState.COMPLETED, return_code=rc)
            self._notify(complete_callback, session)

        _spawn(wait, f"ffmpeg-{session.session_id}")
        return session

    def cancel(self, session: EngineSession) -> None:
        if session.is_terminal:
            return
        session.cancel_requested = True
        with self._processes_lock:
            process = self._processes.get(session.session_id)
        if process is None:
            return
        logger.debug("Terminating ffmpeg session %d", session.session_id)
        try:
            process.terminate()
        except ProcessLookupError:
            # Already exited; the worker records the cancellation
            pass

    def version(self) -> str | None:
        session = self.execute("-version")
        if not ReturnCode.is_success(session.return_code):
            return None
        match = _VERSION_PATTERN.search(session.all_logs_as_string())
        return match.group(1) if match else None

    @staticmethod
    def _notify(callback: Callable[[Any], None], value: Any) -> None:
        try:
            callback(value)
        except Exception:
            logger.exception("Engine callback raised")
