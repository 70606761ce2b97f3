"""Session runner.

Bridges the engine's callback-driven execution (log lines, statistics, one
completion) into a PendingExtraction that settles exactly once, and routes
cancellation back to the engine.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import threading
import time
from collections import deque
from collections.abc import Callable
from contextlib import nullcontext

from ffharness.core.formatting import format_duration_ms
from ffharness.engine.interface import Engine
from ffharness.engine.types import (
    EngineSession,
    LogLevel,
    LogMessage,
    ReturnCode,
    SessionState,
    Statistics,
)
from ffharness.extraction.models import ExtractionResult
from ffharness.logging.context import job_context

logger = logging.getLogger(__name__)

# Engine lines are forwarded under their own logger name
engine_logger = logging.getLogger("ffharness.engine.log")


class _LogBuffer:
    """Bounded, thread-safe buffer of retained engine lines."""

    def __init__(self, retain_level: LogLevel, max_lines: int) -> None:
        self._retain_level = retain_level
        self._lines: deque[str] = deque(maxlen=max_lines)
        self._lock = threading.Lock()

    def add(self, message: LogMessage) -> bool:
        if not message.level.is_at_least(self._retain_level):
            return False
        with self._lock:
            self._lines.append(message.text)
        return True

    def snapshot(self) -> tuple[str, ...]:
        with self._lock:
            return tuple(self._lines)


class PendingExtraction:
    """Asynchronous result of one engine session.

    Settles exactly once, either from the engine's completion or from
    cancel(). Waiters can block (result), poll (done), register a callback,
    or await (wait).
    """

    def __init__(
        self,
        engine: Engine | None = None,
        label: str | None = None,
        logs: Callable[[], tuple[str, ...]] | None = None,
    ) -> None:
        self.label = label
        self._engine = engine
        self._logs = logs or tuple
        self._future: concurrent.futures.Future[ExtractionResult] = (
            concurrent.futures.Future()
        )
        self._lock = threading.Lock()
        self._settled = False
        self._cancel_requested = False
        self._stop_forwarded = False
        self._session: EngineSession | None = None
        self._started = time.monotonic()

    @property
    def session(self) -> EngineSession | None:
        """Engine session, once the engine has handed it back."""
        return self._session

    def settle(self, result: ExtractionResult) -> bool:
        """Resolve with ``result``.

        Returns:
            True if this call settled the operation, False if it was already
            settled.
        """
        with self._lock:
            if self._settled:
                return False
            self._settled = True
        self._future.set_result(result)
        return True

    def attach_session(self, session: EngineSession) -> None:
        """Record the engine session, forwarding a pending stop request."""
        with self._lock:
            self._session = session
            forward = self._cancel_requested and not self._stop_forwarded
            if forward:
                self._stop_forwarded = True
        if forward:
            self._forward_stop(session)

    def cancel(self) -> bool:
        """Cancel the operation.

        Settles with a cancelled result and asks the engine to stop. Never
        waits for the engine's completion.

        Returns:
            True if the operation was still pending.
        """
        elapsed_ms = int((time.monotonic() - self._started) * 1000)
        result = ExtractionResult(
            success=False,
            message=f"Cancelled after {elapsed_ms}ms",
            logs=self._logs(),
            cancelled=True,
            elapsed_ms=elapsed_ms,
        )
        if not self.settle(result):
            return False

        with self._lock:
            self._cancel_requested = True
            session = self._session
            forward = session is not None and not self._stop_forwarded
            if forward:
                self._stop_forwarded = True
        logger.info("Cancelling %s", self.label or "engine session")
        if forward and session is not None:
            self._forward_stop(session)
        return True

    def _forward_stop(self, session: EngineSession) -> None:
        if self._engine is None or session.is_terminal:
            return
        try:
            self._engine.cancel(session)
        except Exception as e:
            logger.warning(
                "Engine stop request for session %d failed: %s",
                session.session_id,
                e,
            )

    def done(self) -> bool:
        return self._future.done()

    def result(self, timeout: float | None = None) -> ExtractionResult:
        """Block until settled.

        Raises:
            TimeoutError: If ``timeout`` elapses first.
        """
        return self._future.result(timeout)

    def add_done_callback(self, fn: Callable[[ExtractionResult], None]) -> None:
        """Call ``fn`` with the result once settled (immediately if done)."""
        self._future.add_done_callback(lambda future: fn(future.result()))

    async def wait(self) -> ExtractionResult:
        """Await the result.

        Cancelling the awaiting task cancels the operation.
        """
        try:
            return await asyncio.shield(asyncio.wrap_future(self._future))
        except asyncio.CancelledError:
            self.cancel()
            raise


class SessionRunner:
    """Runs engine commands and produces PendingExtraction results.

    Only log lines at ``retain_level`` or more severe are kept, bounded to the
    newest ``max_log_lines``. Retained lines are also forwarded to Python
    logging at the matching level.
    """

    def __init__(
        self,
        engine: Engine,
        retain_level: LogLevel = LogLevel.INFO,
        max_log_lines: int = 1000,
    ) -> None:
        if max_log_lines < 1:
            raise ValueError("max_log_lines must be at least 1")
        self._engine = engine
        self._retain_level = retain_level
        self._max_log_lines = max_log_lines

    @property
    def engine(self) -> Engine:
        return self._engine

    def execute_async(
        self,
        command: str,
        *,
        label: str | None = None,
        preflight_failure: str | None = None,
    ) -> PendingExtraction:
        """Start ``command`` on the engine.

        Args:
            command: Space-joined engine arguments.
            label: Job label for log context.
            preflight_failure: When given, the engine is not invoked and the
                result fails with this message.

        Returns:
            PendingExtraction that settles once.
        """
        buffer = _LogBuffer(self._retain_level, self._max_log_lines)
        pending = PendingExtraction(self._engine, label, buffer.snapshot)

        if preflight_failure is not None:
            logger.warning("%s", preflight_failure)
            pending.settle(ExtractionResult.failure(preflight_failure))
            return pending

        def on_log(message: LogMessage) -> None:
            if buffer.add(message):
                engine_logger.log(message.level.to_logging(), "%s", message.text)

        def on_statistics(statistics: Statistics) -> None:
            logger.debug(
                "Progress: time=%sms size=%s speed=%s",
                statistics.time_ms,
                statistics.size,
                statistics.speed,
            )

        def on_complete(session: EngineSession) -> None:
            result = self._result_for(session, buffer)
            if pending.settle(result):
                logger.debug("Session %d settled: %s", session.session_id, result.message)
            else:
                logger.debug(
                    "Ignoring late completion of session %d", session.session_id
                )

        context = job_context(label) if label else nullcontext()
        with context:
            logger.debug("Starting engine command: %s", command)
            try:
                session = self._engine.execute_async(
                    command, on_complete, on_log, on_statistics
                )
            except Exception as e:
                logger.exception("Engine failed to start command")
                pending.settle(ExtractionResult.failure(f"Failed to start engine: {e}"))
                return pending

        pending.attach_session(session)
        return pending

    @staticmethod
    def _result_for(session: EngineSession, buffer: _LogBuffer) -> ExtractionResult:
        elapsed_ms = session.duration_ms
        logs = buffer.snapshot()
        if session.fail_message:
            logs = (*logs, session.fail_message)

        if session.state == SessionState.CANCELLED:
            return ExtractionResult(
                success=False,
                message=f"Cancelled after {elapsed_ms}ms",
                logs=logs,
                cancelled=True,
                elapsed_ms=elapsed_ms,
            )

        success = session.state == SessionState.COMPLETED and ReturnCode.is_success(
            session.return_code
        )
        if success:
            message = f"Extraction completed in {elapsed_ms}ms"
            logger.info("Engine finished in %s", format_duration_ms(elapsed_ms))
        else:
            code = (
                session.return_code
                if session.return_code is not None
                else session.fail_message or session.state.value
            )
            message = f"Failed: {code} after {elapsed_ms}ms"
            logger.warning("Engine failed: %s", message)
        return ExtractionResult(
            success=success,
            message=message,
            logs=logs,
            elapsed_ms=elapsed_ms,
        )
