"""Tests for SessionRunner and PendingExtraction."""

import asyncio
import logging

import pytest

from ffharness.engine.testing import ScriptedEngine, ScriptedResponse
from ffharness.engine.types import EngineSession, LogLevel, SessionState
from ffharness.extraction.models import ExtractionResult
from ffharness.extraction.runner import PendingExtraction, SessionRunner


@pytest.fixture
def held_engine() -> ScriptedEngine:
    return ScriptedEngine(default=ScriptedResponse(hold=True))


class TestSessionRunnerOutcomes:
    """Tests for result mapping."""

    def test_success(self, scripted_engine):
        """A zero exit settles successfully."""
        pending = SessionRunner(scripted_engine).execute_async("-i a b.wav")
        result = pending.result(timeout=1)
        assert result.success
        assert result.message.startswith("Extraction completed in ")
        assert result.message.endswith("ms")

    def test_nonzero_exit(self):
        """A non-zero exit fails with the code in the message."""
        engine = ScriptedEngine(
            default=ScriptedResponse(return_code=1, lines=["[error] Invalid data"])
        )
        result = SessionRunner(engine).execute_async("-i a b.wav").result(timeout=1)
        assert not result.success
        assert result.message.startswith("Failed: 1 after ")
        assert result.logs == ("Invalid data",)

    def test_start_failure_message_in_logs(self):
        """A FAILED session reports its fail message."""
        engine = ScriptedEngine(default=ScriptedResponse(fail_message="not found"))
        result = SessionRunner(engine).execute_async("-version").result(timeout=1)
        assert not result.success
        assert "not found" in result.message
        assert result.logs[-1] == "not found"

    def test_engine_exception(self):
        """An exception from the engine settles a failure."""

        class BrokenEngine(ScriptedEngine):
            def execute_async(self, *args, **kwargs):
                raise OSError("spawn failed")

        result = SessionRunner(BrokenEngine()).execute_async("-version").result(1)
        assert result.message == "Failed to start engine: spawn failed"

    def test_preflight_failure_skips_engine(self, scripted_engine):
        """A preflight failure never invokes the engine."""
        pending = SessionRunner(scripted_engine).execute_async(
            "", preflight_failure="encoder missing"
        )
        assert pending.done()
        assert pending.result().message == "encoder missing"
        assert scripted_engine.invocations == []


class TestSessionRunnerLogs:
    """Tests for log retention."""

    def test_retain_level_filters(self):
        """Lines below the retain level are dropped."""
        engine = ScriptedEngine(
            default=ScriptedResponse(
                lines=["[debug] noise", "[info] Stream #0", "[warning] odd"]
            )
        )
        result = SessionRunner(engine, retain_level=LogLevel.INFO).execute_async(
            "x"
        ).result(1)
        assert result.logs == ("Stream #0", "odd")

    def test_bounded_to_newest_lines(self):
        """Only the newest max_log_lines are kept."""
        engine = ScriptedEngine(
            default=ScriptedResponse(lines=[f"line {i}" for i in range(10)])
        )
        result = SessionRunner(engine, max_log_lines=3).execute_async("x").result(1)
        assert result.logs == ("line 7", "line 8", "line 9")

    def test_lines_forwarded_to_logging(self, caplog):
        """Retained lines are forwarded under the engine log name."""
        engine = ScriptedEngine(default=ScriptedResponse(lines=["[error] bad frame"]))
        with caplog.at_level(logging.INFO, logger="ffharness.engine.log"):
            SessionRunner(engine).execute_async("x", label="extract:mp3").result(1)
        record = next(r for r in caplog.records if r.name == "ffharness.engine.log")
        assert record.levelno == logging.ERROR
        assert record.getMessage() == "bad frame"

    def test_invalid_max_lines(self, scripted_engine):
        """max_log_lines must be positive."""
        with pytest.raises(ValueError):
            SessionRunner(scripted_engine, max_log_lines=0)


class TestPendingExtractionSettlement:
    """Tests for exactly-once settlement."""

    def test_callbacks_fire_once(self, held_engine):
        """Every registered callback sees the single result."""
        pending = SessionRunner(held_engine).execute_async("x")
        seen_a, seen_b = [], []
        pending.add_done_callback(seen_a.append)
        pending.add_done_callback(seen_b.append)

        held_engine.release(pending.session)
        held_engine.release(pending.session)

        assert len(seen_a) == 1
        assert seen_a == seen_b

    def test_no_callbacks(self, held_engine):
        """Settlement works without any registered callback."""
        pending = SessionRunner(held_engine).execute_async("x")
        held_engine.release(pending.session)
        assert pending.result(1).success

    def test_callback_after_settlement_fires_immediately(self, scripted_engine):
        """A callback added after settlement runs at once."""
        pending = SessionRunner(scripted_engine).execute_async("x")
        seen = []
        pending.add_done_callback(seen.append)
        assert len(seen) == 1

    def test_settle_returns_false_second_time(self):
        """Only the first settle call counts."""
        pending = PendingExtraction()
        assert pending.settle(ExtractionResult(True, "ok"))
        assert not pending.settle(ExtractionResult(False, "late"))
        assert pending.result().message == "ok"


class TestPendingExtractionCancel:
    """Tests for cancellation."""

    def test_cancel_running_session(self, held_engine):
        """Cancel settles a cancelled result and stops the engine once."""
        pending = SessionRunner(held_engine).execute_async("x")

        assert pending.cancel() is True
        assert pending.cancel() is False

        result = pending.result(1)
        assert result.cancelled
        assert result.message.startswith("Cancelled after ")
        assert len(held_engine.cancel_calls) == 1
        assert pending.session.state == SessionState.CANCELLED

    def test_late_completion_ignored(self, held_engine):
        """A completion after cancel does not change the result."""
        pending = SessionRunner(held_engine).execute_async("x")
        session = pending.session
        pending.cancel()
        held_engine.release(session, return_code=0)
        assert pending.result().cancelled

    def test_cancel_before_session_known(self, held_engine):
        """A stop requested before the session exists is forwarded later."""
        pending = PendingExtraction(held_engine, "extract:wav")
        pending.cancel()
        assert held_engine.cancel_calls == []

        session = held_engine.execute_async("x", lambda s: None)
        pending.attach_session(session)

        assert held_engine.cancel_calls == [session]
        assert pending.result().cancelled

    def test_cancel_error_is_swallowed(self, caplog):
        """An engine error on stop is logged and the cancel still settles."""
        engine = ScriptedEngine(
            default=ScriptedResponse(hold=True), cancel_error=RuntimeError("stuck")
        )
        pending = SessionRunner(engine).execute_async("x")

        assert pending.cancel() is True
        assert pending.result().cancelled
        assert "Engine stop request" in caplog.text

    def test_cancel_after_completion_is_noop(self, scripted_engine):
        """Cancelling a settled operation does nothing."""
        pending = SessionRunner(scripted_engine).execute_async("x")
        assert pending.cancel() is False
        assert scripted_engine.cancel_calls == []
        assert pending.result().success

    def test_terminal_session_not_stopped(self):
        """No stop is sent for a session that already finished."""
        engine = ScriptedEngine()
        session = EngineSession("x")
        session.finish(SessionState.COMPLETED, return_code=0)
        pending = PendingExtraction(engine)
        pending.cancel()
        pending.attach_session(session)
        assert engine.cancel_calls == []


class TestPendingExtractionAsync:
    """Tests for awaiting a PendingExtraction."""

    @pytest.mark.asyncio
    async def test_wait(self, held_engine):
        """wait() resolves with the result."""
        pending = SessionRunner(held_engine).execute_async("x")
        loop = asyncio.get_running_loop()
        loop.call_soon(held_engine.release, pending.session)
        result = await pending.wait()
        assert result.success

    @pytest.mark.asyncio
    async def test_cancelling_waiter_cancels_operation(self, held_engine):
        """Cancelling the awaiting task cancels the engine session."""
        pending = SessionRunner(held_engine).execute_async("x")
        task = asyncio.create_task(pending.wait())
        await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert pending.result().cancelled
        assert len(held_engine.cancel_calls) == 1
