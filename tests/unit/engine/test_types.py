"""Tests for engine session types."""

import logging
import threading

import pytest

from ffharness.engine.types import (
    EngineSession,
    LogLevel,
    LogMessage,
    ReturnCode,
    SessionState,
    next_session_id,
)


class TestLogLevel:
    """Tests for LogLevel ordering and parsing."""

    def test_lower_value_is_more_severe(self):
        """Engine numbering puts ERROR below INFO."""
        assert LogLevel.ERROR < LogLevel.WARNING < LogLevel.INFO < LogLevel.TRACE

    def test_is_at_least(self):
        """Severity comparison follows the engine numbering."""
        assert LogLevel.FATAL.is_at_least(LogLevel.ERROR)
        assert LogLevel.ERROR.is_at_least(LogLevel.ERROR)
        assert not LogLevel.WARNING.is_at_least(LogLevel.ERROR)

    def test_quiet_is_never_severe(self):
        """QUIET output never counts as an error."""
        assert not LogLevel.QUIET.is_at_least(LogLevel.ERROR)

    def test_parse(self):
        """Tokens map case-insensitively; unknown tokens give None."""
        assert LogLevel.parse("warning") == LogLevel.WARNING
        assert LogLevel.parse(" Error ") == LogLevel.ERROR
        assert LogLevel.parse("loud") is None

    def test_to_logging(self):
        """Engine levels map onto Python logging levels."""
        assert LogLevel.PANIC.to_logging() == logging.ERROR
        assert LogLevel.WARNING.to_logging() == logging.WARNING
        assert LogLevel.INFO.to_logging() == logging.INFO
        assert LogLevel.VERBOSE.to_logging() == logging.DEBUG


class TestReturnCode:
    """Tests for ReturnCode helpers."""

    def test_success_and_cancel(self):
        """0 is success and 255 is cancel."""
        assert ReturnCode.is_success(0)
        assert not ReturnCode.is_success(None)
        assert ReturnCode.is_cancel(255)
        assert not ReturnCode.is_cancel(1)


class TestEngineSession:
    """Tests for EngineSession state transitions."""

    def test_ids_are_unique(self):
        """Every session gets a fresh id."""
        assert EngineSession("a").session_id != EngineSession("b").session_id
        assert next_session_id() < next_session_id()

    def test_lifecycle(self):
        """A session runs and finishes once."""
        session = EngineSession("-version")
        assert session.state == SessionState.CREATED
        session.mark_running()
        assert session.state == SessionState.RUNNING

        assert session.finish(SessionState.COMPLETED, return_code=0) is True
        assert session.is_terminal
        assert session.return_code == 0
        assert session.duration_ms >= 0

    def test_first_terminal_transition_wins(self):
        """A late completion cannot overwrite a cancellation."""
        session = EngineSession("-i in.mp4 out.mp3")
        session.mark_running()
        assert session.finish(SessionState.CANCELLED, return_code=255)
        assert session.finish(SessionState.COMPLETED, return_code=0) is False
        assert session.state == SessionState.CANCELLED
        assert session.return_code == 255

    def test_non_terminal_state_rejected(self):
        """finish() only accepts terminal states."""
        with pytest.raises(ValueError):
            EngineSession("x").finish(SessionState.RUNNING)

    def test_concurrent_finish_has_one_winner(self):
        """Exactly one of many racing finish() calls succeeds."""
        session = EngineSession("x")
        results = []
        barrier = threading.Barrier(8)

        def race(state):
            barrier.wait()
            results.append(session.finish(state, return_code=0))

        threads = [
            threading.Thread(
                target=race,
                args=(SessionState.COMPLETED if i % 2 else SessionState.CANCELLED,),
            )
            for i in range(8)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert results.count(True) == 1

    def test_logs_keep_arrival_order(self):
        """Collected logs are returned in order and joined by newlines."""
        session = EngineSession("x")
        for text in ("one", "two", "three"):
            session.add_log(LogMessage(session.session_id, LogLevel.INFO, text))
        assert [m.text for m in session.get_logs()] == ["one", "two", "three"]
        assert session.all_logs_as_string() == "one\ntwo\nthree"

    def test_duration_zero_before_start(self):
        """A session that never started has no duration."""
        assert EngineSession("x").duration_ms == 0
