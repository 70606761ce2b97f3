"""Tests for FFmpegEngine."""

import io
import subprocess
import threading
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from ffharness.engine.ffmpeg import FFmpegEngine, find_ffmpeg, tokenize, with_level_tags
from ffharness.engine.interface import EngineNotFoundError
from ffharness.engine.types import LogLevel, ReturnCode, SessionState

FFMPEG = Path("/usr/bin/ffmpeg")


def _engine() -> FFmpegEngine:
    engine = FFmpegEngine()
    engine._tool_path = FFMPEG
    return engine


def _fake_process(stdout: str = "", stderr: str = "", rc: int = 0) -> MagicMock:
    process = MagicMock()
    process.stdout = io.StringIO(stdout)
    process.stderr = io.StringIO(stderr)
    process.wait.return_value = rc
    return process


def _run_async(engine, command, **callbacks):
    done = threading.Event()
    finished = []

    def on_complete(session):
        finished.append(session)
        done.set()

    session = engine.execute_async(command, on_complete, **callbacks)
    assert done.wait(5)
    return session, finished


class TestWithLevelTags:
    """Tests for with_level_tags."""

    def test_prepends_tagged_loglevel(self):
        """Every invocation starts with -loglevel level+info."""
        assert with_level_tags(["-version"]) == ["-loglevel", "level+info", "-version"]

    def test_rewrites_absolute_levels(self):
        """Later -v options keep the level tags."""
        args = with_level_tags(["-nostdin", "-v", "verbose", "-i", "x"])
        assert args[3:5] == ["-v", "level+verbose"]

    def test_relative_levels_untouched(self):
        """Already flagged or relative values are left alone."""
        args = with_level_tags(["-loglevel", "repeat+level+debug"])
        assert args[-1] == "repeat+level+debug"


class TestTokenize:
    """Tests for tokenize."""

    def test_quoted_path(self):
        """Double-quoted arguments stay whole."""
        assert tokenize('-i "/music/my song.flac" out.mp3') == [
            "-i",
            "/music/my song.flac",
            "out.mp3",
        ]


class TestFindFfmpeg:
    """Tests for find_ffmpeg."""

    def test_configured_path(self, tmp_path):
        """An existing configured file wins."""
        binary = tmp_path / "ffmpeg"
        binary.write_text("")
        assert find_ffmpeg(binary) == binary

    @patch("ffharness.engine.ffmpeg.shutil.which", return_value="/usr/bin/ffmpeg")
    def test_falls_back_to_path(self, mock_which, tmp_path):
        """A missing configured path falls back to PATH."""
        assert find_ffmpeg(tmp_path / "missing") == FFMPEG

    @patch("ffharness.engine.ffmpeg.shutil.which", return_value=None)
    def test_not_found(self, mock_which):
        """None when ffmpeg is nowhere."""
        assert find_ffmpeg() is None


class TestToolPath:
    """Tests for FFmpegEngine.tool_path."""

    @patch("ffharness.engine.ffmpeg.find_ffmpeg", return_value=None)
    def test_raises_when_missing(self, mock_find):
        """EngineNotFoundError when ffmpeg cannot be resolved."""
        with pytest.raises(EngineNotFoundError):
            FFmpegEngine().tool_path

    @patch("ffharness.engine.ffmpeg.find_ffmpeg", return_value=None)
    def test_execute_fails_without_binary(self, mock_find):
        """A missing binary ends the session FAILED."""
        session = FFmpegEngine().execute("-version")
        assert session.state == SessionState.FAILED
        assert "ffmpeg not found" in session.fail_message


class TestExecute:
    """Tests for synchronous execute."""

    @patch("ffharness.engine.ffmpeg.run_command")
    def test_collects_output(self, mock_run):
        """stdout and parsed stderr lines become session logs."""
        mock_run.return_value = ("ffmpeg version 6.1.1\n", "[error] oops\n", 0)

        session = _engine().execute("-version")

        args = mock_run.call_args[0][0]
        assert args == [str(FFMPEG), "-loglevel", "level+info", "-version"]
        assert session.state == SessionState.COMPLETED
        assert session.return_code == 0
        assert [(m.level, m.text) for m in session.get_logs()] == [
            (LogLevel.INFO, "ffmpeg version 6.1.1"),
            (LogLevel.ERROR, "oops"),
        ]

    @patch("ffharness.engine.ffmpeg.run_command")
    def test_nonzero_exit_is_completed(self, mock_run):
        """A non-zero exit still completes with the return code."""
        mock_run.return_value = ("", "", 1)
        session = _engine().execute("-i missing.wav out.mp3")
        assert session.state == SessionState.COMPLETED
        assert session.return_code == 1

    @patch("ffharness.engine.ffmpeg.run_command")
    def test_timeout_fails(self, mock_run):
        """A timeout ends the session FAILED."""
        mock_run.side_effect = subprocess.TimeoutExpired(cmd="ffmpeg", timeout=1)
        engine = FFmpegEngine(timeout=1)
        engine._tool_path = FFMPEG
        result = engine.execute("-version")
        assert result.state == SessionState.FAILED
        assert "Timed out" in result.fail_message

    @patch("ffharness.engine.ffmpeg.run_command")
    def test_version(self, mock_run):
        """version() extracts the version token."""
        mock_run.return_value = ("ffmpeg version n6.1.1-static Copyright\n", "", 0)
        assert _engine().version() == "n6.1.1-static"

    @patch("ffharness.engine.ffmpeg.run_command")
    def test_version_unknown_on_failure(self, mock_run):
        """version() is None when the engine fails."""
        mock_run.return_value = ("", "", 1)
        assert _engine().version() is None


class TestExecuteAsync:
    """Tests for asynchronous execute."""

    @patch("ffharness.engine.ffmpeg.subprocess.Popen")
    def test_completion_with_logs_and_statistics(self, mock_popen):
        """Logs and statistics are delivered before completion."""
        mock_popen.return_value = _fake_process(
            stdout="frame=1\nout_time_us=500000\nprogress=end\n",
            stderr="[info] Stream mapping:\n[error] boom\n",
            rc=0,
        )
        logs, stats = [], []

        session, finished = _run_async(
            _engine(),
            "-y -i in.mp4 -vn out.mp3",
            log_callback=logs.append,
            statistics_callback=stats.append,
        )

        args = mock_popen.call_args[0][0]
        assert args[-4:] == ["-progress", "pipe:1", "-nostats", "out.mp3"]
        assert finished == [session]
        assert session.state == SessionState.COMPLETED
        assert session.return_code == 0
        assert [m.text for m in logs] == ["Stream mapping:", "boom"]
        assert len(stats) == 1
        assert stats[0].time_ms == 500.0

    @patch("ffharness.engine.ffmpeg.subprocess.Popen")
    def test_no_progress_options_without_statistics(self, mock_popen):
        """Without a statistics callback stdout is logged as-is."""
        mock_popen.return_value = _fake_process(stdout="frame=1\n")
        session, _ = _run_async(_engine(), "-i in.mp4 out.mp3")
        assert "-progress" not in mock_popen.call_args[0][0]
        assert session.all_logs_as_string() == "frame=1"

    @patch("ffharness.engine.ffmpeg.subprocess.Popen", side_effect=OSError("denied"))
    def test_start_failure_fires_callback(self, mock_popen):
        """A failed start ends FAILED and still fires the callback."""
        finished = []
        session = _engine().execute_async("-version", finished.append)
        assert finished == [session]
        assert session.state == SessionState.FAILED
        assert session.fail_message == "denied"

    @patch("ffharness.engine.ffmpeg.subprocess.Popen")
    def test_cancel_marks_cancelled(self, mock_popen):
        """A cancelled process ends CANCELLED with the cancel code."""
        release = threading.Event()
        process = _fake_process(rc=-15)
        process.wait.side_effect = lambda: release.wait(5) and -15
        process.terminate.side_effect = release.set
        mock_popen.return_value = process
        engine = _engine()
        done = threading.Event()

        session = engine.execute_async("-i in.mp4 out.mp3", lambda s: done.set())
        engine.cancel(session)

        assert done.wait(5)
        process.terminate.assert_called_once()
        assert session.state == SessionState.CANCELLED
        assert session.return_code == ReturnCode.CANCEL

    @patch("ffharness.engine.ffmpeg.subprocess.Popen")
    def test_callback_errors_are_logged(self, mock_popen, caplog):
        """An exception in a log callback does not stop the session."""
        mock_popen.return_value = _fake_process(stderr="[info] line\n")

        def broken(message):
            raise RuntimeError("callback bug")

        session, finished = _run_async(_engine(), "-version", log_callback=broken)
        assert session.state == SessionState.COMPLETED
        assert "Engine callback raised" in caplog.text

    def test_cancel_of_terminal_session_is_noop(self):
        """Cancelling a finished session changes nothing."""
        engine = _engine()
        with patch("ffharness.engine.ffmpeg.run_command", return_value=("", "", 0)):
            session = engine.execute("-version")
        engine.cancel(session)
        assert session.state == SessionState.COMPLETED
        assert session.cancel_requested is False
