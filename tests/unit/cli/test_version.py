"""Tests for the version command."""

from ffharness.cli.exit_codes import ExitCode
from ffharness.engine.testing import ScriptedEngine


class TestVersionCommand:
    """Tests for ffharness version."""

    def test_versions(self, invoke, scripted_engine):
        """Both versions are printed."""
        result = invoke(["version"], scripted_engine)
        assert result.exit_code == 0
        assert result.stdout == "ffharness 0.1.0\nffmpeg version: 6.1-scripted\n"

    def test_unknown_engine_version(self, invoke):
        """An undiscoverable engine version exits TOOL_NOT_AVAILABLE."""
        result = invoke(["version"], ScriptedEngine(version_string=None))
        assert result.exit_code == ExitCode.TOOL_NOT_AVAILABLE
        assert "ffmpeg version: unknown" in result.stdout
