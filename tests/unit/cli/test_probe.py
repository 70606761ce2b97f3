"""Tests for the probe command."""

import json

from ffharness.cli.exit_codes import ExitCode


class TestProbeCommand:
    """Tests for ffharness probe."""

    def test_all_present(self, invoke, full_build):
        """Exit 0 when every name is present."""
        result = invoke(["probe", "encoder", "libmp3lame", "aac"], full_build)
        assert result.exit_code == 0
        assert "✓ encoder libmp3lame" in result.stdout
        assert "✓ encoder aac" in result.stdout

    def test_missing_component(self, invoke, lgpl_build):
        """Exit CAPABILITY_MISSING when a name is absent."""
        result = invoke(["probe", "encoder", "libx264", "aac"], lgpl_build)
        assert result.exit_code == ExitCode.CAPABILITY_MISSING
        assert "✗ encoder libx264" in result.stdout

    def test_protocol_direction(self, invoke, full_build):
        """--output checks the output section."""
        assert invoke(["probe", "protocol", "https"], full_build).exit_code == 0
        result = invoke(["probe", "protocol", "https", "--output"], full_build)
        assert result.exit_code == ExitCode.CAPABILITY_MISSING

    def test_bitstream_filter(self, invoke, full_build):
        """Bitstream filters are probed through the bsf topic."""
        result = invoke(["probe", "bitstream-filter", "aac_adtstoasc"], full_build)
        assert result.exit_code == 0
        assert full_build.invocations_matching(r"-h bsf=aac_adtstoasc")

    def test_json(self, invoke, full_build):
        """--json reports a name to presence map."""
        result = invoke(["probe", "muxer", "mp4", "mxf", "--json"], full_build)
        data = json.loads(result.stdout)
        assert data == {
            "kind": "muxer",
            "direction": None,
            "results": {"mp4": True, "mxf": False},
        }

    def test_unknown_kind(self, invoke, full_build):
        """Unknown kinds are rejected by the parser."""
        result = invoke(["probe", "codec", "aac"], full_build)
        assert result.exit_code == 2
