"""Shared test fixtures for ffharness."""

import shutil
import tempfile
from pathlib import Path

import pytest

from ffharness.config import clear_config_cache
from ffharness.engine.testing import ScriptedEngine

# Capabilities of a typical full GPL build
FULL_BUILD = {
    "encoders": (
        "libmp3lame",
        "libx264",
        "libx265",
        "aac",
        "libopus",
        "libvpx-vp9",
        "png",
        "mjpeg",
        "pcm_s16le",
        "flac",
    ),
    "decoders": ("mp3", "h264", "hevc", "aac", "opus", "vp9"),
    "muxers": ("mp3", "mp4", "matroska", "webm", "ogg", "wav", "image2"),
    "demuxers": ("mp3", "mov", "mp4", "matroska", "webm", "ogg", "wav", "image2"),
    "filters": (
        "aresample",
        "scale",
        "anull",
        "nullsrc",
        "testsrc",
        "overlay",
        "atempo",
    ),
    "bitstream_filters": ("h264_mp4toannexb", "aac_adtstoasc"),
    "input_protocols": ("file", "pipe", "http", "https", "crypto", "srt"),
    "output_protocols": ("file", "pipe", "http"),
}


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test isolation."""
    dir_path = tempfile.mkdtemp()
    yield Path(dir_path)
    shutil.rmtree(dir_path, ignore_errors=True)


@pytest.fixture
def scripted_engine() -> ScriptedEngine:
    """Engine double with no rules: every command succeeds silently."""
    return ScriptedEngine()


@pytest.fixture
def full_build() -> ScriptedEngine:
    """Engine double answering introspection like a full GPL build."""
    return ScriptedEngine.for_build(**FULL_BUILD)


@pytest.fixture
def build_without():
    """Factory for full-build doubles lacking the named components.

    Example:
        engine = build_without(muxers=("webm",))
    """

    def factory(version_string="6.1-scripted", **missing):
        kwargs = {
            kind: tuple(name for name in names if name not in missing.get(kind, ()))
            for kind, names in FULL_BUILD.items()
        }
        return ScriptedEngine.for_build(**kwargs, version_string=version_string)

    return factory


@pytest.fixture
def lgpl_build(build_without) -> ScriptedEngine:
    """Engine double for a build without libmp3lame, x264 or x265."""
    return build_without(encoders=("libmp3lame", "libx264", "libx265"))


@pytest.fixture(autouse=True)
def _clear_config_cache():
    """Config file cache must not leak between tests."""
    clear_config_cache()
    yield
    clear_config_cache()
