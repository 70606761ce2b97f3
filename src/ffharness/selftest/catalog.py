"""Fixed capability catalog and sample jobs of the self-test battery."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from ffharness.capabilities.models import (
    CapabilityKind,
    CapabilityQuery,
    ProtocolDirection,
)
from ffharness.extraction.command import quote_path


def _queries(
    kind: CapabilityKind,
    names: tuple[str, ...],
    direction: ProtocolDirection | None = None,
) -> tuple[CapabilityQuery, ...]:
    return tuple(CapabilityQuery(kind, name, direction) for name in names)


# (group heading, queries) in report order
CAPABILITY_CATALOG: tuple[tuple[str, tuple[CapabilityQuery, ...]], ...] = (
    (
        "encoders",
        _queries(
            CapabilityKind.ENCODER,
            ("libmp3lame", "libx264", "libx265", "aac", "libopus", "libvpx-vp9"),
        ),
    ),
    (
        "decoders",
        _queries(
            CapabilityKind.DECODER, ("mp3", "h264", "hevc", "aac", "opus", "vp9")
        ),
    ),
    (
        "muxers",
        _queries(
            CapabilityKind.MUXER,
            ("mp3", "mp4", "matroska", "webm", "ogg", "wav", "image2"),
        ),
    ),
    (
        "demuxers",
        _queries(
            CapabilityKind.DEMUXER,
            ("mp3", "mov", "mp4", "matroska", "webm", "ogg", "wav", "image2"),
        ),
    ),
    (
        "filters",
        _queries(
            CapabilityKind.FILTER, ("aresample", "scale", "anull", "nullsrc", "testsrc")
        ),
    ),
    (
        "protocols",
        _queries(
            CapabilityKind.PROTOCOL,
            ("file", "pipe", "http", "https", "crypto", "srt"),
            ProtocolDirection.INPUT,
        ),
    ),
    (
        "bitstream_filters",
        _queries(
            CapabilityKind.BITSTREAM_FILTER, ("h264_mp4toannexb", "aac_adtstoasc")
        ),
    ),
)


def encoder(name: str) -> CapabilityQuery:
    return CapabilityQuery(CapabilityKind.ENCODER, name)


def muxer(name: str) -> CapabilityQuery:
    return CapabilityQuery(CapabilityKind.MUXER, name)


def filter_named(name: str) -> CapabilityQuery:
    return CapabilityQuery(CapabilityKind.FILTER, name)


HTTPS_INPUT = CapabilityQuery(
    CapabilityKind.PROTOCOL, "https", ProtocolDirection.INPUT
)
SRT_INPUT = CapabilityQuery(CapabilityKind.PROTOCOL, "srt", ProtocolDirection.INPUT)


@dataclass(frozen=True)
class SampleJob:
    """One synthetic-input encode of the battery.

    ``arguments`` holds everything but the output path, which is appended
    quoted when the command is built.
    """

    key: str
    label: str
    arguments: str
    output_name: str
    requires: tuple[CapabilityQuery, ...]
    missing_note: str = "not built"
    records_size: bool = False

    def output_path(self, directory: Path) -> Path:
        return directory / self.output_name

    def command(self, directory: Path) -> str:
        return f"{self.arguments} {quote_path(self.output_path(directory))}"


_SINE = "-y -f lavfi -i sine=frequency={freq}:duration=2 -vn"
_TESTSRC = "-y -f lavfi -i testsrc=size=640x360:rate=24:duration=2"

SAMPLE_JOBS: tuple[SampleJob, ...] = (
    SampleJob(
        key="mp3",
        label="MP3 encode (libmp3lame)",
        arguments=f"{_SINE.format(freq=440)} -c:a libmp3lame -q:a 4",
        output_name="selftest.mp3",
        requires=(encoder("libmp3lame"),),
        records_size=True,
    ),
    SampleJob(
        key="aac",
        label="AAC encode (aac)",
        arguments=f"{_SINE.format(freq=523)} -c:a aac -b:a 128k",
        output_name="selftest_aac.m4a",
        requires=(encoder("aac"),),
        records_size=True,
    ),
    SampleJob(
        key="opus",
        label="Opus encode (libopus)",
        arguments=f"{_SINE.format(freq=660)} -c:a libopus -b:a 96k",
        output_name="selftest_opus.opus",
        requires=(encoder("libopus"),),
        records_size=True,
    ),
    SampleJob(
        key="h264",
        label="H.264 encode (libx264→mp4)",
        arguments=(
            f"{_TESTSRC} -c:v libx264 -pix_fmt yuv420p -movflags +faststart"
        ),
        output_name="selftest_h264.mp4",
        requires=(encoder("libx264"), muxer("mp4")),
        missing_note="not built / mp4 muxer missing",
        records_size=True,
    ),
    SampleJob(
        key="h265",
        label="H.265 encode (libx265→mp4)",
        arguments=(
            f"{_TESTSRC} -c:v libx265 -pix_fmt yuv420p -movflags +faststart"
        ),
        output_name="selftest_h265.mp4",
        requires=(encoder("libx265"), muxer("mp4")),
        missing_note="not built / mp4 muxer missing",
        records_size=True,
    ),
    SampleJob(
        key="vp9",
        label="VP9 encode (libvpx-vp9→webm)",
        arguments=f"{_TESTSRC} -c:v libvpx-vp9 -b:v 500k",
        output_name="selftest_vp9.webm",
        requires=(encoder("libvpx-vp9"), muxer("webm")),
        missing_note="not built / webm muxer missing",
        records_size=True,
    ),
    SampleJob(
        key="scale",
        label="Filter (scale)",
        arguments=(
            "-y -f lavfi -i testsrc=size=320x240:rate=10:duration=2 "
            "-vf scale=160:120 -c:v libx264 -t 2"
        ),
        output_name="selftest_scaled.mp4",
        requires=(filter_named("scale"), encoder("libx264"), muxer("mp4")),
        missing_note="missing / encoder or muxer missing",
    ),
    SampleJob(
        key="png",
        label="Image (PNG)",
        arguments=(
            "-y -f lavfi -i testsrc=size=320x180:rate=1:duration=1 "
            "-frames:v 1 -c:v png"
        ),
        output_name="selftest_frame.png",
        requires=(encoder("png"), muxer("image2")),
    ),
    SampleJob(
        key="jpg",
        label="Image (JPEG)",
        arguments=(
            "-y -f lavfi -i testsrc=size=320x180:rate=1:duration=1 "
            "-frames:v 1 -q:v 3 -c:v mjpeg"
        ),
        output_name="selftest_frame.jpg",
        requires=(encoder("mjpeg"), muxer("image2")),
    ),
    SampleJob(
        key="overlay",
        label="Filter (overlay)",
        arguments=(
            "-y -f lavfi -i color=red:s=320x240:d=1 "
            "-f lavfi -i testsrc=size=320x240:rate=24:duration=1 "
            "-filter_complex overlay=10:10 -c:v libx264 -pix_fmt yuv420p"
        ),
        output_name="selftest_overlay.mp4",
        requires=(filter_named("overlay"), encoder("libx264"), muxer("mp4")),
        missing_note="missing / encoder or muxer missing",
    ),
    SampleJob(
        key="atempo",
        label="Audio filter (atempo)",
        arguments=(
            "-y -f lavfi -i sine=frequency=440:duration=2 "
            "-af atempo=1.5 -c:a pcm_s16le"
        ),
        output_name="selftest_atempo.wav",
        requires=(filter_named("atempo"), muxer("wav")),
        missing_note="missing / wav muxer missing",
    ),
)


def sample_job(key: str) -> SampleJob:
    """Look up a sample job by key."""
    for job in SAMPLE_JOBS:
        if job.key == key:
            return job
    raise KeyError(key)
