"""Extraction command building.

Pure mapping from an extraction request to engine arguments. The builder
never inspects engine capabilities itself; the caller says whether the mp3
encoder is available.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

logger = logging.getLogger(__name__)

# Default variable quality for mp3 when no bitrate is given
MP3_DEFAULT_QUALITY = "2"

MP3_ENCODER = "libmp3lame"

_AUDIO_CODECS: dict[str, str] = {
    "aac": "aac",
    "m4a": "aac",
    "wav": "pcm_s16le",
    "flac": "flac",
    "opus": "libopus",
}

_NEEDS_QUOTING = re.compile(r"[\s\"'\\]")


def quote_path(path: str | Path) -> str:
    """Quote a path for a space-joined engine command.

    Paths containing whitespace, quotes or backslashes are wrapped in double
    quotes with ``\\`` and ``"`` escaped. Other paths are returned as-is.
    """
    text = str(path)
    if text and not _NEEDS_QUOTING.search(text):
        return text
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def codec_arguments(fmt: str, *, mp3_supported: bool = True) -> list[str]:
    """Return the ``-c:a`` group for a format, or [] when none applies."""
    fmt = fmt.lower()
    if fmt == "mp3":
        if mp3_supported:
            return ["-c:a", MP3_ENCODER]
        logger.warning(
            "%s not available; leaving mp3 codec selection to the engine",
            MP3_ENCODER,
        )
        return []
    codec = _AUDIO_CODECS.get(fmt)
    return ["-c:a", codec] if codec else []


def build_arguments(
    input_path: str | Path,
    output_path: str | Path,
    fmt: str,
    bitrate_kbps: int | None = None,
    *,
    mp3_supported: bool = True,
) -> list[str]:
    """Build the engine arguments for an audio extraction.

    Args:
        input_path: Source media file.
        output_path: Destination file, always the final argument.
        fmt: Target format token (mp3, aac, m4a, wav, flac, opus).
        bitrate_kbps: Target bitrate; None or 0 selects the format default.
        mp3_supported: Whether the engine build has the mp3 encoder.

    Returns:
        Ordered argument list with paths quoted for space-joining.
    """
    args = ["-y", "-i", quote_path(input_path), "-vn"]

    if bitrate_kbps is not None and bitrate_kbps > 0:
        args.extend(["-b:a", f"{bitrate_kbps}k"])
    elif fmt.lower() == "mp3":
        args.extend(["-q:a", MP3_DEFAULT_QUALITY])

    args.extend(codec_arguments(fmt, mp3_supported=mp3_supported))
    args.append(quote_path(output_path))
    return args


def build_command(
    input_path: str | Path,
    output_path: str | Path,
    fmt: str,
    bitrate_kbps: int | None = None,
    *,
    mp3_supported: bool = True,
) -> str:
    """Build the space-joined engine command for an audio extraction."""
    return " ".join(
        build_arguments(
            input_path,
            output_path,
            fmt,
            bitrate_kbps,
            mp3_supported=mp3_supported,
        )
    )
