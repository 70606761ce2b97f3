"""Output file helpers for the write-then-move pattern."""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

TEMP_PREFIX = ".ffharness_temp_"


def create_temp_output(
    output_path: Path,
    temp_dir: Path | None = None,
    prefix: str = TEMP_PREFIX,
) -> Path:
    """Generate a hidden temp path beside the final output.

    The extension is kept so the engine picks the same container.

    Args:
        output_path: Final output path.
        temp_dir: Directory for temp files (None = same as output).
        prefix: Prefix for temp file name.

    Returns:
        Path for temporary output file.
    """
    if temp_dir:
        return temp_dir / f"{prefix}{output_path.name}"
    return output_path.with_name(f"{prefix}{output_path.name}")


def validate_output(output_path: Path) -> tuple[bool, str | None]:
    """Check that the engine produced a non-empty file.

    Returns:
        Tuple of (is_valid, error_message).
    """
    if not output_path.exists():
        return False, f"Output file was not created: {output_path}"
    if output_path.stat().st_size == 0:
        return False, f"Output file is empty: {output_path}"
    return True, None


def cleanup_temp_file(path: Path) -> None:
    """Remove a temporary file, logging any errors."""
    if path.exists():
        try:
            path.unlink()
            logger.debug("Cleaned up temp file: %s", path)
        except OSError as e:
            logger.warning("Could not clean up temp file %s: %s", path, e)
