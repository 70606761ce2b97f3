"""Display helpers for sizes, durations and engine log excerpts."""

_SIZE_UNITS = ("B", "KB", "MB", "GB")


def format_file_size(size_bytes: int) -> str:
    """Format file size in human-readable format.

    The value is scaled to the largest base-1024 unit for which it is still
    at least 1, and rendered with one decimal digit.

    Args:
        size_bytes: File size in bytes.

    Returns:
        Formatted string (e.g., "1.5 KB", "512.0 B"), or "0 B" for
        zero and negative sizes.
    """
    if size_bytes <= 0:
        return "0 B"

    unit_index = 0
    value = float(size_bytes)
    while value >= 1024 and unit_index < len(_SIZE_UNITS) - 1:
        value /= 1024
        unit_index += 1
    return f"{value:.1f} {_SIZE_UNITS[unit_index]}"


def format_duration_ms(elapsed_ms: int) -> str:
    """Format an elapsed time in milliseconds for log and CLI output.

    Args:
        elapsed_ms: Elapsed time in milliseconds.

    Returns:
        "<n>ms" below one second, otherwise seconds with one decimal digit.
    """
    if elapsed_ms < 1000:
        return f"{elapsed_ms}ms"
    return f"{elapsed_ms / 1000:.1f}s"


def tail_lines(lines: list[str] | tuple[str, ...], count: int) -> list[str]:
    """Return the last ``count`` lines, stripped of trailing newlines.

    Args:
        lines: Ordered log lines.
        count: Maximum number of lines to keep. Zero or less keeps nothing.

    Returns:
        List of at most ``count`` lines, oldest first.
    """
    if count <= 0:
        return []
    return [line.rstrip("\n") for line in lines[-count:]]
