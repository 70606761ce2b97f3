"""HTTPS connectivity probe.

Reads a small web page as if it were media. The page is not a valid stream,
so a demux failure after the connection was made still counts as connected.
This is a best-effort heuristic on the engine's log text.
"""

from __future__ import annotations

from ffharness.extraction.command import quote_path

# Any of these in the log means the engine reached the server
CONNECTED_MARKERS: tuple[str, ...] = (
    "http/1.",
    "location:",
    "server:",
    "invalid data found",
    "not on whitelist",
)


def connectivity_command(url: str, timeout_us: int) -> str:
    """Build the engine command that reads ``url`` into the null muxer."""
    return (
        f"-nostdin -v verbose -rw_timeout {timeout_us} -timeout {timeout_us} "
        f"-i {quote_path(url)} -f null -"
    )


def looks_connected(success: bool, log_text: str) -> bool:
    """Decide whether the probe reached the server.

    Args:
        success: Whether the engine run succeeded outright.
        log_text: Retained log lines joined by newlines.

    Returns:
        True on success or if the log carries a connection marker.
    """
    if success:
        return True
    lowered = log_text.casefold()
    return any(marker in lowered for marker in CONNECTED_MARKERS)
