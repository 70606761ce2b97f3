"""Blocking subprocess helper for short engine invocations.

Capability listings and ``-version`` queries finish in well under a second,
so they go through :func:`run_command` rather than the streaming session
machinery in :mod:`ffharness.engine.ffmpeg`.
"""

from __future__ import annotations

import logging
import subprocess  # nosec B404 - the engine is an external executable
import time
from collections.abc import Sequence
from pathlib import Path
from typing import Any, NamedTuple

logger = logging.getLogger(__name__)

# Arguments shown in the timeout warning before the rest is elided.
_PREVIEW_ARGS = 3


class CommandOutput(NamedTuple):
    """Decoded streams and exit status of a finished command."""

    stdout: str
    stderr: str
    returncode: int


def _preview(argv: Sequence[str]) -> str:
    head = " ".join(argv[:_PREVIEW_ARGS])
    return head + " ..." if len(argv) > _PREVIEW_ARGS else head


def run_command(
    args: Sequence[str | Path],
    timeout: float = 120,
    capture_output: bool = True,
    text: bool = True,
    errors: str = "replace",
    **kwargs: Any,
) -> CommandOutput:
    """Run ``args`` to completion and return its output.

    Undecodable bytes in the engine's output are replaced rather than
    raising, since banner text from custom builds is not always UTF-8.
    A stream that was not captured comes back as an empty string.

    Raises:
        subprocess.TimeoutExpired: The command ran past ``timeout``. The
            child has already been killed when this propagates.
        OSError: The executable could not be started.
    """
    argv = [str(arg) for arg in args]
    program = Path(argv[0]).name if argv else "unknown"
    logger.debug(
        "Running %s",
        " ".join(argv),
        extra={"command": program, "arg_count": len(argv)},
    )

    started = time.monotonic()
    try:
        completed = subprocess.run(  # nosec B603 - argv is built by the engine
            argv,
            capture_output=capture_output,
            text=text,
            errors=errors,
            timeout=timeout,
            **kwargs,
        )
    except subprocess.TimeoutExpired:
        logger.warning(
            "%s did not finish within %ss: %s",
            program,
            timeout,
            _preview(argv),
            extra={
                "command": program,
                "timeout_seconds": timeout,
                "elapsed_seconds": round(time.monotonic() - started, 3),
            },
        )
        raise

    logger.debug(
        "%s exited with %d",
        program,
        completed.returncode,
        extra={
            "command": program,
            "elapsed_seconds": round(time.monotonic() - started, 3),
        },
    )
    return CommandOutput(
        completed.stdout or "", completed.stderr or "", completed.returncode
    )
