"""Job context for structured logging.

Provides context propagation using contextvars, enabling automatic injection
of the current job label into log records. Engine worker threads run inside a
copy of the launching context, so their records carry the same tag.
"""

from __future__ import annotations

import contextvars
import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Generator

_job_label: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "job_label", default=None
)


def set_job_context(label: str | None) -> None:
    """Set the current job label (None clears it)."""
    _job_label.set(label)


def get_job_context() -> str | None:
    """Get the current job label, or None outside a job."""
    return _job_label.get()


@contextmanager
def job_context(label: str) -> Generator[None, None, None]:
    """Context manager for a job's logging context.

    Sets the job label on entry and restores the previous label on exit.

    Example:
        with job_context("selftest:mp3"):
            logger.info("Encoding")  # Tagged [selftest:mp3]
    """
    token = _job_label.set(label)
    try:
        yield
    finally:
        _job_label.reset(token)


class JobContextFilter(logging.Filter):
    """Logging filter that injects the job label into log records.

    Adds ``job_label`` for JSON output and a compact ``job_tag`` such as
    ``[extract:mp3] `` for text output.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        label = _job_label.get()
        record.job_label = label
        record.job_tag = f"[{label}] " if label else ""
        return True
