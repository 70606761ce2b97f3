"""Structured logging module for ffharness.

Provides configurable logging with JSON format support, file rotation and
job context tagging for engine output.
"""

from ffharness.logging.config import configure_logging
from ffharness.logging.context import (
    JobContextFilter,
    get_job_context,
    job_context,
    set_job_context,
)
from ffharness.logging.handlers import JSONFormatter

__all__ = [
    "JSONFormatter",
    "JobContextFilter",
    "configure_logging",
    "get_job_context",
    "job_context",
    "set_job_context",
]
