"""Structured log formatting for ffharness."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

# Attributes every LogRecord carries, plus the ones added by formatting and
# by JobContextFilter. Anything else on a record came in through ``extra``.
_RECORD_FIELDS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", logging.NOTSET, "", 0, "", (), None))
) | {"message", "asctime", "taskName", "job_label", "job_tag"}


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _RECORD_FIELDS and not key.startswith("_")
    }


class JSONFormatter(logging.Formatter):
    """Render each record as a single-line JSON object.

    Keys are ``timestamp`` (UTC, ISO-8601), ``level``, ``message``, and when
    present ``logger``, ``job`` (the active job label), ``context`` (fields
    passed via ``extra``) and ``exception``. Values json cannot encode are
    written with ``str()``.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
        }
        if record.name not in ("", "root"):
            entry["logger"] = record.name
        if label := getattr(record, "job_label", None):
            entry["job"] = label
        if extra := _extra_fields(record):
            entry["context"] = extra
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)
