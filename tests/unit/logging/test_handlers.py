"""Tests for JSONFormatter."""

import json
import logging
import sys

from ffharness.logging.context import JobContextFilter, job_context
from ffharness.logging.handlers import JSONFormatter


def _make_record(msg="Engine exited", level=logging.INFO, exc_info=None, **extra):
    record = logging.LogRecord(
        name="ffharness.engine.ffmpeg",
        level=level,
        pathname=__file__,
        lineno=10,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    """Tests for JSONFormatter output."""

    def test_basic_fields(self):
        """Output contains timestamp, level, message and logger."""
        data = json.loads(JSONFormatter().format(_make_record()))
        assert data["level"] == "INFO"
        assert data["message"] == "Engine exited"
        assert data["logger"] == "ffharness.engine.ffmpeg"
        assert "timestamp" in data
        assert "context" not in data

    def test_extra_fields_go_to_context(self):
        """Non-standard record attributes are grouped under context."""
        record = _make_record(session_id=7, return_code=0)
        data = json.loads(JSONFormatter().format(record))
        assert data["context"] == {"session_id": 7, "return_code": 0}

    def test_job_label_is_top_level(self):
        """The job label is reported as 'job' and not under context."""
        record = _make_record()
        with job_context("selftest:mp3"):
            JobContextFilter().filter(record)
        data = json.loads(JSONFormatter().format(record))
        assert data["job"] == "selftest:mp3"
        assert "context" not in data

    def test_exception_included(self):
        """Exception text is included when exc_info is set."""
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = _make_record(level=logging.ERROR, exc_info=sys.exc_info())
        data = json.loads(JSONFormatter().format(record))
        assert "RuntimeError: boom" in data["exception"]

    def test_non_serializable_extra_uses_str(self):
        """Values json cannot encode are rendered with str()."""
        record = _make_record(output=object())
        data = json.loads(JSONFormatter().format(record))
        assert data["context"]["output"].startswith("<object object")
