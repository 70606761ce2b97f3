"""Tests for job context tagging."""

import logging
import threading

from ffharness.logging.context import (
    JobContextFilter,
    get_job_context,
    job_context,
    set_job_context,
)


def _make_record() -> logging.LogRecord:
    return logging.LogRecord(
        name="ffharness.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="hello",
        args=(),
        exc_info=None,
    )


class TestJobContext:
    """Tests for job_context and friends."""

    def test_no_context_by_default(self):
        """No label is set outside a job."""
        assert get_job_context() is None

    def test_context_manager_restores_previous(self):
        """Nested contexts restore the outer label on exit."""
        with job_context("extract:mp3"):
            assert get_job_context() == "extract:mp3"
            with job_context("selftest:aac"):
                assert get_job_context() == "selftest:aac"
            assert get_job_context() == "extract:mp3"
        assert get_job_context() is None

    def test_set_job_context_clears_with_none(self):
        """Setting None clears the label."""
        set_job_context("probe")
        try:
            assert get_job_context() == "probe"
        finally:
            set_job_context(None)
        assert get_job_context() is None

    def test_plain_thread_does_not_inherit(self):
        """A thread started without a copied context has no label."""
        seen = []
        with job_context("extract:mp3"):
            thread = threading.Thread(target=lambda: seen.append(get_job_context()))
            thread.start()
            thread.join()
        assert seen == [None]


class TestJobContextFilter:
    """Tests for JobContextFilter."""

    def test_adds_label_and_tag(self):
        """Records logged inside a job carry its label."""
        record = _make_record()
        with job_context("extract:flac"):
            assert JobContextFilter().filter(record) is True
        assert record.job_label == "extract:flac"
        assert record.job_tag == "[extract:flac] "

    def test_empty_tag_outside_job(self):
        """Records logged outside a job get an empty tag."""
        record = _make_record()
        JobContextFilter().filter(record)
        assert record.job_label is None
        assert record.job_tag == ""
