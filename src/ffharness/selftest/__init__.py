"""Self-test battery for engine builds.

Sweeps the capability catalog, runs small synthetic encodes, probes HTTPS
connectivity and decode/seek sanity, and renders the outcome.
"""

from ffharness.selftest.battery import SelfTestBattery
from ffharness.selftest.catalog import CAPABILITY_CATALOG, SAMPLE_JOBS, SampleJob
from ffharness.selftest.models import (
    CheckResult,
    CheckSection,
    CheckStatus,
    ReportBuilder,
    SelfTestReport,
)
from ffharness.selftest.render import render_check, render_text, report_to_dict

__all__ = [
    "CAPABILITY_CATALOG",
    "SAMPLE_JOBS",
    "CheckResult",
    "CheckSection",
    "CheckStatus",
    "ReportBuilder",
    "SampleJob",
    "SelfTestBattery",
    "SelfTestReport",
    "render_check",
    "render_text",
    "report_to_dict",
]
