"""Self-test report rendering."""

from __future__ import annotations

from typing import Any

from ffharness.core.formatting import format_file_size
from ffharness.selftest.models import (
    CheckResult,
    CheckSection,
    CheckStatus,
    SelfTestReport,
)

PASS_MARK = "✅"
FAIL_MARK = "❌"


def render_check(check: CheckResult) -> str:
    """Render one check as a report line."""
    if check.section == CheckSection.CAPABILITIES:
        mark = PASS_MARK if check.passed else FAIL_MARK
        return f"- {check.label}: {mark}"

    line = f"{check.label}: {PASS_MARK if check.passed else FAIL_MARK}"
    if check.status == CheckStatus.PASSED and check.size is not None:
        line += f" ({format_file_size(check.size)})"
    elif check.status == CheckStatus.NOT_BUILT and check.detail:
        line += f" {check.detail}"
    return line


def render_text(report: SelfTestReport) -> str:
    """Render the report as one ordered text block.

    Capabilities come first under per-kind headings, followed by the
    sample jobs, connectivity and decode/seek lines, and a final
    ``ffmpeg version:`` line.
    """
    lines = ["FFmpeg self-test", "", "Capabilities"]
    group = None
    for check in report.section(CheckSection.CAPABILITIES):
        if check.group != group:
            group = check.group
            lines.append(f"{group}:")
        lines.append(render_check(check))
    lines.append("")

    for section in (CheckSection.SAMPLES, CheckSection.CONNECTIVITY, CheckSection.SANITY):
        lines.extend(render_check(check) for check in report.section(section))

    lines.append("")
    lines.append(f"ffmpeg version: {report.engine_version}")
    return "\n".join(lines) + "\n"


def report_to_dict(report: SelfTestReport) -> dict[str, Any]:
    """Convert the report to a JSON-serialisable dictionary."""
    return {
        "engine_version": report.engine_version,
        "all_passed": report.all_passed,
        "checks": [
            {
                "section": check.section.value,
                "group": check.group,
                "label": check.label,
                "status": check.status.value,
                "size": check.size,
                "size_display": (
                    format_file_size(check.size) if check.size is not None else None
                ),
                "detail": check.detail,
                "log_excerpt": list(check.log_excerpt),
            }
            for check in report.checks
        ],
    }
