"""Data models for the self-test report."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class CheckStatus(Enum):
    """Outcome of one self-test check."""

    PASSED = "passed"
    FAILED = "failed"
    NOT_BUILT = "not built"  # Required capability absent; never attempted


class CheckSection(Enum):
    """Report section a check belongs to, in report order."""

    CAPABILITIES = "capabilities"
    SAMPLES = "samples"
    CONNECTIVITY = "connectivity"
    SANITY = "sanity"


@dataclass(frozen=True)
class CheckResult:
    """One line of the self-test report."""

    section: CheckSection
    label: str
    status: CheckStatus
    group: str | None = None
    """Sub-heading within the section (capability kind)."""

    size: int | None = None
    """Output size in bytes for encodes that succeeded."""

    detail: str | None = None
    """Short note, e.g. why a check was not built or why it failed."""

    log_excerpt: tuple[str, ...] = ()

    @property
    def passed(self) -> bool:
        return self.status == CheckStatus.PASSED


@dataclass(frozen=True)
class SelfTestReport:
    """Complete, immutable self-test report."""

    checks: tuple[CheckResult, ...]
    engine_version: str = "unknown"

    def section(self, section: CheckSection) -> list[CheckResult]:
        return [check for check in self.checks if check.section == section]

    def find(self, label: str) -> CheckResult | None:
        """Return the first check with ``label``, or None."""
        for check in self.checks:
            if check.label == label:
                return check
        return None

    @property
    def failed(self) -> list[CheckResult]:
        """Checks that were attempted and failed."""
        return [check for check in self.checks if check.status == CheckStatus.FAILED]

    @property
    def all_passed(self) -> bool:
        """True if no attempted check failed (not built checks do not count)."""
        return not self.failed


@dataclass
class ReportBuilder:
    """Append-only collector used while the battery runs."""

    checks: list[CheckResult] = field(default_factory=list)

    def add(self, check: CheckResult) -> CheckResult:
        self.checks.append(check)
        return check

    def build(self, engine_version: str | None) -> SelfTestReport:
        """Freeze the collected checks into a report."""
        return SelfTestReport(
            checks=tuple(self.checks),
            engine_version=engine_version or "unknown",
        )
