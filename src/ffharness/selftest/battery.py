"""Self-test battery.

Runs the capability sweep, the sample encodes, the connectivity probe and
the decode/seek sanity checks in one linear pass and collects a report.
Every check runs even if earlier ones failed; checks whose capability is
absent are recorded as not built and never attempted.
"""

from __future__ import annotations

import logging
import tempfile
from collections.abc import Callable
from pathlib import Path

from ffharness.capabilities.models import CapabilityQuery
from ffharness.capabilities.prober import CapabilityProber
from ffharness.config.models import SelfTestConfig
from ffharness.engine.interface import Engine
from ffharness.engine.types import LogLevel
from ffharness.extraction.command import quote_path
from ffharness.extraction.models import ExtractionResult
from ffharness.extraction.runner import SessionRunner
from ffharness.selftest.catalog import (
    CAPABILITY_CATALOG,
    HTTPS_INPUT,
    SAMPLE_JOBS,
    SRT_INPUT,
    SampleJob,
    sample_job,
)
from ffharness.selftest.connectivity import connectivity_command, looks_connected
from ffharness.selftest.models import (
    CheckResult,
    CheckSection,
    CheckStatus,
    ReportBuilder,
    SelfTestReport,
)

logger = logging.getLogger(__name__)

# Log lines kept with a failed check
LOG_EXCERPT_LINES = 20

CheckCallback = Callable[[CheckResult], None]


class SelfTestBattery:
    """Exercises an engine build end-to-end.

    Capabilities answered during the sweep are reused for the sample jobs of
    the same run; anything not in the sweep is probed when a job needs it.
    """

    def __init__(
        self,
        engine: Engine,
        config: SelfTestConfig | None = None,
        prober: CapabilityProber | None = None,
        runner: SessionRunner | None = None,
    ) -> None:
        self._engine = engine
        self._config = config or SelfTestConfig()
        self._prober = prober or CapabilityProber(engine)
        # Trace retention keeps verbose lines for the connectivity heuristic
        self._runner = runner or SessionRunner(engine, retain_level=LogLevel.TRACE)
        self._known: dict[CapabilityQuery, bool] = {}
        self._builder = ReportBuilder()
        self._on_check: CheckCallback | None = None

    def run(self, on_check: CheckCallback | None = None) -> SelfTestReport:
        """Run every check and return the report.

        Args:
            on_check: Called with each CheckResult as soon as it is recorded.

        Returns:
            Frozen SelfTestReport.
        """
        self._known = {}
        self._builder = ReportBuilder()
        self._on_check = on_check

        logger.info("Starting self-test battery")
        if self._config.work_dir is not None:
            self._config.work_dir.mkdir(parents=True, exist_ok=True)
        with tempfile.TemporaryDirectory(
            prefix="ffharness-selftest-",
            dir=self._config.work_dir,
            ignore_cleanup_errors=True,
        ) as scratch:
            work_dir = Path(scratch)
            self._sweep_capabilities()
            for job in SAMPLE_JOBS:
                self._run_sample(job, work_dir)
            self._check_connectivity()
            self._check_decode_and_seek(work_dir)

        report = self._builder.build(self._engine_version())
        logger.info(
            "Self-test finished: %d checks, %d failed",
            len(report.checks),
            len(report.failed),
        )
        return report

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _record(self, check: CheckResult) -> None:
        self._builder.add(check)
        if self._on_check is not None:
            try:
                self._on_check(check)
            except Exception:
                logger.exception("Self-test check callback raised")

    def _has(self, query: CapabilityQuery) -> bool:
        if query not in self._known:
            self._known[query] = self._prober.check(query)
        return self._known[query]

    def _run_job(self, command: str, label: str) -> ExtractionResult:
        pending = self._runner.execute_async(command, label=f"selftest:{label}")
        timeout = self._config.job_timeout_seconds
        try:
            return pending.result(timeout)
        except TimeoutError:
            logger.warning("Self-test job %s timed out after %ss", label, timeout)
            pending.cancel()
            return pending.result()
        except KeyboardInterrupt:
            pending.cancel()
            raise

    def _failed_check(
        self,
        section: CheckSection,
        label: str,
        result: ExtractionResult,
    ) -> CheckResult:
        excerpt = tuple(result.tail(LOG_EXCERPT_LINES))
        logger.warning("%s failed\n%s", label, "\n".join(excerpt))
        detail = "timed out" if result.cancelled else result.message
        return CheckResult(
            section=section,
            label=label,
            status=CheckStatus.FAILED,
            detail=detail,
            log_excerpt=excerpt,
        )

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    def _sweep_capabilities(self) -> None:
        for group, queries in CAPABILITY_CATALOG:
            for query in queries:
                present = self._has(query)
                self._record(
                    CheckResult(
                        section=CheckSection.CAPABILITIES,
                        label=query.name,
                        group=group,
                        status=CheckStatus.PASSED if present else CheckStatus.NOT_BUILT,
                    )
                )

    def _run_sample(self, job: SampleJob, work_dir: Path) -> None:
        # Short-circuit so a missing first requirement skips the rest
        if not all(self._has(query) for query in job.requires):
            self._record(
                CheckResult(
                    section=CheckSection.SAMPLES,
                    label=job.label,
                    status=CheckStatus.NOT_BUILT,
                    detail=job.missing_note,
                )
            )
            return

        result = self._run_job(job.command(work_dir), job.key)
        if not result.success:
            self._record(self._failed_check(CheckSection.SAMPLES, job.label, result))
            return

        size = None
        if job.records_size:
            output = job.output_path(work_dir)
            size = output.stat().st_size if output.exists() else 0
        self._record(
            CheckResult(
                section=CheckSection.SAMPLES,
                label=job.label,
                status=CheckStatus.PASSED,
                size=size,
            )
        )

    def _check_connectivity(self) -> None:
        label = "Protocol (https)"
        if not self._has(HTTPS_INPUT):
            self._record(
                CheckResult(
                    section=CheckSection.CONNECTIVITY,
                    label=label,
                    status=CheckStatus.NOT_BUILT,
                    detail="not built",
                )
            )
        else:
            command = connectivity_command(
                self._config.connectivity_url, self._config.connectivity_timeout_us
            )
            result = self._run_job(command, "https")
            if looks_connected(result.success, "\n".join(result.logs)):
                self._record(
                    CheckResult(
                        section=CheckSection.CONNECTIVITY,
                        label=label,
                        status=CheckStatus.PASSED,
                    )
                )
            else:
                self._record(
                    self._failed_check(CheckSection.CONNECTIVITY, label, result)
                )

        # Informational presence line
        self._record(
            CheckResult(
                section=CheckSection.CONNECTIVITY,
                label="Protocol (srt)",
                status=CheckStatus.PASSED if self._has(SRT_INPUT) else CheckStatus.NOT_BUILT,
            )
        )

    def _check_decode_and_seek(self, work_dir: Path) -> None:
        checks = (
            (
                "Decode (mp3)",
                sample_job("mp3").output_path(work_dir),
                "-v error -i {path} -t 0.1 -f null -",
            ),
            (
                "Seek (h264)",
                sample_job("h264").output_path(work_dir),
                "-v error -ss 1 -i {path} -frames:v 1 -f null -",
            ),
        )
        for label, path, template in checks:
            if not path.exists():
                continue
            result = self._run_job(template.format(path=quote_path(path)), label)
            if result.success:
                self._record(
                    CheckResult(
                        section=CheckSection.SANITY,
                        label=label,
                        status=CheckStatus.PASSED,
                    )
                )
            else:
                self._record(self._failed_check(CheckSection.SANITY, label, result))

    def _engine_version(self) -> str | None:
        try:
            return self._engine.version()
        except Exception as e:
            logger.debug("Engine version lookup failed: %s", e)
            return None
