"""ffharness selftest command.

Runs the self-test battery against the configured ffmpeg build.
"""

from dataclasses import replace
from pathlib import Path

import click

from ffharness.cli import require_engine
from ffharness.cli.exit_codes import ExitCode
from ffharness.cli.output import echo_json, error_exit
from ffharness.config import HarnessConfig
from ffharness.selftest import (
    CheckResult,
    CheckStatus,
    SelfTestBattery,
    render_text,
    report_to_dict,
)


@click.command("selftest")
@click.option(
    "--work-dir",
    type=click.Path(path_type=Path, file_okay=False),
    default=None,
    help="Parent directory for the scratch files (default: system temp).",
)
@click.option(
    "--job-timeout",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Cancel a sample job after this many seconds (default: 60).",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Show log excerpts of failed checks",
)
@click.option(
    "--json",
    "json_output",
    is_flag=True,
    help="Output results as JSON",
)
@click.pass_context
def selftest_command(
    ctx: click.Context,
    work_dir: Path | None,
    job_timeout: float | None,
    verbose: bool,
    json_output: bool,
) -> None:
    """Exercise the ffmpeg build with capability checks and sample encodes.

    Exit codes:
      0 - No attempted check failed (missing components are not failures)
      2 - Interrupted
      30 - ffmpeg not available
      41 - At least one check failed
    """
    config: HarnessConfig = ctx.obj["config"]
    selftest_config = config.selftest
    if work_dir is not None:
        selftest_config = replace(selftest_config, work_dir=work_dir)
    if job_timeout is not None:
        selftest_config = replace(selftest_config, job_timeout_seconds=job_timeout)

    engine = require_engine(ctx, json_output)
    battery = SelfTestBattery(engine, selftest_config)

    def on_check(check: CheckResult) -> None:
        if not json_output:
            marker = {
                CheckStatus.PASSED: ".",
                CheckStatus.FAILED: "F",
                CheckStatus.NOT_BUILT: "-",
            }[check.status]
            click.echo(marker, nl=False, err=True)

    try:
        report = battery.run(on_check=on_check)
    except KeyboardInterrupt:
        error_exit("Interrupted", ExitCode.INTERRUPTED, json_output)

    if json_output:
        echo_json(report_to_dict(report))
    else:
        click.echo("", err=True)
        click.echo(render_text(report), nl=False)
        if verbose:
            for check in report.failed:
                click.echo(f"\n{check.label}: {check.detail or 'failed'}")
                for line in check.log_excerpt:
                    click.echo(f"  {line}")

    if not report.all_passed:
        ctx.exit(ExitCode.CHECKS_FAILED)
