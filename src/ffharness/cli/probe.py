"""ffharness probe command.

Answers capability questions about the configured ffmpeg build.
"""

import click

from ffharness.capabilities import (
    CapabilityKind,
    CapabilityProber,
    CapabilityQuery,
    ProtocolDirection,
)
from ffharness.cli import require_engine
from ffharness.cli.exit_codes import ExitCode
from ffharness.cli.output import echo_json


def _format_status(available: bool) -> str:
    """Format status for display."""
    return "✓" if available else "✗"


@click.command("probe")
@click.argument(
    "kind",
    type=click.Choice([kind.value for kind in CapabilityKind], case_sensitive=False),
)
@click.argument("names", nargs=-1, required=True)
@click.option(
    "--output",
    "output_direction",
    is_flag=True,
    help="Check the output section of the protocol listing (protocols only)",
)
@click.option(
    "--json",
    "json_output",
    is_flag=True,
    help="Output results as JSON",
)
@click.pass_context
def probe_command(
    ctx: click.Context,
    kind: str,
    names: tuple[str, ...],
    output_direction: bool,
    json_output: bool,
) -> None:
    """Check whether the build supports components of KIND.

    Examples:
      ffharness probe encoder libmp3lame aac
      ffharness probe protocol https --output

    Exit codes:
      0 - Every named component is present
      30 - ffmpeg not available
      31 - At least one component is missing
    """
    capability_kind = CapabilityKind(kind.lower())
    direction = None
    if capability_kind == CapabilityKind.PROTOCOL:
        direction = (
            ProtocolDirection.OUTPUT if output_direction else ProtocolDirection.INPUT
        )

    prober = CapabilityProber(require_engine(ctx, json_output))
    results = {
        name: prober.check(CapabilityQuery(capability_kind, name, direction))
        for name in names
    }

    if json_output:
        echo_json(
            {
                "kind": capability_kind.value,
                "direction": direction.value if direction else None,
                "results": results,
            }
        )
    else:
        for name, present in results.items():
            click.echo(f"  {_format_status(present)} {capability_kind.value} {name}")

    if not all(results.values()):
        ctx.exit(ExitCode.CAPABILITY_MISSING)
