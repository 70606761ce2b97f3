"""ffharness version command."""

import click

from ffharness import __version__
from ffharness.cli import require_engine
from ffharness.cli.exit_codes import ExitCode


@click.command("version")
@click.pass_context
def version_command(ctx: click.Context) -> None:
    """Show the ffharness and ffmpeg versions."""
    engine = require_engine(ctx)
    engine_version = engine.version()
    click.echo(f"ffharness {__version__}")
    click.echo(f"ffmpeg version: {engine_version or 'unknown'}")
    if engine_version is None:
        ctx.exit(ExitCode.TOOL_NOT_AVAILABLE)
