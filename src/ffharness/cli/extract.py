"""ffharness extract command.

Extracts the audio track of one media file into a supported format.
"""

import logging
from pathlib import Path

import click

from ffharness.cli import require_engine
from ffharness.cli.exit_codes import ExitCode
from ffharness.cli.output import echo_json, error_exit
from ffharness.config import SUPPORTED_FORMATS, HarnessConfig
from ffharness.extraction import (
    AudioExtractor,
    ExtractionRequest,
    SessionRunner,
    default_output_name,
)

logger = logging.getLogger(__name__)


def _resolve_output(
    input_path: Path, output: Path | None, output_dir: Path | None, fmt: str
) -> Path:
    if output is not None:
        return output
    directory = output_dir if output_dir is not None else input_path.parent
    return directory / default_output_name(input_path, fmt)


@click.command("extract")
@click.argument(
    "input_path",
    type=click.Path(path_type=Path, dir_okay=False),
)
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Output file (default: <input stem>_<timestamp>.<format>).",
)
@click.option(
    "--output-dir",
    type=click.Path(path_type=Path, file_okay=False),
    default=None,
    help="Directory for the generated output name (default: input directory).",
)
@click.option(
    "--format",
    "-f",
    "fmt",
    type=click.Choice(sorted(SUPPORTED_FORMATS), case_sensitive=False),
    default=None,
    help="Target format (default from config: mp3).",
)
@click.option(
    "--bitrate",
    "-b",
    type=click.IntRange(min=0),
    default=None,
    help="Bitrate in kbps; 0 uses the format's default quality.",
)
@click.option(
    "--timeout",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Cancel the extraction after this many seconds.",
)
@click.option(
    "--json",
    "json_output",
    is_flag=True,
    help="Output result as JSON",
)
@click.pass_context
def extract_command(
    ctx: click.Context,
    input_path: Path,
    output: Path | None,
    output_dir: Path | None,
    fmt: str | None,
    bitrate: int | None,
    timeout: float | None,
    json_output: bool,
) -> None:
    """Extract the audio of INPUT_PATH.

    The output is written to a hidden temp file and moved into place once
    the engine succeeds.

    Exit codes:
      0 - Extraction succeeded
      2 - Interrupted
      20 - Input file not found
      30 - ffmpeg not available
      40 - Extraction failed
    """
    config: HarnessConfig = ctx.obj["config"]
    if not input_path.is_file():
        error_exit(
            f"Input file not found: {input_path}", ExitCode.TARGET_NOT_FOUND, json_output
        )

    fmt = (fmt or config.extraction.default_format).lower()
    if bitrate is None:
        bitrate = config.extraction.default_bitrate_kbps
    if timeout is None:
        timeout = config.extraction.timeout_seconds

    output_path = _resolve_output(input_path, output, output_dir, fmt)
    if not output_path.parent.is_dir():
        error_exit(
            f"Output directory not found: {output_path.parent}",
            ExitCode.TARGET_NOT_FOUND,
            json_output,
        )

    try:
        request = ExtractionRequest(
            input_path=input_path.resolve(),
            output_path=output_path.resolve(),
            format=fmt,
            bitrate_kbps=bitrate or None,
        )
    except ValueError as e:
        error_exit(str(e), ExitCode.INVALID_REQUEST, json_output)

    engine = require_engine(ctx, json_output)
    runner = SessionRunner(engine, max_log_lines=config.extraction.max_log_lines)
    extractor = AudioExtractor(engine, runner=runner)

    try:
        result = extractor.extract_file(request, timeout=timeout)
    except KeyboardInterrupt:
        error_exit("Interrupted", ExitCode.INTERRUPTED, json_output)

    if json_output:
        echo_json(
            {
                "status": "completed" if result.success else "failed",
                "message": result.message,
                "output": str(request.output_path) if result.success else None,
                "elapsed_ms": result.elapsed_ms,
                "cancelled": result.cancelled,
                "logs": result.tail(config.extraction.log_tail_lines),
            }
        )
    elif result.success:
        click.echo(f"{result.message}: {request.output_path}")
    else:
        click.echo(f"Error: {result.message}", err=True)
        tail = result.tail(config.extraction.log_tail_lines)
        if tail:
            click.echo("Last log lines:", err=True)
            for line in tail:
                click.echo(f"  {line}", err=True)

    if result.cancelled:
        ctx.exit(ExitCode.INTERRUPTED)
    if not result.success:
        ctx.exit(ExitCode.OPERATION_FAILED)
