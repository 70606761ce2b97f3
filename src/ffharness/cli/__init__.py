"""CLI module for ffharness."""

import logging
from pathlib import Path

import click

from ffharness.cli.exit_codes import ExitCode
from ffharness.cli.output import error_exit
from ffharness.config import ConfigFileError, HarnessConfig, get_config
from ffharness.engine import Engine, FFmpegEngine
from ffharness.logging import configure_logging

logger = logging.getLogger(__name__)


def get_engine(ctx: click.Context) -> Engine:
    """Return the engine for this invocation.

    An engine placed in ``ctx.obj`` (tests) is reused; otherwise an
    FFmpegEngine is created from the configured tool path.
    """
    engine = ctx.obj.get("engine")
    if engine is None:
        config: HarnessConfig = ctx.obj["config"]
        engine = FFmpegEngine(config.tools.ffmpeg)
        ctx.obj["engine"] = engine
    return engine


def require_engine(ctx: click.Context, json_output: bool = False) -> Engine:
    """Return the engine, exiting with TOOL_NOT_AVAILABLE if ffmpeg is missing."""
    engine = get_engine(ctx)
    if isinstance(engine, FFmpegEngine):
        try:
            engine.tool_path
        except RuntimeError as e:
            error_exit(str(e), ExitCode.TOOL_NOT_AVAILABLE, json_output)
    return engine


@click.group()
@click.version_option(package_name="ffharness")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Config file (default: ~/.ffharness/config.toml).",
)
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default=None,
    help="Override log level (default: info).",
)
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Override log file path.",
)
@click.option(
    "--log-json",
    is_flag=True,
    default=False,
    help="Use JSON log format.",
)
@click.pass_context
def main(
    ctx: click.Context,
    config_path: Path | None,
    log_level: str | None,
    log_file: Path | None,
    log_json: bool,
) -> None:
    """ffharness - Drive ffmpeg for audio extraction and build self-tests."""
    ctx.ensure_object(dict)

    # Preserve a config passed by tests
    if "config" not in ctx.obj:
        try:
            ctx.obj["config"] = get_config(
                config_path=config_path,
                log_level=log_level,
                log_file=log_file,
                log_format="json" if log_json else None,
                strict=config_path is not None,
            )
        except (ConfigFileError, ValueError) as e:
            error_exit(f"Invalid configuration: {e}", ExitCode.CONFIG_ERROR)

    configure_logging(ctx.obj["config"].logging)
    logger.debug("ffharness starting: subcommand=%s", ctx.invoked_subcommand)


# Defer import to avoid circular dependency
def _register_commands():
    from ffharness.cli.extract import extract_command
    from ffharness.cli.probe import probe_command
    from ffharness.cli.selftest import selftest_command
    from ffharness.cli.version import version_command

    main.add_command(extract_command)
    main.add_command(probe_command)
    main.add_command(selftest_command)
    main.add_command(version_command)


_register_commands()
