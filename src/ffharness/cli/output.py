"""Shared output helpers for ffharness commands."""

from __future__ import annotations

import json
import sys
from typing import Any, NoReturn

import click

from ffharness.cli.exit_codes import ExitCode


def echo_json(data: dict[str, Any]) -> None:
    """Print ``data`` to stdout as indented JSON."""
    click.echo(json.dumps(data, indent=2, ensure_ascii=False))


def error_exit(
    message: str,
    code: ExitCode | int,
    json_output: bool = False,
) -> NoReturn:
    """Report ``message`` on stderr and exit with ``code``.

    In JSON mode the report is ``{"status": "failed", "error": {...}}``
    where ``error.code`` is the ExitCode name, or ``UNKNOWN_ERROR`` for a
    bare integer.
    """
    name = code.name if isinstance(code, ExitCode) else "UNKNOWN_ERROR"
    if json_output:
        report = {"status": "failed", "error": {"code": name, "message": message}}
        click.echo(json.dumps(report), err=True)
    else:
        click.echo(f"Error: {message}", err=True)
    sys.exit(int(code))
