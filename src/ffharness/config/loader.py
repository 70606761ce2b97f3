"""Configuration loading.

Settings are resolved from four layers, the later ones winning:

* built-in defaults of the section models,
* the TOML config file (``~/.ffharness/config.toml``, or the path given by
  ``FFHARNESS_CONFIG_PATH``),
* ``FFHARNESS_*`` environment variables,
* command-line options passed to :func:`get_config`.

Recognised variables are ``FFHARNESS_FFMPEG_PATH``, ``FFHARNESS_DEFAULT_FORMAT``,
``FFHARNESS_DEFAULT_BITRATE`` (kbps, 0 for the engine default),
``FFHARNESS_EXTRACT_TIMEOUT``, ``FFHARNESS_WORK_DIR``, ``FFHARNESS_JOB_TIMEOUT``,
``FFHARNESS_CONNECTIVITY_URL`` and ``FFHARNESS_LOG_LEVEL`` /
``FFHARNESS_LOG_FILE`` / ``FFHARNESS_LOG_FORMAT`` / ``FFHARNESS_LOG_STDERR``.
"""

from __future__ import annotations

import logging
import os
import threading
import tomllib
from pathlib import Path
from typing import Any, NamedTuple

from ffharness.config.builder import (
    ConfigBuilder,
    ConfigSource,
    source_from_env,
    source_from_file,
)
from ffharness.config.env import EnvReader
from ffharness.config.models import HarnessConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path.home() / ".ffharness"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.toml"


class ConfigFileError(ValueError):
    """The config file exists but could not be read or parsed."""


class _ParsedFile(NamedTuple):
    mtime: float
    document: dict[str, Any]


_parsed_files: dict[Path, _ParsedFile] = {}
_parsed_files_lock = threading.Lock()


def get_default_config_path() -> Path:
    """Return ``FFHARNESS_CONFIG_PATH`` if set, else the per-user file."""
    override = os.environ.get("FFHARNESS_CONFIG_PATH")
    return Path(override).expanduser() if override else DEFAULT_CONFIG_FILE


def _mtime(path: Path) -> float:
    try:
        return path.stat().st_mtime
    except FileNotFoundError:
        return 0.0


def _parse(path: Path, strict: bool) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as e:
        if strict:
            raise ConfigFileError(f"Cannot parse config file {path}: {e}") from e
        logger.warning("Ignoring unreadable config file %s: %s", path, e)
        return {}


def load_config_file(
    path: Path | None = None, *, strict: bool = False
) -> dict[str, Any]:
    """Return the parsed TOML document at ``path`` (default location if None).

    A missing file reads as an empty document. Parsed documents are kept
    until the file's modification time changes.

    Raises:
        ConfigFileError: ``strict`` is set and the file is unreadable or
            not valid TOML. Without ``strict`` such a file is logged and
            treated as empty.
    """
    path = path or get_default_config_path()
    mtime = _mtime(path)
    with _parsed_files_lock:
        cached = _parsed_files.get(path)
        if cached is not None and cached.mtime == mtime:
            return cached.document
        document = _parse(path, strict)
        _parsed_files[path] = _ParsedFile(mtime, document)
        return document


def clear_config_cache() -> None:
    """Forget every parsed config file."""
    with _parsed_files_lock:
        _parsed_files.clear()


def get_config(
    config_path: Path | None = None,
    ffmpeg_path: Path | None = None,
    log_level: str | None = None,
    log_file: Path | None = None,
    log_format: str | None = None,
    env_reader: EnvReader | None = None,
    *,
    strict: bool = False,
) -> HarnessConfig:
    """Resolve the effective configuration.

    The keyword overrides come from the command line and beat every other
    layer. ``env_reader`` replaces ``os.environ`` in tests.

    Raises:
        ConfigFileError: ``strict`` is set and the config file is broken.
        ValueError: A resolved value fails validation.
    """
    builder = ConfigBuilder()
    builder.apply(source_from_file(load_config_file(config_path, strict=strict)))
    builder.apply(source_from_env(env_reader or EnvReader()))
    builder.apply(
        ConfigSource(
            ffmpeg_path=ffmpeg_path,
            logging_level=log_level,
            logging_file=log_file,
            logging_format=log_format,
        )
    )
    return builder.build()
