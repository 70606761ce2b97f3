"""Layered assembly of HarnessConfig.

Every source (config file, environment, command line) is first flattened
into a ConfigSource. ConfigBuilder stacks sources so that a later source
wins wherever it sets a value, then hands the merged values to the section
dataclasses, which supply their own defaults and validation.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from ffharness.config.env import EnvReader
from ffharness.config.models import (
    ExtractionConfig,
    HarnessConfig,
    LoggingConfig,
    SelfTestConfig,
    ToolPathsConfig,
)

_SECTIONS: dict[str, type] = {
    "tools": ToolPathsConfig,
    "extraction": ExtractionConfig,
    "selftest": SelfTestConfig,
    "logging": LoggingConfig,
}

# Flat names that do not follow the "<section>_<field>" pattern
_ALIASES: dict[str, tuple[str, str]] = {"ffmpeg_path": ("tools", "ffmpeg")}

# Flat names whose file values are filesystem paths
_PATH_FIELDS = frozenset({"ffmpeg_path", "selftest_work_dir", "logging_file"})


@dataclass
class ConfigSource:
    """Values contributed by one configuration source.

    A field left at None means the source is silent on it.
    """

    ffmpeg_path: Path | None = None

    extraction_default_format: str | None = None
    # 0 selects the engine's default quality
    extraction_default_bitrate_kbps: int | None = None
    extraction_log_tail_lines: int | None = None
    extraction_max_log_lines: int | None = None
    extraction_timeout_seconds: float | None = None

    selftest_work_dir: Path | None = None
    selftest_job_timeout_seconds: float | None = None
    selftest_connectivity_url: str | None = None
    selftest_connectivity_timeout_us: int | None = None

    logging_level: str | None = None
    logging_file: Path | None = None
    logging_format: str | None = None
    logging_include_stderr: bool | None = None
    logging_max_bytes: int | None = None
    logging_backup_count: int | None = None


def _target(flat_name: str) -> tuple[str, str]:
    """Map a ConfigSource field to its (section, attribute) pair."""
    if flat_name in _ALIASES:
        return _ALIASES[flat_name]
    section, _, attr = flat_name.partition("_")
    return section, attr


class ConfigBuilder:
    """Stacks ConfigSources and builds the resulting HarnessConfig.

    Example:
        builder = ConfigBuilder()
        builder.apply(source_from_file(file_config))
        builder.apply(source_from_env(reader))
        config = builder.build()
    """

    def __init__(self) -> None:
        self._values: dict[str, Any] = {}

    def apply(self, source: ConfigSource) -> None:
        """Overlay the values ``source`` sets onto what was applied before."""
        for f in fields(source):
            value = getattr(source, f.name)
            if value is not None:
                self._values[f.name] = value

    def build(self) -> HarnessConfig:
        """Build the configuration, defaulting whatever no source set.

        Raises:
            ValueError: A merged value is rejected by its section model.
        """
        sections: dict[str, dict[str, Any]] = defaultdict(dict)
        for flat_name, value in self._values.items():
            section, attr = _target(flat_name)
            sections[section][attr] = value

        if sections["extraction"].get("default_bitrate_kbps") == 0:
            sections["extraction"]["default_bitrate_kbps"] = None

        return HarnessConfig(
            **{name: model(**sections[name]) for name, model in _SECTIONS.items()}
        )


def source_from_file(file_config: dict[str, Any]) -> ConfigSource:
    """Flatten a parsed TOML document into a ConfigSource.

    Tables are named after the sections (``[tools]``, ``[extraction]``,
    ``[selftest]``, ``[logging]``); keys outside them are ignored.
    """
    values: dict[str, Any] = {}
    for f in fields(ConfigSource):
        section, attr = _target(f.name)
        value = file_config.get(section, {}).get(attr)
        if value is None:
            continue
        if f.name in _PATH_FIELDS:
            value = Path(value).expanduser() if value else None
        values[f.name] = value
    return ConfigSource(**values)


def source_from_env(reader: EnvReader) -> ConfigSource:
    """Read the FFHARNESS_* variables into a ConfigSource."""
    return ConfigSource(
        ffmpeg_path=reader.get_path("FFHARNESS_FFMPEG_PATH"),
        extraction_default_format=reader.get_str("FFHARNESS_DEFAULT_FORMAT"),
        extraction_default_bitrate_kbps=reader.get_int("FFHARNESS_DEFAULT_BITRATE"),
        extraction_timeout_seconds=reader.get_float("FFHARNESS_EXTRACT_TIMEOUT"),
        selftest_work_dir=reader.get_path("FFHARNESS_WORK_DIR"),
        selftest_job_timeout_seconds=reader.get_float("FFHARNESS_JOB_TIMEOUT"),
        selftest_connectivity_url=reader.get_str("FFHARNESS_CONNECTIVITY_URL"),
        logging_level=reader.get_str("FFHARNESS_LOG_LEVEL"),
        logging_file=reader.get_path("FFHARNESS_LOG_FILE", must_exist=False),
        logging_format=reader.get_str("FFHARNESS_LOG_FORMAT"),
        logging_include_stderr=reader.get_bool("FFHARNESS_LOG_STDERR"),
    )
