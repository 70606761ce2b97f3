"""Dataclasses holding the resolved ffharness settings."""

from dataclasses import dataclass, field
from pathlib import Path

# Formats the audio extractor accepts (compared case-insensitively)
SUPPORTED_FORMATS: frozenset[str] = frozenset(
    {"mp3", "aac", "m4a", "wav", "flac", "opus"}
)


@dataclass
class ToolPathsConfig:
    """Location of the ffmpeg executable (None = search PATH)."""

    ffmpeg: Path | None = None


@dataclass
class ExtractionConfig:
    """Defaults for audio extraction jobs."""

    default_format: str = "mp3"
    """Format used when the caller does not name one."""

    default_bitrate_kbps: int | None = 192
    """Bitrate used when the caller does not name one (None = engine default)."""

    log_tail_lines: int = 20
    """Number of trailing engine log lines shown with a failure."""

    max_log_lines: int = 1000
    """Upper bound of engine log lines retained per session."""

    timeout_seconds: float | None = None
    """Maximum wait for one extraction (None = wait until the engine finishes)."""

    def __post_init__(self) -> None:
        """Validate configuration."""
        self.default_format = self.default_format.lower()
        if self.default_format not in SUPPORTED_FORMATS:
            raise ValueError(
                f"default_format must be one of {sorted(SUPPORTED_FORMATS)}, "
                f"got {self.default_format}"
            )
        if self.default_bitrate_kbps is not None and self.default_bitrate_kbps <= 0:
            raise ValueError("default_bitrate_kbps must be positive")
        if self.log_tail_lines < 0:
            raise ValueError("log_tail_lines must not be negative")
        if self.max_log_lines < 1:
            raise ValueError("max_log_lines must be at least 1")
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")


@dataclass
class SelfTestConfig:
    """Configuration for the self-test battery."""

    # Parent directory for the scratch directory (None = system temp)
    work_dir: Path | None = None

    # Maximum wait for one sample job before it is cancelled
    job_timeout_seconds: float = 60.0

    # Fixed URL read by the connectivity probe
    connectivity_url: str = "https://example.com/"

    # rw_timeout/timeout passed to the engine for the connectivity read
    connectivity_timeout_us: int = 5_000_000

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.job_timeout_seconds <= 0:
            raise ValueError("job_timeout_seconds must be positive")
        if not self.connectivity_url.startswith(("http://", "https://")):
            raise ValueError("connectivity_url must start with http:// or https://")
        if self.connectivity_timeout_us <= 0:
            raise ValueError("connectivity_timeout_us must be positive")


@dataclass
class LoggingConfig:
    """Where and how ffharness writes its own log records."""

    level: str = "info"
    """One of debug, info, warning, error."""

    file: Path | None = None
    """Rotating log file; records go to stderr when unset."""

    format: str = "text"
    """``text`` for tagged lines, ``json`` for one object per record."""

    include_stderr: bool = False
    """Mirror file output to stderr."""

    max_bytes: int = 10 * 1024 * 1024
    backup_count: int = 5

    def __post_init__(self) -> None:
        levels = ("debug", "info", "warning", "error")
        if self.level.lower() not in levels:
            raise ValueError(f"level must be one of {levels}, got {self.level!r}")
        if self.format.lower() not in ("text", "json"):
            raise ValueError(f"format must be text or json, got {self.format!r}")
        if self.max_bytes < 0 or self.backup_count < 0:
            raise ValueError("max_bytes and backup_count must not be negative")


@dataclass
class HarnessConfig:
    """Complete ffharness configuration."""

    tools: ToolPathsConfig = field(default_factory=ToolPathsConfig)
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    selftest: SelfTestConfig = field(default_factory=SelfTestConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
