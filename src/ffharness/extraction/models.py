"""Data models for audio extraction."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from ffharness.config.models import SUPPORTED_FORMATS
from ffharness.core.formatting import tail_lines


@dataclass(frozen=True)
class ExtractionRequest:
    """One audio extraction job.

    The format is normalised to lower case. Invalid values raise ValueError
    at construction.
    """

    input_path: Path
    output_path: Path
    format: str
    bitrate_kbps: int | None = None
    """Target bitrate in kbps (None = format default quality)."""

    def __post_init__(self) -> None:
        """Validate and normalise fields."""
        object.__setattr__(self, "input_path", Path(self.input_path))
        object.__setattr__(self, "output_path", Path(self.output_path))
        fmt = self.format.strip().lower()
        if fmt not in SUPPORTED_FORMATS:
            raise ValueError(
                f"format must be one of {sorted(SUPPORTED_FORMATS)}, got {self.format}"
            )
        object.__setattr__(self, "format", fmt)
        if self.bitrate_kbps is not None and self.bitrate_kbps <= 0:
            raise ValueError(f"bitrate_kbps must be positive, got {self.bitrate_kbps}")


@dataclass(frozen=True)
class ExtractionResult:
    """Outcome of one engine session.

    Produced exactly once per session. ``logs`` holds the retained engine
    lines in arrival order.
    """

    success: bool
    """True if the engine completed with a success return code."""

    message: str
    """Human-readable summary of the outcome."""

    logs: tuple[str, ...] = ()
    cancelled: bool = False
    elapsed_ms: int = 0

    def tail(self, count: int) -> list[str]:
        """Return the last ``count`` log lines."""
        return tail_lines(self.logs, count)

    @classmethod
    def failure(cls, message: str, logs: tuple[str, ...] = ()) -> ExtractionResult:
        """Create a failed result that never reached the engine."""
        return cls(success=False, message=message, logs=logs)
