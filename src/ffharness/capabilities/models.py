"""Data models for engine capability probing."""

import re
from dataclasses import dataclass
from enum import Enum


class CapabilityKind(Enum):
    """Kind of engine component a query asks about."""

    ENCODER = "encoder"
    DECODER = "decoder"
    MUXER = "muxer"
    DEMUXER = "demuxer"
    FILTER = "filter"
    BITSTREAM_FILTER = "bitstream-filter"
    PROTOCOL = "protocol"

    @property
    def help_topic(self) -> str | None:
        """Topic for ``-h <topic>=<name>``, or None for listing-based kinds."""
        return _HELP_TOPICS.get(self)


_HELP_TOPICS = {
    CapabilityKind.ENCODER: "encoder",
    CapabilityKind.DECODER: "decoder",
    CapabilityKind.DEMUXER: "demuxer",
    CapabilityKind.FILTER: "filter",
    CapabilityKind.BITSTREAM_FILTER: "bsf",
}


class ProtocolDirection(Enum):
    """Direction section of the protocol listing."""

    INPUT = "input"
    OUTPUT = "output"


@dataclass(frozen=True)
class CapabilityQuery:
    """One yes/no capability question.

    ``direction`` only applies to protocols and defaults to input.
    """

    kind: CapabilityKind
    name: str
    direction: ProtocolDirection | None = None

    def __str__(self) -> str:
        if self.kind == CapabilityKind.PROTOCOL:
            direction = self.direction or ProtocolDirection.INPUT
            return f"{self.kind.value} {self.name} ({direction.value})"
        return f"{self.kind.value} {self.name}"


@dataclass(frozen=True)
class ListingEntry:
    """One row of a ``-muxers`` style listing."""

    flags: str
    name: str

    @property
    def can_mux(self) -> bool:
        """True if the flags carry the muxing (``E``) bit."""
        return "e" in self.flags.casefold()


@dataclass(frozen=True)
class ProtocolSections:
    """Raw input/output sections of a ``-protocols`` listing.

    A span is None when its header was not found. Spans are lower-cased.
    """

    input_span: str | None = None
    output_span: str | None = None

    def span(self, direction: ProtocolDirection) -> str | None:
        if direction == ProtocolDirection.INPUT:
            return self.input_span
        return self.output_span

    def has(self, name: str, direction: ProtocolDirection) -> bool:
        """True if ``name`` opens a line of the section for ``direction``."""
        span = self.span(direction)
        if span is None or not name:
            return False
        pattern = re.compile(
            rf"^[ \t]*{re.escape(name.casefold())}\b", re.MULTILINE
        )
        return pattern.search(span) is not None

    def names(self, direction: ProtocolDirection) -> list[str]:
        """Protocol names listed in the section, in listing order."""
        span = self.span(direction)
        if not span:
            return []
        lines = span.splitlines()[1:]  # Skip the header line
        return [line.split()[0] for line in lines if line.strip()]
