"""Engine capability probing.

Discovers which encoders, decoders, muxers, demuxers, filters, bitstream
filters and protocols an engine build supports by scraping its introspection
output.
"""

from ffharness.capabilities.models import (
    CapabilityKind,
    CapabilityQuery,
    ListingEntry,
    ProtocolDirection,
    ProtocolSections,
)
from ffharness.capabilities.parsers import parse_listing, parse_protocol_sections
from ffharness.capabilities.prober import CapabilityProber, help_succeeded

__all__ = [
    "CapabilityKind",
    "CapabilityProber",
    "CapabilityQuery",
    "ListingEntry",
    "ProtocolDirection",
    "ProtocolSections",
    "help_succeeded",
    "parse_listing",
    "parse_protocol_sections",
]
