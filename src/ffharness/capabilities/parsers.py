"""Parsers for engine introspection output.

These functions turn the text of ``-muxers`` and ``-protocols`` listings into
typed intermediates. They are independent of how the text was obtained and
never raise on malformed input.
"""

from __future__ import annotations

import re

from ffharness.capabilities.models import ListingEntry, ProtocolSections

# Format: "  E mp4             MP4 (MPEG-4 Part 14)"
_LISTING_PATTERN = re.compile(
    r"^[ \t]+([A-Z]+)[ \t]+([0-9a-z_]+)\b", re.IGNORECASE | re.MULTILINE
)

_SECTION_HEADER = re.compile(r"^[ \t]*(input|output):", re.MULTILINE)


def parse_listing(text: str) -> list[ListingEntry]:
    """Parse a muxer/demuxer listing into entries.

    Args:
        text: Combined listing output.

    Returns:
        Entries in listing order. Lines that do not look like rows are
        skipped.
    """
    return [
        ListingEntry(flags=match.group(1), name=match.group(2))
        for match in _LISTING_PATTERN.finditer(text)
    ]


def _section_span(text: str, header: str) -> str | None:
    match = re.search(rf"^[ \t]*{header}:", text, re.MULTILINE)
    if match is None:
        return None
    start = match.start()
    end = len(text)

    blank = text.find("\n\n", match.end())
    if blank != -1:
        end = blank

    # Real listings put Output: right after the last input name
    next_header = _SECTION_HEADER.search(text, match.end())
    if next_header is not None and next_header.start() < end:
        end = next_header.start()
    return text[start:end]


def parse_protocol_sections(text: str) -> ProtocolSections:
    """Split a protocol listing into its input and output sections.

    Header matching is case-insensitive. A section runs from its header to
    the next blank line, the next section header, or the end of text.

    Args:
        text: Combined ``-protocols`` output.

    Returns:
        ProtocolSections with lower-cased spans; missing headers yield None.
    """
    lowered = text.casefold().replace("\r\n", "\n")
    return ProtocolSections(
        input_span=_section_span(lowered, "input"),
        output_span=_section_span(lowered, "output"),
    )
