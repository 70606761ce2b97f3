"""Runtime capability probing.

CapabilityProber answers yes/no questions about an engine build by running
introspection commands through the injected engine. Nothing is cached; each
call asks the engine again.
"""

from __future__ import annotations

import logging

from ffharness.capabilities.models import (
    CapabilityKind,
    CapabilityQuery,
    ListingEntry,
    ProtocolDirection,
    ProtocolSections,
)
from ffharness.capabilities.parsers import parse_listing, parse_protocol_sections
from ffharness.engine.interface import Engine
from ffharness.engine.types import (
    EngineSession,
    LogLevel,
    ReturnCode,
    SessionState,
)

logger = logging.getLogger(__name__)


def help_succeeded(session: EngineSession) -> bool:
    """Return True if a ``-h`` query session reports the item as known.

    The engine exits 0 for unknown names too, so an error-level log line
    also counts as absence.
    """
    if session.state != SessionState.COMPLETED:
        return False
    if not ReturnCode.is_success(session.return_code):
        return False
    return not any(
        message.level.is_at_least(LogLevel.ERROR) for message in session.get_logs()
    )


class CapabilityProber:
    """Answers capability questions for one engine.

    Probing never raises: engine errors and unparsable output are logged at
    debug level and reported as absent.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def has_encoder(self, name: str) -> bool:
        return self._has_help_topic(CapabilityKind.ENCODER, name)

    def has_decoder(self, name: str) -> bool:
        return self._has_help_topic(CapabilityKind.DECODER, name)

    def has_demuxer(self, name: str) -> bool:
        return self._has_help_topic(CapabilityKind.DEMUXER, name)

    def has_filter(self, name: str) -> bool:
        return self._has_help_topic(CapabilityKind.FILTER, name)

    def has_bitstream_filter(self, name: str) -> bool:
        return self._has_help_topic(CapabilityKind.BITSTREAM_FILTER, name)

    def has_muxer(self, name: str) -> bool:
        """Check the muxer listing for a writable format named ``name``."""
        try:
            wanted = name.casefold()
            return any(
                entry.can_mux and entry.name.casefold() == wanted
                for entry in self.muxers()
            )
        except Exception as e:
            logger.debug("Muxer probe for %s failed: %s", name, e)
            return False

    def has_protocol(
        self, name: str, direction: ProtocolDirection = ProtocolDirection.INPUT
    ) -> bool:
        """Check the protocol listing section for ``direction``."""
        try:
            return self.protocols().has(name, direction)
        except Exception as e:
            logger.debug("Protocol probe for %s failed: %s", name, e)
            return False

    def check(self, query: CapabilityQuery) -> bool:
        """Answer a CapabilityQuery by dispatching on its kind."""
        if query.kind == CapabilityKind.MUXER:
            return self.has_muxer(query.name)
        if query.kind == CapabilityKind.PROTOCOL:
            return self.has_protocol(
                query.name, query.direction or ProtocolDirection.INPUT
            )
        return self._has_help_topic(query.kind, query.name)

    def muxers(self) -> list[ListingEntry]:
        """Run the muxer listing and parse it.

        Raises whatever the engine raises; the ``has_*`` methods catch it.
        """
        session = self._engine.execute("-hide_banner -muxers")
        return parse_listing(session.all_logs_as_string())

    def protocols(self) -> ProtocolSections:
        """Run the protocol listing and split it into sections."""
        session = self._engine.execute("-hide_banner -protocols")
        return parse_protocol_sections(session.all_logs_as_string())

    def _has_help_topic(self, kind: CapabilityKind, name: str) -> bool:
        topic = kind.help_topic
        if topic is None or not name:
            return False
        try:
            session = self._engine.execute(f"-hide_banner -h {topic}={name}")
            present = help_succeeded(session)
        except Exception as e:
            logger.debug("Probe for %s %s failed: %s", kind.value, name, e)
            return False
        logger.debug(
            "Probed %s %s: %s", kind.value, name, "present" if present else "absent"
        )
        return present
