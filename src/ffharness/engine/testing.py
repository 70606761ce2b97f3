"""Testing utilities for code that drives an engine.

Provides ScriptedEngine, an in-memory Engine that answers commands from
regex rules, records what it was asked to run, and can hold sessions open
so tests control when (or whether) completion arrives.
"""

from __future__ import annotations

import logging
import re
import threading
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ffharness.engine.ffmpeg import tokenize
from ffharness.engine.interface import (
    CompleteCallback,
    LogCallback,
    StatisticsCallback,
)
from ffharness.engine.output import parse_log_line
from ffharness.engine.types import (
    EngineSession,
    LogMessage,
    ReturnCode,
    SessionState,
    Statistics,
)

logger = logging.getLogger(__name__)

# ==============================================================================
# Responses
# ==============================================================================


@dataclass(frozen=True)
class ScriptedResponse:
    """Canned outcome of one engine invocation.

    Lines may carry an engine level tag (``"[error] boom"``); untagged
    lines are info. Statistics are given as keyword dicts for
    ``Statistics`` (without the session id).
    """

    return_code: int = ReturnCode.SUCCESS
    lines: Sequence[str] = ()
    statistics: Sequence[dict[str, Any]] = ()
    output_bytes: int | None = None
    """Write this many bytes to the command's output path on completion."""

    hold: bool = False
    """Keep the session running until release() or cancel()."""

    fail_message: str | None = None
    """End the session FAILED (engine could not start) with this message."""


@dataclass
class _Held:
    session: EngineSession
    response: ScriptedResponse
    complete_callback: CompleteCallback


@dataclass
class ScriptedEngine:
    """Engine double driven by regex rules.

    Rules are tried in insertion order against the full command string with
    ``re.search``; the first match answers, otherwise ``default`` does.

    Example:
        engine = ScriptedEngine()
        engine.add_rule(r"-c:a aac", ScriptedResponse(output_bytes=4096))
        engine.add_rule(r"-c:a libopus", ScriptedResponse(return_code=1))
    """

    default: ScriptedResponse = field(default_factory=ScriptedResponse)
    version_string: str | None = "6.1-scripted"
    cancel_error: Exception | None = None
    """Raised from cancel() after recording the call."""

    rules: list[tuple[re.Pattern[str], ScriptedResponse]] = field(default_factory=list)
    invocations: list[str] = field(default_factory=list)
    cancel_calls: list[EngineSession] = field(default_factory=list)
    _held: dict[int, _Held] = field(default_factory=dict, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def add_rule(self, pattern: str, response: ScriptedResponse) -> ScriptedEngine:
        """Answer commands matching ``pattern`` with ``response``."""
        self.rules.append((re.compile(pattern), response))
        return self

    def response_for(self, command: str) -> ScriptedResponse:
        for pattern, response in self.rules:
            if pattern.search(command):
                return response
        return self.default

    def invocations_matching(self, pattern: str) -> list[str]:
        """Return recorded commands that match ``pattern``."""
        compiled = re.compile(pattern)
        return [command for command in self.invocations if compiled.search(command)]

    # ------------------------------------------------------------------
    # Engine protocol
    # ------------------------------------------------------------------

    def execute(self, command: str) -> EngineSession:
        with self._lock:
            self.invocations.append(command)
        response = self.response_for(command)
        session = EngineSession(command=command)
        if response.fail_message is not None:
            session.finish(SessionState.FAILED, fail_message=response.fail_message)
            return session
        session.mark_running()
        for line in response.lines:
            level, text = parse_log_line(line)
            session.add_log(LogMessage(session.session_id, level, text))
        self._complete(session, response)
        return session

    def execute_async(
        self,
        command: str,
        complete_callback: CompleteCallback,
        log_callback: LogCallback | None = None,
        statistics_callback: StatisticsCallback | None = None,
    ) -> EngineSession:
        with self._lock:
            self.invocations.append(command)
        response = self.response_for(command)
        session = EngineSession(command=command)

        if response.fail_message is not None:
            session.finish(SessionState.FAILED, fail_message=response.fail_message)
            complete_callback(session)
            return session

        session.mark_running()
        for line in response.lines:
            level, text = parse_log_line(line)
            message = LogMessage(session.session_id, level, text)
            session.add_log(message)
            if log_callback is not None:
                log_callback(message)
        if statistics_callback is not None:
            for values in response.statistics:
                statistics_callback(Statistics(session_id=session.session_id, **values))

        if response.hold:
            with self._lock:
                self._held[session.session_id] = _Held(
                    session, response, complete_callback
                )
            return session

        self._complete(session, response)
        complete_callback(session)
        return session

    def cancel(self, session: EngineSession) -> None:
        with self._lock:
            self.cancel_calls.append(session)
            held = self._held.pop(session.session_id, None)
        session.cancel_requested = True
        if held is not None:
            session.finish(SessionState.CANCELLED, return_code=ReturnCode.CANCEL)
            held.complete_callback(session)
        if self.cancel_error is not None:
            raise self.cancel_error

    def version(self) -> str | None:
        return self.version_string

    # ------------------------------------------------------------------
    # Test controls
    # ------------------------------------------------------------------

    @property
    def held_sessions(self) -> list[EngineSession]:
        with self._lock:
            return [held.session for held in self._held.values()]

    def release(self, session: EngineSession, return_code: int | None = None) -> None:
        """Complete a held session and fire its completion callback.

        Releasing a session that was already cancelled still fires the
        callback, the way a late engine completion would.

        Args:
            session: Session returned by execute_async().
            return_code: Override for the response's return code.
        """
        with self._lock:
            held = self._held.pop(session.session_id, None)
        if held is None:
            session.finish(SessionState.COMPLETED, return_code=return_code)
            logger.debug("Releasing session %d that is not held", session.session_id)
            return
        response = held.response
        if return_code is not None:
            response = ScriptedResponse(
                return_code=return_code, output_bytes=response.output_bytes
            )
        self._complete(session, response)
        held.complete_callback(session)

    def _complete(self, session: EngineSession, response: ScriptedResponse) -> None:
        if response.output_bytes is not None and ReturnCode.is_success(
            response.return_code
        ):
            _write_output(session.command, response.output_bytes)
        session.finish(SessionState.COMPLETED, return_code=response.return_code)

    # ------------------------------------------------------------------
    # Build simulation
    # ------------------------------------------------------------------

    @classmethod
    def for_build(
        cls,
        *,
        encoders: Iterable[str] = (),
        decoders: Iterable[str] = (),
        muxers: Iterable[str] = (),
        demuxers: Iterable[str] = (),
        filters: Iterable[str] = (),
        bitstream_filters: Iterable[str] = (),
        input_protocols: Iterable[str] = (),
        output_protocols: Iterable[str] = (),
        default: ScriptedResponse | None = None,
        version_string: str | None = "6.1-scripted",
    ) -> ScriptedEngine:
        """Create an engine that answers introspection like a given build.

        Help queries (``-h encoder=NAME`` and friends) succeed for the named
        capabilities and report ``[error] ... not recognized`` otherwise.
        ``-muxers`` and ``-protocols`` return synthesized listings. Every
        other command gets ``default`` (success writing 2048 bytes unless
        given).
        """
        engine = cls(
            default=default or ScriptedResponse(output_bytes=2048),
            version_string=version_string,
        )
        per_item = {
            "encoder": list(encoders),
            "decoder": list(decoders),
            "demuxer": list(demuxers),
            "filter": list(filters),
            "bsf": list(bitstream_filters),
        }
        for kind, names in per_item.items():
            if names:
                alternatives = "|".join(re.escape(name) for name in names)
                engine.add_rule(
                    rf"-h {kind}=(?:{alternatives})(?:\s|$)",
                    ScriptedResponse(lines=[f"{kind.capitalize()} details:"]),
                )
            engine.add_rule(
                rf"-h {kind}=",
                ScriptedResponse(
                    lines=[f"[error] Unknown {kind}, it is not recognized by FFmpeg."]
                ),
            )

        engine.add_rule(r"-muxers", ScriptedResponse(lines=muxer_listing(muxers)))
        engine.add_rule(
            r"-protocols",
            ScriptedResponse(
                lines=protocol_listing(input_protocols, output_protocols)
            ),
        )
        return engine


def muxer_listing(muxers: Iterable[str]) -> list[str]:
    """Render a ``-muxers`` listing for the given names."""
    lines = [
        "File formats:",
        " D. = Demuxing supported",
        " .E = Muxing supported",
        " --",
    ]
    lines.extend(f"  E {name:<15} {name} muxer" for name in muxers)
    return lines


def protocol_listing(
    input_protocols: Iterable[str], output_protocols: Iterable[str]
) -> list[str]:
    """Render a ``-protocols`` listing with blank-line separated sections."""
    lines = ["Supported file protocols:", "Input:"]
    lines.extend(f"  {name}" for name in input_protocols)
    lines.extend(["", "Output:"])
    lines.extend(f"  {name}" for name in output_protocols)
    return lines


def _write_output(command: str, size: int) -> None:
    try:
        target = tokenize(command)[-1]
    except (ValueError, IndexError):
        return
    if target == "-":
        return
    path = Path(target)
    if path.parent.is_dir():
        path.write_bytes(b"\0" * size)
