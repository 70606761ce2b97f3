"""Audio extraction.

AudioExtractor strips the video from a media file and encodes its audio in
the requested format, checking engine support for the mp3 encoder before
committing to a run.
"""

from __future__ import annotations

import logging
import shutil
from datetime import datetime
from pathlib import Path

from ffharness.capabilities.prober import CapabilityProber
from ffharness.engine.interface import Engine
from ffharness.extraction.command import MP3_ENCODER, build_command
from ffharness.extraction.files import (
    cleanup_temp_file,
    create_temp_output,
    validate_output,
)
from ffharness.extraction.models import ExtractionRequest, ExtractionResult
from ffharness.extraction.runner import PendingExtraction, SessionRunner

logger = logging.getLogger(__name__)

MP3_UNAVAILABLE_MESSAGE = (
    "MP3 encoder (libmp3lame) not available in this ffmpeg build. "
    "Choose AAC/M4A or rebuild ffmpeg with full GPL support "
    "(--enable-gpl --enable-libmp3lame)."
)


def default_output_name(
    input_path: str | Path, fmt: str, now: datetime | None = None
) -> str:
    """Build ``<stem>_<YYYYmmdd_HHMMSS>.<fmt>`` for an input file.

    Args:
        input_path: Source media file.
        fmt: Target format extension.
        now: Timestamp to embed (defaults to the current local time).

    Returns:
        Output file name without directory.
    """
    stamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
    stem = Path(input_path).stem or "audio"
    return f"{stem}_{stamp}.{fmt.lower()}"


class AudioExtractor:
    """Extracts the audio track of a media file through an engine."""

    def __init__(
        self,
        engine: Engine,
        prober: CapabilityProber | None = None,
        runner: SessionRunner | None = None,
    ) -> None:
        """Initialize the extractor.

        Args:
            engine: Engine that runs the commands.
            prober: Capability prober (defaults to one over ``engine``).
            runner: Session runner (defaults to one over ``engine``).
        """
        self._engine = engine
        self._prober = prober or CapabilityProber(engine)
        self._runner = runner or SessionRunner(engine)

    def extract_async(self, request: ExtractionRequest) -> PendingExtraction:
        """Start an extraction.

        An mp3 request on a build without libmp3lame fails immediately and
        never reaches the engine.

        Args:
            request: The extraction job.

        Returns:
            PendingExtraction that settles once with the outcome.
        """
        label = f"extract:{request.format}"
        mp3_supported = True
        if request.format == "mp3":
            mp3_supported = self._prober.has_encoder(MP3_ENCODER)
            if not mp3_supported:
                return self._runner.execute_async(
                    "", label=label, preflight_failure=MP3_UNAVAILABLE_MESSAGE
                )

        command = build_command(
            request.input_path,
            request.output_path,
            request.format,
            request.bitrate_kbps,
            mp3_supported=mp3_supported,
        )
        logger.info(
            "Extracting audio: %s -> %s (format=%s, bitrate=%s)",
            request.input_path,
            request.output_path,
            request.format,
            f"{request.bitrate_kbps}k" if request.bitrate_kbps else "default",
        )
        pending = self._runner.execute_async(command, label=label)
        pending.add_done_callback(
            lambda result: logger.info(
                "Extraction of %s finished: %s", request.input_path, result.message
            )
        )
        return pending

    def extract(
        self, request: ExtractionRequest, timeout: float | None = None
    ) -> ExtractionResult:
        """Run an extraction and wait for it.

        Args:
            request: The extraction job.
            timeout: Maximum seconds to wait. On expiry the operation is
                cancelled and the cancelled result returned.

        Returns:
            ExtractionResult of the session.
        """
        pending = self.extract_async(request)
        try:
            return pending.result(timeout)
        except TimeoutError:
            logger.warning(
                "Extraction of %s timed out after %ss", request.input_path, timeout
            )
            pending.cancel()
            return pending.result()
        except KeyboardInterrupt:
            pending.cancel()
            raise

    def extract_file(
        self, request: ExtractionRequest, timeout: float | None = None
    ) -> ExtractionResult:
        """Extract into a hidden temp file and move it into place on success.

        The temp file is removed afterwards whatever the outcome.

        Args:
            request: The extraction job.
            timeout: Maximum seconds to wait (see extract()).

        Returns:
            ExtractionResult; a successful engine run that left no usable
            output is reported as a failure.
        """
        output_path = request.output_path
        temp_path = create_temp_output(output_path)
        temp_request = ExtractionRequest(
            input_path=request.input_path,
            output_path=temp_path,
            format=request.format,
            bitrate_kbps=request.bitrate_kbps,
        )
        try:
            result = self.extract(temp_request, timeout)
            if not result.success:
                return result

            valid, error = validate_output(temp_path)
            if not valid:
                logger.error("%s", error)
                return ExtractionResult(
                    success=False,
                    message=error or "Output validation failed",
                    logs=result.logs,
                    elapsed_ms=result.elapsed_ms,
                )

            shutil.move(str(temp_path), str(output_path))
            logger.debug("Moved %s to %s", temp_path, output_path)
            return result
        finally:
            cleanup_temp_file(temp_path)
