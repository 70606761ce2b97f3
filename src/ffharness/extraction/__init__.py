"""Audio extraction.

Command building, session running with exactly-once settlement, and the
AudioExtractor that ties them to capability pre-flight checks.
"""

from ffharness.extraction.command import (
    build_arguments,
    build_command,
    codec_arguments,
    quote_path,
)
from ffharness.extraction.extractor import (
    MP3_UNAVAILABLE_MESSAGE,
    AudioExtractor,
    default_output_name,
)
from ffharness.extraction.models import ExtractionRequest, ExtractionResult
from ffharness.extraction.runner import PendingExtraction, SessionRunner

__all__ = [
    "MP3_UNAVAILABLE_MESSAGE",
    "AudioExtractor",
    "ExtractionRequest",
    "ExtractionResult",
    "PendingExtraction",
    "SessionRunner",
    "build_arguments",
    "build_command",
    "codec_arguments",
    "default_output_name",
    "quote_path",
]
