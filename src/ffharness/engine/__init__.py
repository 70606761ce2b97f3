"""Engine boundary.

The Engine protocol, session types, and the ffmpeg subprocess engine.
The scripted test double lives in ffharness.engine.testing.
"""

from ffharness.engine.ffmpeg import FFmpegEngine, find_ffmpeg
from ffharness.engine.interface import (
    CompleteCallback,
    Engine,
    EngineNotFoundError,
    LogCallback,
    StatisticsCallback,
)
from ffharness.engine.types import (
    EngineSession,
    LogLevel,
    LogMessage,
    ReturnCode,
    SessionState,
    Statistics,
)

__all__ = [
    "CompleteCallback",
    "Engine",
    "EngineNotFoundError",
    "EngineSession",
    "FFmpegEngine",
    "LogCallback",
    "LogLevel",
    "LogMessage",
    "ReturnCode",
    "SessionState",
    "Statistics",
    "StatisticsCallback",
    "find_ffmpeg",
]
