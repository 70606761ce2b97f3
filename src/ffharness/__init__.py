"""ffharness: orchestration and self-test harness for an ffmpeg build.

Builds extraction commands, probes engine capabilities, runs engine sessions
as single-settlement cancellable operations, and certifies a build with a
battery of sample jobs.
"""

__version__ = "0.1.0"
