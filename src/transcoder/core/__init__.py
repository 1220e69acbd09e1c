"""Core utilities package.

This package contains pure utility functions used across the codebase for
subprocess invocation and ffmpeg clock-time parsing.
"""

from transcoder.core.subprocess_utils import run_command
from transcoder.core.time_utils import parse_decimal_seconds, time_to_seconds

__all__ = [
    "parse_decimal_seconds",
    "run_command",
    "time_to_seconds",
]
