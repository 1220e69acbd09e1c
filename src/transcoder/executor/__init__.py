"""Executor module for transcoder.

This module runs ffmpeg for a configured Session:

- Session: fluent builder that validates, probes, spawns and supervises ffmpeg
- ProgressFeed: flow-controlled channel of Progress events
- build_command / validate_session: argument vector assembly
"""

from transcoder.executor.command import (
    build_arguments,
    build_command,
    validate_session,
)
from transcoder.executor.feed import FeedClosedError, ProgressFeed
from transcoder.executor.session import Session, SessionState

__all__ = [
    "FeedClosedError",
    "ProgressFeed",
    "Session",
    "SessionState",
    "build_arguments",
    "build_command",
    "validate_session",
]
