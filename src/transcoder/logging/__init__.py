"""Structured logging module for transcoder.

Provides configurable logging with JSON format support and file rotation,
plus session context propagation into log records.
"""

from transcoder.logging.config import apply_flags, configure_logging
from transcoder.logging.context import (
    SessionContextFilter,
    get_session_id,
    session_context,
)
from transcoder.logging.handlers import JSONFormatter

__all__ = [
    "JSONFormatter",
    "SessionContextFilter",
    "apply_flags",
    "configure_logging",
    "get_session_id",
    "session_context",
]
