"""Session context for structured logging.

Provides context propagation using contextvars so every log record emitted
while a session runs (including from its reader and waiter threads) carries
the session id.
"""

from __future__ import annotations

import contextvars
import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Generator

_session_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "session_id", default=None
)


def get_session_id() -> str | None:
    """Get the id of the session bound to the current context."""
    return _session_id.get()


@contextmanager
def session_context(session_id: str) -> Generator[None, None, None]:
    """Bind a session id to the current context for the duration of a block.

    Threads started with contextvars.copy_context().run inherit the binding.

    Example:
        with session_context("1a2b3c4d"):
            logger.info("Spawning ffmpeg")  # record.session_id == "1a2b3c4d"
    """
    token = _session_id.set(session_id)
    try:
        yield
    finally:
        _session_id.reset(token)


class SessionContextFilter(logging.Filter):
    """Logging filter that injects the session context into log records.

    Adds ``session_id`` for JSON output and a compact ``session_tag`` like
    ``[S1a2b3c4d] `` for text output.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        session_id = _session_id.get()
        record.session_id = session_id
        record.session_tag = f"[S{session_id}] " if session_id else ""
        return True  # Never filter out records
