"""Flow-controlled progress feed between a session and its caller.

The feed holds at most one undelivered event. The producer blocks in put()
until the consumer has taken the previous event, so a slow consumer throttles
the progress reader, and through the stderr pipe, ffmpeg itself.
"""

from __future__ import annotations

import threading
from collections import deque
from collections.abc import Iterator

from transcoder.exceptions import TranscoderError
from transcoder.tools.ffmpeg_progress import Progress


class FeedClosedError(TranscoderError):
    """Raised by ProgressFeed.put() once the feed has been closed."""


class ProgressFeed:
    """Single-producer, single-consumer channel of Progress events.

    Iterate it to receive events; iteration ends once the feed is closed and
    every event put before closing has been delivered.

    Example:
        feed = session.run()
        for progress in feed:
            print(f"{progress.progress:.1f}%")
        if session.error():
            ...
    """

    def __init__(self, capacity: int = 1) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")
        self._capacity = capacity
        self._pending: deque[Progress] = deque()
        self._closed = False
        self._cond = threading.Condition()

    @property
    def closed(self) -> bool:
        """True once close() has been called."""
        with self._cond:
            return self._closed

    def put(self, progress: Progress) -> None:
        """Deliver an event, blocking while the feed is full.

        Raises:
            FeedClosedError: If the feed is (or becomes) closed.
        """
        with self._cond:
            self._cond.wait_for(
                lambda: self._closed or len(self._pending) < self._capacity
            )
            if self._closed:
                raise FeedClosedError("progress feed is closed")
            self._pending.append(progress)
            self._cond.notify_all()

    def close(self) -> None:
        """Close the feed. Idempotent; never blocks.

        Events already queued are still delivered to the consumer.
        """
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def get(self, timeout: float | None = None) -> Progress | None:
        """Receive the next event.

        Args:
            timeout: Seconds to wait. None waits until an event arrives or
                the feed closes.

        Returns:
            The next Progress, or None once the feed is closed and drained.

        Raises:
            TimeoutError: If nothing arrived within timeout.
        """
        with self._cond:
            ready = self._cond.wait_for(
                lambda: self._pending or self._closed, timeout=timeout
            )
            if not ready:
                raise TimeoutError("no progress event within timeout")
            if self._pending:
                progress = self._pending.popleft()
                self._cond.notify_all()
                return progress
            return None

    def __iter__(self) -> Iterator[Progress]:
        return self

    def __next__(self) -> Progress:
        progress = self.get()
        if progress is None:
            raise StopIteration
        return progress
