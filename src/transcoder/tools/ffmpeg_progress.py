"""FFmpeg progress parsing utilities.

This module turns ffmpeg's human-readable stderr into Progress events. ffmpeg
redraws its status line with carriage returns, so a line ends at either
``\\n`` or ``\\r``.

A status line looks like:
frame=  10 fps=0.0 q=-1.0 size=    256kB time=00:00:01.00 bitrate= 256.0kbits/s speed=2.0x
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import IO

from transcoder.core.time_utils import parse_decimal_seconds, time_to_seconds

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 4096

# "frame=  10" -> "frame=10"
_EQUALS_PADDING = re.compile(r"=\s+")

# Prefixes of lines ffmpeg prints when it rejects the command
_ERROR_PREFIXES = ("Error", "Unrecognized option")


@dataclass(frozen=True)
class Progress:
    """One parsed ffmpeg status line."""

    frames_processed: str = ""
    current_time: str = ""
    current_bitrate: str = ""
    speed: str = ""
    progress: float = 0.0  # Completion percentage, 0.0 to 100.0

    @property
    def current_time_seconds(self) -> float:
        """Current output position in seconds."""
        return time_to_seconds(self.current_time)


def compute_percent(current_time: str, duration: str | float | None) -> float:
    """Calculate completion percentage from a clock string and a duration.

    Args:
        current_time: ``HH:MM:SS[.ms]`` position from the status line.
        duration: Total duration in seconds, either as ffprobe's decimal
            string or as a number. None when unknown.

    Returns:
        Percentage between 0.0 and 100.0; 0.0 when the duration is unknown,
        zero or not a number.
    """
    if duration is None:
        return 0.0
    if isinstance(duration, str):
        duration_seconds = parse_decimal_seconds(duration)
    else:
        duration_seconds = float(duration)
    if not duration_seconds > 0:
        return 0.0
    percent = time_to_seconds(current_time) * 100 / duration_seconds
    return max(0.0, min(100.0, percent))


def is_status_line(line: str) -> bool:
    """Check whether a line is a periodic ffmpeg status line."""
    return "time=" in line and "bitrate=" in line


def is_error_line(line: str) -> bool:
    """Check whether a line reports an ffmpeg error.

    Besides explicit errors this matches the overwrite prompt ffmpeg aborts
    on when stdin is not interactive:
    ``File 'out.mp4' already exists. Overwrite? [y/N] Not overwriting - exiting``
    """
    if line.startswith(_ERROR_PREFIXES):
        return True
    return "[y/N]" in line and "exiting" in line


def error_message(line: str) -> str:
    """Normalize an error line: strip whitespace and one trailing period."""
    return line.strip().removesuffix(".")


def parse_status_fields(line: str) -> dict[str, str]:
    """Split a status line into its ``key=value`` fields.

    Args:
        line: A status line from ffmpeg stderr.

    Returns:
        Mapping of field name to raw value. Tokens without ``=`` are skipped.
    """
    fields: dict[str, str] = {}
    for token in _EQUALS_PADDING.sub("=", line).split():
        key, sep, value = token.partition("=")
        if sep:
            fields[key] = value
    return fields


def parse_status_line(line: str, duration: str | float | None = None) -> Progress:
    """Parse a status line into a Progress event.

    Missing fields stay empty rather than failing the line.

    Args:
        line: A line for which is_status_line() is True.
        duration: Total input duration used for the percentage.

    Returns:
        Parsed Progress.
    """
    fields = parse_status_fields(line)
    current_time = fields.get("time", "")
    return Progress(
        frames_processed=fields.get("frame", ""),
        current_time=current_time,
        current_bitrate=fields.get("bitrate", ""),
        speed=fields.get("speed", ""),
        progress=compute_percent(current_time, duration),
    )


def split_status_lines(
    stream: IO[bytes], chunk_size: int = READ_CHUNK_SIZE
) -> Iterator[str]:
    """Yield lines from a binary stream using ffmpeg's line endings.

    A line ends at whichever of ``\\n`` or ``\\r`` comes first, so a redraw is
    never merged with the line after it. Unterminated bytes at end of stream
    form a final line.

    Args:
        stream: Binary stream, typically a child's stderr pipe.
        chunk_size: Maximum bytes per read.

    Yields:
        Decoded lines without their terminator.
    """
    # read1 returns whatever is available without waiting for a full chunk
    read = getattr(stream, "read1", stream.read)
    buffer = b""
    eof = False

    while True:
        newline = min(
            (i for i in (buffer.find(b"\n"), buffer.find(b"\r")) if i >= 0),
            default=-1,
        )
        if newline >= 0:
            line, buffer = buffer[:newline], buffer[newline + 1 :]
            yield line.decode("utf-8", errors="replace")
            continue

        if eof:
            if buffer:
                yield buffer.decode("utf-8", errors="replace")
            return

        chunk = read(chunk_size)
        if not chunk:
            eof = True
        else:
            buffer += chunk


class ProgressParser:
    """Incremental parser for an ffmpeg stderr stream.

    Status lines become Progress events; error lines are handed to the
    on_error callback instead. All other lines are ignored.
    """

    def __init__(
        self,
        duration: Callable[[], str | float | None] | str | float | None = None,
        on_error: Callable[[str], None] | None = None,
        debug: bool = False,
    ) -> None:
        """Initialize the parser.

        Args:
            duration: Total input duration in seconds, or a callable
                returning it (evaluated per line so late metadata is used).
            on_error: Called with the normalized message of each error line.
            debug: Log every non-empty line at DEBUG level.
        """
        self._duration = duration
        self._on_error = on_error
        self._debug = debug

    def _current_duration(self) -> str | float | None:
        if callable(self._duration):
            return self._duration()
        return self._duration

    def parse_line(self, line: str) -> Progress | None:
        """Interpret one line.

        Returns:
            A Progress for status lines, None otherwise.
        """
        if not line:
            return None
        if self._debug:
            logger.debug("ffmpeg: %s", line)

        if is_error_line(line):
            message = error_message(line)
            logger.debug("ffmpeg reported error: %s", message)
            if self._on_error is not None:
                self._on_error(message)
            return None

        if is_status_line(line):
            return parse_status_line(line, self._current_duration())
        return None

    def parse(self, stream: IO[bytes]) -> Iterator[Progress]:
        """Lazily parse a stream until it closes.

        Not restartable: the stream is consumed as events are pulled.

        Args:
            stream: Binary stderr stream of the ffmpeg process.

        Yields:
            One Progress per status line.
        """
        for line in split_status_lines(stream):
            progress = self.parse_line(line)
            if progress is not None:
                yield progress
