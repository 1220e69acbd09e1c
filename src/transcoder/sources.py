"""Input and output descriptors for a transcoding session.

An input is either a filesystem path or an attached readable stream; an
output is either a filesystem path or an attached writable stream. Streams
render as the ``pipe:`` placeholder on the command line.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import IO, Any

PIPE_PLACEHOLDER = "pipe:"
"""Token telling ffmpeg/ffprobe to use stdin (input) or stdout (output)."""


@dataclass(frozen=True)
class PathSource:
    """Input read from a filesystem path (or any URL ffmpeg accepts)."""

    path: str

    @property
    def token(self) -> str:
        return self.path


@dataclass(frozen=True)
class StreamSource:
    """Input read from an attached stream passed to the child as stdin."""

    reader: IO[Any]

    @property
    def token(self) -> str:
        return PIPE_PLACEHOLDER


@dataclass(frozen=True)
class PathTarget:
    """Output written to a filesystem path."""

    path: str

    @property
    def token(self) -> str:
        return self.path


@dataclass(frozen=True)
class StreamTarget:
    """Output written to an attached stream passed to the child as stdout."""

    writer: IO[Any]

    @property
    def token(self) -> str:
        return PIPE_PLACEHOLDER


InputSource = PathSource | StreamSource
OutputTarget = PathTarget | StreamTarget


def as_input_source(value: InputSource | str | Path) -> InputSource:
    """Coerce a path-like value into an InputSource."""
    if isinstance(value, (PathSource, StreamSource)):
        return value
    return PathSource(str(value))
