"""Exception hierarchy for transcoder.

All errors raised by the package inherit from TranscoderError, so callers can
catch every failure with a single except clause if they want to.
"""

from __future__ import annotations

from collections.abc import Sequence


class TranscoderError(Exception):
    """Base exception for all transcoder errors."""


class ConfigurationError(TranscoderError):
    """Raised when a session or tool configuration is invalid.

    Covers missing binary paths, a missing input, missing or empty outputs
    and output/option-group count mismatches. Always raised before any
    process is spawned.
    """


class SessionStateError(ConfigurationError):
    """Raised when a session is configured or run after it has started."""


class ProbeError(TranscoderError):
    """Base exception for ffprobe failures."""


class ProbeExecutionError(ProbeError):
    """Raised when ffprobe cannot be started or exits with a non-zero status.

    Attributes:
        stdout: Captured standard output.
        stderr: Captured standard error.
        returncode: Process exit status, or None if it never started.
    """

    def __init__(
        self,
        message: str,
        *,
        stdout: str = "",
        stderr: str = "",
        returncode: int | None = None,
    ) -> None:
        self.stdout = stdout
        self.stderr = stderr
        self.returncode = returncode
        super().__init__(message)


class ProbeParseError(ProbeError):
    """Raised when ffprobe output is not valid JSON or does not match the schema."""

    def __init__(self, message: str, *, stdout: str = "") -> None:
        self.stdout = stdout
        super().__init__(message)


class ProcessSpawnError(TranscoderError):
    """Raised when the ffmpeg process cannot be started."""

    def __init__(self, message: str, command: Sequence[str] = ()) -> None:
        self.command = list(command)
        super().__init__(message)


class ProcessRuntimeError(TranscoderError):
    """Aggregated errors collected while ffmpeg was running.

    Returned (not raised) by Session.error() once the progress feed closes.

    Attributes:
        messages: The individual error messages in the order they occurred.
    """

    def __init__(self, messages: Sequence[str]) -> None:
        self.messages = list(messages)
        super().__init__("; ".join(self.messages))
