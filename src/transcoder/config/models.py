"""Configuration data models.

This module defines dataclasses for transcoder configuration options.
"""

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class ToolPathsConfig:
    """Configuration for external tool paths.

    All paths are optional. If not specified, tools are looked up in PATH.
    """

    ffmpeg: Path | None = None
    ffprobe: Path | None = None


@dataclass(frozen=True)
class Flags:
    """Session behavior switches."""

    # Parse ffmpeg stderr into Progress events
    progress: bool = False

    # Pass ffmpeg stderr straight through to stdout instead of parsing it
    verbose: bool = False

    # Log every ffmpeg stderr line and the assembled command at DEBUG
    debug: bool = False


def merge_flags(*flags: Flags) -> Flags:
    """Combine flag sets; a switch is on if any input turns it on."""
    return Flags(
        progress=any(f.progress for f in flags),
        verbose=any(f.verbose for f in flags),
        debug=any(f.debug for f in flags),
    )


@dataclass
class LoggingConfig:
    """Configuration for structured logging."""

    # Log level: debug, info, warning, error
    level: str = "info"

    # Log file path (None = stderr only)
    file: Path | None = None

    # Log format: text or json
    format: str = "text"

    # Also log to stderr when file is set
    include_stderr: bool = False

    # Rotation threshold in bytes (default 10MB)
    max_bytes: int = 10_485_760

    # Number of rotated files to keep
    backup_count: int = 5

    def __post_init__(self) -> None:
        """Validate configuration."""
        valid_levels = {"debug", "info", "warning", "error"}
        if self.level.lower() not in valid_levels:
            raise ValueError(f"level must be one of {valid_levels}, got {self.level}")
        valid_formats = {"text", "json"}
        if self.format.lower() not in valid_formats:
            raise ValueError(
                f"format must be one of {valid_formats}, got {self.format}"
            )


@dataclass(frozen=True)
class TranscoderConfig:
    """Immutable configuration handed to a Session.

    Attributes:
        tools: Paths to the ffmpeg and ffprobe executables.
        flags: Progress/verbose/debug switches.
        logging: Logging settings (used by the CLI).
    """

    tools: ToolPathsConfig = field(default_factory=ToolPathsConfig)
    flags: Flags = field(default_factory=Flags)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def ffmpeg_path(self) -> Path | None:
        return self.tools.ffmpeg

    @property
    def ffprobe_path(self) -> Path | None:
        return self.tools.ffprobe
