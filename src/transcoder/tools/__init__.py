"""External tool support: binary location and ffmpeg progress parsing."""

from transcoder.tools.detection import (
    detect_tool,
    find_tool,
    locate_binaries,
    parse_version_string,
)
from transcoder.tools.ffmpeg_progress import (
    Progress,
    ProgressParser,
    compute_percent,
    parse_status_line,
    split_status_lines,
)
from transcoder.tools.models import BinaryPaths, ToolInfo, ToolStatus

__all__ = [
    "BinaryPaths",
    "Progress",
    "ProgressParser",
    "ToolInfo",
    "ToolStatus",
    "compute_percent",
    "detect_tool",
    "find_tool",
    "locate_binaries",
    "parse_status_line",
    "parse_version_string",
    "split_status_lines",
]
