"""External tool detection and version parsing.

Resolves ffmpeg and ffprobe to executable paths, preferring a configured
path and falling back to a PATH lookup, and reads their version banner.
"""

import logging
import re
import shutil
import subprocess  # nosec B404 - subprocess is required for tool detection
from datetime import datetime, timezone
from pathlib import Path

from transcoder.core.subprocess_utils import run_command
from transcoder.tools.models import BinaryPaths, ToolInfo, ToolStatus

logger = logging.getLogger(__name__)

# Timeout for version detection commands (seconds)
DETECTION_TIMEOUT = 10

# "ffmpeg version 6.1.1-3ubuntu5 Copyright ..." / "ffprobe version n7.0 ..."
_VERSION_PATTERN = re.compile(r"^\S+ version (\S+)", re.MULTILINE)


def parse_version_string(version_str: str) -> tuple[int, ...] | None:
    """Parse a version string into a comparable tuple.

    Handles various version formats:
    - "6.1.1" -> (6, 1, 1)
    - "6.1.1-3ubuntu5" -> (6, 1, 1)
    - "n6.1.1" -> (6, 1, 1)  (ffmpeg nightlies)

    Args:
        version_str: Version string to parse.

    Returns:
        Tuple of version components, or None if parsing fails.
    """
    if not version_str:
        return None

    version_str = version_str.lstrip("nv")

    match = re.match(r"(\d+(?:\.\d+)*)", version_str)
    if not match:
        return None

    return tuple(int(p) for p in match.group(1).split("."))


def find_tool(name: str, configured_path: Path | None = None) -> Path | None:
    """Find a tool executable.

    Args:
        name: Tool name (e.g., "ffmpeg").
        configured_path: Optional configured path override.

    Returns:
        Path to tool executable, or None if not found.
    """
    if configured_path:
        if configured_path.is_file():
            return configured_path
        logger.warning(
            "Configured path for %s is not a file: %s", name, configured_path
        )

    which_result = shutil.which(name)
    if which_result:
        return Path(which_result)

    return None


def detect_tool(name: str, configured_path: Path | None = None) -> ToolInfo:
    """Locate a tool and read its version.

    Args:
        name: Tool name ("ffmpeg" or "ffprobe").
        configured_path: Optional configured path to the tool.

    Returns:
        ToolInfo with detection results. Never raises.
    """
    info = ToolInfo(name=name, detected_at=datetime.now(timezone.utc))

    path = find_tool(name, configured_path)
    if not path:
        info.status_message = f"{name} not found in PATH"
        return info

    info.path = path

    try:
        stdout, stderr, rc = run_command(
            [path, "-version"], timeout=DETECTION_TIMEOUT
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        info.status = ToolStatus.ERROR
        info.status_message = f"Failed to run {name}: {e}"
        return info

    if rc != 0:
        info.status = ToolStatus.ERROR
        info.status_message = f"Failed to get {name} version: {stderr.strip()}"
        return info

    version_match = _VERSION_PATTERN.search(stdout)
    if version_match:
        info.version = version_match.group(1)
        info.version_tuple = parse_version_string(info.version)
        if info.version_tuple is None:
            logger.warning(
                "Could not parse %s version '%s' into comparable tuple",
                name,
                info.version,
            )

    info.status = ToolStatus.AVAILABLE
    return info


def locate_binaries(
    ffmpeg_path: Path | None = None,
    ffprobe_path: Path | None = None,
) -> BinaryPaths:
    """Resolve ffmpeg and ffprobe executables without running them.

    Args:
        ffmpeg_path: Configured ffmpeg path, if any.
        ffprobe_path: Configured ffprobe path, if any.

    Returns:
        BinaryPaths; a tool that cannot be found is left as None.
    """
    paths = BinaryPaths(
        ffmpeg=find_tool("ffmpeg", ffmpeg_path),
        ffprobe=find_tool("ffprobe", ffprobe_path),
    )
    logger.debug("Located binaries: ffmpeg=%s ffprobe=%s", paths.ffmpeg, paths.ffprobe)
    return paths
