"""Subprocess utilities for external tool invocation.

This module provides the subprocess wrapper used for the short-lived tool
invocations (ffprobe, ``-version`` detection) so that logging, decoding and
timeout handling stay consistent.
"""

from __future__ import annotations

import logging
import subprocess  # nosec B404 - subprocess is required for FFmpeg invocation
import time
from pathlib import Path
from typing import IO, Any

logger = logging.getLogger(__name__)


def run_command(
    args: list[str | Path],
    timeout: float | None = None,
    stdin: IO[bytes] | int | None = None,
    errors: str = "replace",
    **kwargs: Any,
) -> tuple[str, str, int]:
    """Run external command and capture its output.

    stdout and stderr are captured into separate buffers and decoded as
    UTF-8 with the given error handler.

    Args:
        args: Command and arguments. Path objects are converted to strings.
        timeout: Timeout in seconds. None waits indefinitely.
        stdin: Optional stdin for the child (file object or descriptor).
            Defaults to the null device.
        errors: Error handling mode for text decoding (default "replace").
        **kwargs: Additional subprocess.run arguments.

    Returns:
        Tuple of (stdout, stderr, returncode).

    Raises:
        OSError: If the command cannot be started.
        subprocess.TimeoutExpired: If command times out. subprocess.run()
            kills the child before raising, so no zombie is left behind.
    """
    str_args = [str(arg) for arg in args]
    command_name = Path(str_args[0]).name if str_args else "unknown"

    logger.debug(
        "Executing command: %s",
        " ".join(str_args),
        extra={"command": command_name, "arg_count": len(str_args)},
    )

    start_time = time.monotonic()

    try:
        result = subprocess.run(  # nosec B603 - caller validates args
            str_args,
            stdin=stdin if stdin is not None else subprocess.DEVNULL,
            capture_output=True,
            timeout=timeout,
            **kwargs,
        )
    except subprocess.TimeoutExpired:
        elapsed = time.monotonic() - start_time
        logger.warning(
            "Command timed out after %ss: %s",
            timeout,
            " ".join(str_args[:3]) + ("..." if len(str_args) > 3 else ""),
            extra={
                "command": command_name,
                "timeout_seconds": timeout,
                "elapsed_seconds": round(elapsed, 3),
            },
        )
        raise

    elapsed = time.monotonic() - start_time
    logger.debug(
        "Command completed",
        extra={
            "command": command_name,
            "elapsed_seconds": round(elapsed, 3),
            "returncode": result.returncode,
        },
    )

    stdout = (result.stdout or b"").decode("utf-8", errors=errors)
    stderr = (result.stderr or b"").decode("utf-8", errors=errors)
    return stdout, stderr, result.returncode
