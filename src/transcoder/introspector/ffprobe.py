"""FFprobe-based implementation of the MetadataProbe protocol."""

from __future__ import annotations

import logging
import subprocess  # nosec B404 - subprocess is required for ffprobe invocation
from pathlib import Path

from pydantic import ValidationError

from transcoder.core.subprocess_utils import run_command
from transcoder.exceptions import (
    ConfigurationError,
    ProbeExecutionError,
    ProbeParseError,
)
from transcoder.introspector.models import Metadata
from transcoder.sources import InputSource, StreamSource

logger = logging.getLogger(__name__)


class FFprobeProbe:
    """ffprobe-based implementation of the MetadataProbe protocol.

    Runs ffprobe synchronously with JSON output covering the container
    format, the streams and any error ffprobe reports, then validates the
    result into a Metadata snapshot.
    """

    def __init__(
        self,
        ffprobe_path: Path | str | None,
        hide_banner: bool = True,
        timeout: float | None = None,
    ) -> None:
        """Initialize the probe.

        Args:
            ffprobe_path: Path to the ffprobe executable.
            hide_banner: Prefix the command with ``-hide_banner``.
            timeout: Optional timeout in seconds. None waits indefinitely,
                which is required when probing a live stream.

        Raises:
            ConfigurationError: If no ffprobe path is given.
        """
        if not ffprobe_path:
            raise ConfigurationError("ffprobe binary path not found")
        self._ffprobe_path = Path(ffprobe_path)
        self._hide_banner = hide_banner
        self._timeout = timeout

    @property
    def ffprobe_path(self) -> Path:
        return self._ffprobe_path

    def build_command(self, source: InputSource) -> list[str]:
        """Build the ffprobe argument vector for an input.

        Args:
            source: Input to probe. Streams use the ``pipe:`` placeholder.

        Returns:
            Full command including the executable.
        """
        cmd = [str(self._ffprobe_path)]
        if self._hide_banner:
            cmd.append("-hide_banner")
        cmd.extend(
            [
                "-i",
                source.token,
                "-print_format",
                "json",
                "-show_format",
                "-show_streams",
                "-show_error",
            ]
        )
        return cmd

    def probe(self, source: InputSource) -> Metadata:
        """Run ffprobe against an input and parse its output.

        Args:
            source: Input to probe. A StreamSource is attached as stdin.

        Returns:
            Parsed Metadata.

        Raises:
            ProbeExecutionError: If ffprobe cannot start, times out or exits
                with a non-zero status.
            ProbeParseError: If the output is not valid JSON or does not
                match the expected schema.
        """
        cmd = self.build_command(source)
        stdin = source.reader if isinstance(source, StreamSource) else None

        try:
            stdout, stderr, returncode = run_command(
                cmd, timeout=self._timeout, stdin=stdin
            )
        except subprocess.TimeoutExpired as e:
            raise ProbeExecutionError(
                f"ffprobe timed out for {source.token} after {e.timeout}s"
            ) from e
        except OSError as e:
            raise ProbeExecutionError(
                f"Failed to start {self._ffprobe_path}: {e}"
            ) from e

        if returncode != 0:
            raise ProbeExecutionError(
                self._describe_failure(cmd, returncode, stdout, stderr),
                stdout=stdout,
                stderr=stderr,
                returncode=returncode,
            )

        return self.parse_output(stdout)

    @staticmethod
    def parse_output(stdout: str) -> Metadata:
        """Validate ffprobe JSON output into Metadata.

        Raises:
            ProbeParseError: If stdout is not valid JSON or does not match
                the schema.
        """
        try:
            metadata = Metadata.model_validate_json(stdout)
        except ValidationError as e:
            raise ProbeParseError(
                f"Invalid ffprobe output: {e}", stdout=stdout
            ) from e

        logger.debug(
            "Probed %s: format=%s duration=%s streams=%d",
            metadata.format.filename or "input",
            metadata.format.format_name,
            metadata.duration,
            len(metadata.streams),
        )
        return metadata

    def _describe_failure(
        self, cmd: list[str], returncode: int, stdout: str, stderr: str
    ) -> str:
        detail = stderr.strip()
        # -show_error puts the reason into the JSON on stdout
        try:
            error = Metadata.model_validate_json(stdout).error
        except ValidationError:
            error = None
        if error is not None and error.string:
            detail = error.string
        return (
            f"ffprobe failed with exit status {returncode} "
            f"(args: {' '.join(cmd[1:])}): {detail or 'no output'}"
        )
