"""Transcoding session: builds, spawns and supervises one ffmpeg run.

A Session is configured through chained calls, then consumed by a single
run(). run() validates the configuration, probes the input when needed,
spawns ffmpeg and returns a ProgressFeed immediately. Two daemon threads
serve the run:

- the progress reader parses ffmpeg's stderr into the feed and records
  error lines;
- the process waiter waits for exit (killing ffmpeg if the cancellation
  event is set), records a failed exit and closes the feed.

Errors that happen after spawn are collected and returned by error() once
the feed has been drained.
"""

from __future__ import annotations

import contextvars
import logging
import subprocess  # nosec B404 - subprocess is required for FFmpeg invocation
import sys
import threading
import time
import uuid
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import IO, Any

from transcoder.config.models import TranscoderConfig
from transcoder.exceptions import (
    ConfigurationError,
    ProcessRuntimeError,
    ProcessSpawnError,
    SessionStateError,
)
from transcoder.executor.command import build_command, validate_session
from transcoder.executor.feed import FeedClosedError, ProgressFeed
from transcoder.introspector.ffprobe import FFprobeProbe
from transcoder.introspector.interface import MetadataProbe
from transcoder.introspector.models import Metadata
from transcoder.logging.context import session_context
from transcoder.options import ArgumentGroup, ArgumentProvider, as_argument_group
from transcoder.sources import (
    InputSource,
    OutputTarget,
    PathTarget,
    StreamSource,
    StreamTarget,
    as_input_source,
)
from transcoder.tools.ffmpeg_progress import ProgressParser

logger = logging.getLogger(__name__)

OptionSource = ArgumentProvider | Sequence[str] | Iterable[str]


class SessionState(Enum):
    """Lifecycle of a Session."""

    UNCONFIGURED = "unconfigured"
    CONFIGURED = "configured"
    VALIDATED = "validated"
    PROBING = "probing"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


_CONFIGURABLE_STATES = frozenset({SessionState.UNCONFIGURED, SessionState.CONFIGURED})


class ErrorLog:
    """Ordered, thread-safe list of error messages."""

    def __init__(self) -> None:
        self._messages: list[str] = []
        self._lock = threading.Lock()

    def append(self, message: str) -> None:
        with self._lock:
            self._messages.append(message)

    def snapshot(self) -> tuple[str, ...]:
        with self._lock:
            return tuple(self._messages)

    def __len__(self) -> int:
        with self._lock:
            return len(self._messages)


@dataclass
class RunContext:
    """State owned by a single run of a Session."""

    feed: ProgressFeed = field(default_factory=ProgressFeed)
    errors: ErrorLog = field(default_factory=ErrorLog)
    metadata: Metadata | None = None
    command: list[str] = field(default_factory=list)
    process: subprocess.Popen | None = None
    reader: threading.Thread | None = None
    waiter: threading.Thread | None = None
    cancelled: bool = False
    done: threading.Event = field(default_factory=threading.Event)
    started: float = 0.0

    def duration(self) -> str | None:
        return self.metadata.duration if self.metadata is not None else None


def _console_fd() -> int | None:
    """File descriptor of the caller's stdout, or None to inherit stderr."""
    try:
        return sys.stdout.fileno()
    except (AttributeError, OSError, ValueError):
        return None


class Session:
    """Builder and controller for one ffmpeg transcode.

    Example:
        config = auto_config(Flags(progress=True))
        session = (
            Session(config)
            .set_input("in.mkv")
            .add_output("out.mp4")
            .set_options(Options(video_codec="libx264", overwrite=True))
        )
        for progress in session.run():
            print(progress.progress)
        if (err := session.error()) is not None:
            raise err
    """

    POLL_INTERVAL: float = 0.1  # Cancellation check interval while waiting

    def __init__(
        self,
        config: TranscoderConfig,
        probe: MetadataProbe | None = None,
    ) -> None:
        """Initialize the session.

        Args:
            config: Immutable tool paths and flags.
            probe: Optional metadata probe. Defaults to an FFprobeProbe for
                the configured ffprobe path, created on first use.
        """
        self._config = config
        self._probe = probe
        self._input: InputSource | None = None
        self._outputs: list[OutputTarget] = []
        self._leading_options: list[str] = []
        self._option_groups: list[ArgumentGroup] = []
        self._metadata: Metadata | None = None
        self._skip_probe = False
        self._cancel_event: threading.Event | None = None
        self._state = SessionState.UNCONFIGURED
        self._state_lock = threading.Lock()
        self._run: RunContext | None = None
        self.session_id = uuid.uuid4().hex[:8]

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def config(self) -> TranscoderConfig:
        return self._config

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def input(self) -> InputSource | None:
        return self._input

    @property
    def outputs(self) -> tuple[OutputTarget, ...]:
        return tuple(self._outputs)

    @property
    def leading_options(self) -> ArgumentGroup:
        return tuple(self._leading_options)

    @property
    def option_groups(self) -> tuple[ArgumentGroup, ...]:
        return tuple(self._option_groups)

    @property
    def metadata(self) -> Metadata | None:
        """Cached metadata, probed or provided."""
        return self._metadata

    @property
    def command(self) -> tuple[str, ...]:
        """Argument vector of the current run, empty before spawn."""
        if self._run is None:
            return ()
        return tuple(self._run.command)

    @property
    def errors(self) -> tuple[str, ...]:
        """Errors accumulated by the current run."""
        if self._run is None:
            return ()
        return self._run.errors.snapshot()

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def _configure(self) -> None:
        if self._state not in _CONFIGURABLE_STATES:
            raise SessionStateError(
                "Session cannot be configured once started "
                f"(state: {self._state.value})"
            )
        self._state = SessionState.CONFIGURED

    def set_input(self, source: InputSource | str | Path) -> Session:
        """Read the input from a path (or any URL ffmpeg accepts).

        A PathSource or StreamSource built elsewhere is used as is.
        """
        self._configure()
        self._input = as_input_source(source)
        return self

    def set_input_pipe(self, reader: IO[Any]) -> Session:
        """Read the input from a stream passed to ffmpeg as stdin.

        The stream must expose a real file descriptor (pipe, file, socket).
        It is closed when the run concludes.
        """
        self._configure()
        self._input = StreamSource(reader)
        return self

    def add_output(self, path: str | Path) -> Session:
        """Append an output path."""
        self._configure()
        self._outputs.append(PathTarget(str(path)))
        return self

    def add_output_pipe(self, writer: IO[Any]) -> Session:
        """Append an output written to a stream passed to ffmpeg as stdout.

        The stream must expose a real file descriptor. It is closed when
        the run concludes.
        """
        self._configure()
        self._outputs.append(StreamTarget(writer))
        return self

    def set_options(self, options: OptionSource) -> Session:
        """Replace all per-output option groups with a single group."""
        self._configure()
        self._option_groups = [as_argument_group(options)]
        return self

    def add_options(self, options: OptionSource) -> Session:
        """Append a per-output option group."""
        self._configure()
        self._option_groups.append(as_argument_group(options))
        return self

    def set_leading_options(self, options: OptionSource) -> Session:
        """Replace the options placed before ``-i``."""
        self._configure()
        self._leading_options = list(as_argument_group(options))
        return self

    def add_leading_options(self, options: OptionSource) -> Session:
        """Append to the options placed before ``-i``."""
        self._configure()
        self._leading_options.extend(as_argument_group(options))
        return self

    def skip_probe(self, skip: bool = True) -> Session:
        """Do not run ffprobe before transcoding.

        Progress percentages stay at 0 unless metadata is provided.
        """
        self._configure()
        self._skip_probe = skip
        return self

    def provide_metadata(self, metadata: Metadata) -> Session:
        """Use the given metadata instead of probing the input."""
        self._configure()
        self._metadata = metadata
        return self

    def with_cancellation(self, event: threading.Event) -> Session:
        """Bind the run to a cancellation event.

        Setting the event before spawn makes run() fail; setting it while
        ffmpeg runs kills the process.
        """
        self._configure()
        self._cancel_event = event
        return self

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def _get_probe(self) -> MetadataProbe:
        if self._probe is None:
            self._probe = FFprobeProbe(self._config.ffprobe_path)
        return self._probe

    def probe(self) -> Metadata:
        """Probe the current input and cache the result.

        Returns:
            The parsed Metadata.

        Raises:
            ConfigurationError: If no input is set or ffprobe is missing.
            ProbeExecutionError: If ffprobe fails.
            ProbeParseError: If ffprobe output cannot be parsed.
        """
        if self._input is None:
            raise ConfigurationError("missing input option")
        if isinstance(self._input, StreamSource):
            logger.warning(
                "Probing a piped input consumes data from the stream; "
                "provide metadata or skip probing to keep it intact"
            )
        metadata = self._get_probe().probe(self._input)
        self._metadata = metadata
        return metadata

    def run(self) -> ProgressFeed:
        """Start the transcode.

        Returns:
            A ProgressFeed that closes when ffmpeg exits. It receives events
            only when the progress flag is set and verbose is not.

        Raises:
            SessionStateError: If the session was already run.
            ConfigurationError: If the configuration is invalid.
            ProbeExecutionError, ProbeParseError: If probing fails.
            ProcessSpawnError: If ffmpeg cannot be started.
        """
        with self._state_lock:
            if self._state not in _CONFIGURABLE_STATES:
                raise SessionStateError(
                    f"Session has already been run (state: {self._state.value})"
                )
            run = RunContext()
            self._run = run
            self._state = SessionState.VALIDATED

        with session_context(self.session_id):
            try:
                self._prepare(run)
                self._spawn(run)
            except BaseException:
                self._state = SessionState.FAILED
                self._close_pipes()
                run.feed.close()
                run.done.set()
                raise

            run_context = contextvars.copy_context()
            if run.reader is not None:
                run.reader.start()
            run.waiter = threading.Thread(
                target=run_context.run,
                args=(self._wait_for_exit, run),
                name=f"transcoder-wait-{self.session_id}",
                daemon=True,
            )
            run.waiter.start()

        return run.feed

    def error(self) -> ProcessRuntimeError | None:
        """Return the aggregated error of the run, or None.

        Call after the feed has been drained: failures that happen while
        ffmpeg runs (non-zero exit, rejected options) only show up here.
        """
        if self._run is None:
            return None
        messages = self._run.errors.snapshot()
        if not messages:
            return None
        return ProcessRuntimeError(messages)

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the run has concluded.

        The feed must be drained concurrently when progress is enabled,
        otherwise the reader blocks and the run never concludes.

        Returns:
            True if the run concluded, False on timeout.

        Raises:
            SessionStateError: If run() has not been called.
        """
        if self._run is None:
            raise SessionStateError("Session has not been run")
        return self._run.done.wait(timeout)

    # ------------------------------------------------------------------
    # Run internals
    # ------------------------------------------------------------------

    def _prepare(self, run: RunContext) -> None:
        validate_session(
            self._config.ffmpeg_path,
            self._input,
            self._outputs,
            self._option_groups,
        )
        assert self._input is not None

        if not self._skip_probe and self._metadata is None:
            self._state = SessionState.PROBING
            self.probe()
        run.metadata = self._metadata

        run.command = build_command(
            self._config.ffmpeg_path,  # type: ignore[arg-type]
            self._input,
            self._outputs,
            self._leading_options,
            self._option_groups,
        )
        logger.debug("Assembled command: %s", " ".join(run.command))

    def _spawn(self, run: RunContext) -> None:
        flags = self._config.flags
        parse_progress = flags.progress and not flags.verbose

        if self._cancel_event is not None and self._cancel_event.is_set():
            run.errors.append("ffmpeg not started: cancelled")
            raise ProcessSpawnError(
                "Cancelled before ffmpeg was started", run.command
            )

        stdin: Any = subprocess.DEVNULL
        if isinstance(self._input, StreamSource):
            stdin = self._input.reader
        stdout: Any = subprocess.DEVNULL
        for output in self._outputs:
            if isinstance(output, StreamTarget):
                stdout = output.writer

        if parse_progress:
            stderr: Any = subprocess.PIPE
        elif flags.verbose:
            stderr = _console_fd()
        else:
            stderr = None

        try:
            run.process = subprocess.Popen(  # nosec B603 - args built from config
                run.command,
                stdin=stdin,
                stdout=stdout,
                stderr=stderr,
            )
        except (OSError, ValueError) as e:
            message = f"Failed starting ffmpeg ({run.command[0]}): {e}"
            run.errors.append(message)
            raise ProcessSpawnError(message, run.command) from e

        run.started = time.monotonic()
        self._state = SessionState.RUNNING
        logger.info(
            "Started ffmpeg (pid %d) with %d output(s)",
            run.process.pid,
            len(self._outputs),
            extra={
                "command": Path(run.command[0]).name,
                "pid": run.process.pid,
                "arg_count": len(run.command),
                "outputs": len(self._outputs),
            },
        )

        if parse_progress:
            assert run.process.stderr is not None
            run.reader = threading.Thread(
                target=contextvars.copy_context().run,
                args=(self._read_progress, run, run.process.stderr),
                name=f"transcoder-progress-{self.session_id}",
                daemon=True,
            )

    def _read_progress(self, run: RunContext, stream: IO[bytes]) -> None:
        parser = ProgressParser(
            duration=run.duration,
            on_error=run.errors.append,
            debug=self._config.flags.debug,
        )
        emitting = True
        try:
            for progress in parser.parse(stream):
                if not emitting:
                    continue
                try:
                    run.feed.put(progress)
                except FeedClosedError:
                    # Keep draining stderr so ffmpeg never blocks on a full pipe
                    logger.debug("Progress feed closed by consumer, draining")
                    emitting = False
        except (OSError, ValueError) as e:
            # Pipe closed or process terminated
            logger.debug("Progress reader stopped: %s", e)
        finally:
            stream.close()

    def _wait_for_exit(self, run: RunContext) -> None:
        process = run.process
        assert process is not None
        try:
            returncode = self._wait_process(run, process)
            if run.reader is not None:
                run.reader.join()

            if run.cancelled:
                run.errors.append(
                    f"ffmpeg process terminated: cancelled (exit status {returncode})"
                )
            elif returncode < 0:
                run.errors.append(f"ffmpeg terminated by signal {-returncode}")
            elif returncode != 0:
                run.errors.append(f"ffmpeg exited with status {returncode}")

            log = logger.info if returncode == 0 else logger.warning
            log(
                "ffmpeg (pid %d) exited with status %d",
                process.pid,
                returncode,
                extra={
                    "command": Path(run.command[0]).name,
                    "pid": process.pid,
                    "returncode": returncode,
                    "elapsed_seconds": round(time.monotonic() - run.started, 3),
                },
            )
        except OSError as e:
            run.errors.append(f"Failed waiting for ffmpeg: {e}")
        finally:
            self._close_pipes()
            self._state = (
                SessionState.FAILED if len(run.errors) else SessionState.COMPLETED
            )
            run.feed.close()
            run.done.set()

    def _wait_process(self, run: RunContext, process: subprocess.Popen) -> int:
        if self._cancel_event is None:
            return process.wait()

        while True:
            try:
                return process.wait(timeout=self.POLL_INTERVAL)
            except subprocess.TimeoutExpired:
                if self._cancel_event.is_set() and not run.cancelled:
                    logger.info("Cancellation requested, killing ffmpeg")
                    run.cancelled = True
                    process.kill()

    def _close_pipes(self) -> None:
        streams: list[IO[Any]] = []
        if isinstance(self._input, StreamSource):
            streams.append(self._input.reader)
        streams.extend(o.writer for o in self._outputs if isinstance(o, StreamTarget))

        for stream in streams:
            try:
                stream.close()
            except OSError as e:
                logger.warning("Could not close pipe %r: %s", stream, e)
