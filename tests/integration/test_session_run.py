"""Integration tests running sessions against fake ffmpeg/ffprobe scripts.

The fake ffmpeg is a shell script that records its arguments and writes
canned status lines to stderr, so the full spawn/parse/wait path runs
without a real ffmpeg installation.
"""

import logging
import threading
from pathlib import Path

import pytest

from transcoder.exceptions import ProcessSpawnError
from transcoder.executor.session import Session, SessionState
from transcoder.logging.context import SessionContextFilter
from transcoder.options import Options

pytestmark = pytest.mark.integration

STATUS = (
    "frame=  {frame} fps= 25 q=28.0 size=     512kB time={time} "
    "bitrate= 671.1kbits/s speed=2.0x"
)


def _status_printf(frame: int, time: str, end: str = r"\r") -> str:
    return f"printf '{STATUS.format(frame=frame, time=time)}{end}' >&2"


@pytest.fixture
def args_file(tmp_path: Path) -> Path:
    return tmp_path / "ffmpeg-args.txt"


@pytest.fixture
def make_ffmpeg(fake_tool, args_file: Path):
    """Factory for a fake ffmpeg that records its arguments first."""

    def _make(body: str) -> Path:
        record = f"printf '%s\\n' \"$@\" > \"{args_file}\""
        return fake_tool("ffmpeg", f"{record}\n{body}")

    return _make


class TestProgressRun:
    """Full runs with progress parsing."""

    def test_progress_events_from_probed_duration(
        self, make_ffmpeg, fake_ffprobe: Path, make_config, args_file: Path
    ) -> None:
        """Status lines become percentages of the probed duration."""
        ffmpeg = make_ffmpeg(
            "\n".join(
                [
                    "echo 'ffmpeg version 6.1 Copyright (c) 2000-2023' >&2",
                    _status_printf(250, "00:00:25.00"),
                    _status_printf(500, "00:00:50.00"),
                    _status_printf(1000, "00:01:40.00", end=r"\n"),
                    "exit 0",
                ]
            )
        )
        session = (
            Session(make_config(ffmpeg, fake_ffprobe, progress=True))
            .set_input("in.mp4")
            .add_output("out.mp4")
            .set_options(Options(video_codec="libx264", crf=23))
        )

        events = list(session.run())

        assert session.wait(5)
        assert [e.progress for e in events] == [
            pytest.approx(25.0),
            pytest.approx(50.0),
            pytest.approx(100.0),
        ]
        assert [e.frames_processed for e in events] == ["250", "500", "1000"]
        assert events[0].current_bitrate == "671.1kbits/s"
        assert events[0].speed == "2.0x"
        assert session.error() is None
        assert session.state == SessionState.COMPLETED
        assert args_file.read_text().splitlines() == [
            "-i",
            "in.mp4",
            "-c:v",
            "libx264",
            "-crf",
            "23",
            "out.mp4",
        ]

    def test_percentages_stay_zero_without_metadata(
        self, make_ffmpeg, make_config
    ) -> None:
        """Skipping the probe leaves percentages at 0."""
        ffmpeg = make_ffmpeg(_status_printf(10, "00:00:25.00"))
        session = (
            Session(make_config(ffmpeg, None, progress=True))
            .set_input("in.mp4")
            .add_output("out.mp4")
            .skip_probe()
        )

        events = list(session.run())

        assert len(events) == 1
        assert events[0].progress == 0.0
        assert events[0].current_time == "00:00:25.00"

    def test_no_events_without_progress_flag(self, make_ffmpeg, make_config) -> None:
        """The feed closes without events when progress is off."""
        ffmpeg = make_ffmpeg("exit 0")
        session = (
            Session(make_config(ffmpeg, None))
            .set_input("in.mp4")
            .add_output("out.mp4")
            .skip_probe()
        )

        assert list(session.run()) == []
        assert session.wait(5)
        assert session.state == SessionState.COMPLETED


class TestFailures:
    """Runs where ffmpeg rejects its input or fails."""

    def test_error_lines_and_exit_status(self, make_ffmpeg, make_config) -> None:
        """Error lines and the exit code are joined into one error."""
        ffmpeg = make_ffmpeg("echo \"Unrecognized option 'bogus'.\" >&2\nexit 1")
        session = (
            Session(make_config(ffmpeg, None, progress=True))
            .set_input("in.mp4")
            .add_output("out.mp4")
            .add_options(["-bogus"])
            .skip_probe()
        )

        assert list(session.run()) == []
        session.wait(5)

        error = session.error()
        assert error is not None
        assert str(error) == (
            "Unrecognized option 'bogus'; ffmpeg exited with status 1"
        )
        assert session.state == SessionState.FAILED

    def test_overwrite_refusal_reported(self, make_ffmpeg, make_config) -> None:
        """ffmpeg's overwrite prompt refusal is an error."""
        ffmpeg = make_ffmpeg(
            "printf \"File 'out.mp4' already exists. Overwrite? [y/N] "
            "Not overwriting - exiting\\n\" >&2\nexit 1"
        )
        session = (
            Session(make_config(ffmpeg, None, progress=True))
            .set_input("in.mp4")
            .add_output("out.mp4")
            .skip_probe()
        )

        list(session.run())
        session.wait(5)

        assert session.errors[0].endswith("Not overwriting - exiting")

    def test_non_executable_ffmpeg(self, tmp_path: Path, make_config) -> None:
        """A path that cannot be executed fails at spawn."""
        not_executable = tmp_path / "ffmpeg"
        not_executable.write_text("not a program")
        session = (
            Session(make_config(not_executable, None))
            .set_input("in.mp4")
            .add_output("out.mp4")
            .skip_probe()
        )

        with pytest.raises(ProcessSpawnError):
            session.run()

        assert session.state == SessionState.FAILED


class TestCancellation:
    """Cancellation of a running process."""

    def test_cancel_kills_running_process(self, make_ffmpeg, make_config) -> None:
        """Setting the event kills ffmpeg and records the cancellation."""
        ffmpeg = make_ffmpeg(_status_printf(1, "00:00:01.00") + "\nexec sleep 30")
        cancel = threading.Event()
        session = (
            Session(make_config(ffmpeg, None, progress=True))
            .set_input("in.mp4")
            .add_output("out.mp4")
            .skip_probe()
            .with_cancellation(cancel)
        )

        events = []
        for progress in session.run():
            events.append(progress)
            cancel.set()

        assert session.wait(10)
        assert len(events) == 1
        assert "cancelled" in session.errors[-1]
        assert session.state == SessionState.FAILED


class TestPipes:
    """Streaming input and output through pipes."""

    def test_stream_in_and_out(self, make_ffmpeg, make_config, tmp_path: Path) -> None:
        """Data flows from the input stream to the output stream."""
        ffmpeg = make_ffmpeg("cat")
        source = tmp_path / "source.bin"
        source.write_bytes(b"\x00\x01media bytes\xff" * 100)
        target = tmp_path / "target.bin"

        with source.open("rb") as reader, target.open("wb") as writer:
            session = (
                Session(make_config(ffmpeg, None))
                .set_input_pipe(reader)
                .add_output_pipe(writer)
                .set_options(["-f", "matroska"])
                .skip_probe()
            )
            list(session.run())
            assert session.wait(5)

            assert reader.closed
            assert writer.closed

        assert session.error() is None
        assert target.read_bytes() == source.read_bytes()
        assert session.command[-4:] == ("pipe:", "-f", "matroska", "pipe:")


class TestLoggingContext:
    """Session id propagation into log records."""

    def test_records_carry_session_id(self, make_ffmpeg, make_config) -> None:
        """Records from the caller and the waiter thread share the session id."""
        records: list[logging.LogRecord] = []

        class _Collector(logging.Handler):
            def emit(self, record: logging.LogRecord) -> None:
                records.append(record)

        handler = _Collector(level=logging.DEBUG)
        handler.addFilter(SessionContextFilter())
        session_logger = logging.getLogger("transcoder.executor.session")
        session_logger.addHandler(handler)
        previous_level = session_logger.level
        session_logger.setLevel(logging.DEBUG)
        try:
            ffmpeg = make_ffmpeg("exit 0")
            session = (
                Session(make_config(ffmpeg, None))
                .set_input("in.mp4")
                .add_output("out.mp4")
                .skip_probe()
            )
            list(session.run())
            session.wait(5)
        finally:
            session_logger.removeHandler(handler)
            session_logger.setLevel(previous_level)

        messages = [r.getMessage() for r in records]
        assert any(m.startswith("Started ffmpeg") for m in messages)
        assert any("exited with status 0" in m for m in messages)
        assert {r.session_id for r in records} == {session.session_id}
        exited = next(r for r in records if "exited with status" in r.getMessage())
        assert exited.command == "ffmpeg"
        assert exited.returncode == 0
        started = next(r for r in records if r.getMessage().startswith("Started"))
        assert exited.pid == started.pid
        assert started.outputs == 1
