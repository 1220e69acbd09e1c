"""Unit tests for executor/command.py."""

import io

import pytest

from transcoder.exceptions import ConfigurationError
from transcoder.executor.command import (
    build_arguments,
    build_command,
    validate_session,
)
from transcoder.sources import PathSource, PathTarget, StreamSource, StreamTarget

SOURCE = PathSource("in.mkv")


class TestValidateSession:
    """Tests for validate_session function."""

    def test_valid_single_output(self) -> None:
        """One output without options is valid."""
        validate_session("/usr/bin/ffmpeg", SOURCE, [PathTarget("out.mp4")], [])

    def test_missing_ffmpeg_path(self) -> None:
        """An empty ffmpeg path is rejected first."""
        with pytest.raises(ConfigurationError, match="ffmpeg binary path not found"):
            validate_session(None, SOURCE, [PathTarget("out.mp4")], [])

    def test_missing_input(self) -> None:
        """A session needs an input."""
        with pytest.raises(ConfigurationError, match="missing input option"):
            validate_session("ffmpeg", None, [PathTarget("out.mp4")], [])

    def test_missing_output(self) -> None:
        """A session needs at least one output."""
        with pytest.raises(ConfigurationError, match="missing output option"):
            validate_session("ffmpeg", SOURCE, [], [("-y",)])

    def test_more_outputs_than_groups(self) -> None:
        """Several outputs need one option group each."""
        outputs = [PathTarget("a.mp4"), PathTarget("b.mp4")]
        with pytest.raises(ConfigurationError, match="does not match"):
            validate_session("ffmpeg", SOURCE, outputs, [("-c", "copy")])

    def test_more_groups_than_outputs_allowed(self) -> None:
        """Extra option groups are allowed."""
        validate_session(
            "ffmpeg", SOURCE, [PathTarget("a.mp4")], [("-c", "copy"), ("-y",)]
        )

    def test_empty_output_path(self) -> None:
        """Empty output paths are rejected with their index."""
        outputs = [PathTarget("a.mp4"), PathTarget("")]
        with pytest.raises(ConfigurationError, match="output at index 1"):
            validate_session("ffmpeg", SOURCE, outputs, [(), ()])

    def test_single_stream_output(self) -> None:
        """Only one output can use stdout."""
        outputs = [StreamTarget(io.BytesIO()), StreamTarget(io.BytesIO())]
        with pytest.raises(ConfigurationError, match="only one output"):
            validate_session("ffmpeg", SOURCE, outputs, [(), ()])


class TestBuildArguments:
    """Tests for build_arguments function."""

    def test_single_output_without_options(self) -> None:
        """A bare output follows the input."""
        args = build_arguments(SOURCE, [PathTarget("out.mp4")])
        assert args == ["-i", "in.mkv", "out.mp4"]

    def test_leading_options_before_input(self) -> None:
        """Leading options come before -i."""
        args = build_arguments(
            SOURCE, [PathTarget("out.mp4")], leading_options=["-y", "-re"]
        )
        assert args == ["-y", "-re", "-i", "in.mkv", "out.mp4"]

    def test_groups_interleaved_with_outputs(self) -> None:
        """Each group precedes its output."""
        args = build_arguments(
            SOURCE,
            [PathTarget("a.mp4"), PathTarget("b.webm")],
            option_groups=[("-c:v", "libx264"), ("-c:v", "libvpx")],
        )
        assert args == [
            "-i",
            "in.mkv",
            "-c:v",
            "libx264",
            "a.mp4",
            "-c:v",
            "libvpx",
            "b.webm",
        ]

    def test_excess_groups_go_before_last_output(self) -> None:
        """Remaining groups are all placed before the final output."""
        args = build_arguments(
            SOURCE,
            [PathTarget("a.mp4"), PathTarget("b.mp4")],
            option_groups=[("-an",), ("-vn",), ("-sn",)],
        )
        assert args == ["-i", "in.mkv", "-an", "a.mp4", "-vn", "-sn", "b.mp4"]

    def test_single_output_with_several_groups(self) -> None:
        """With one output every group precedes it in order."""
        args = build_arguments(
            SOURCE, [PathTarget("out.mp4")], option_groups=[("-an",), ("-y",)]
        )
        assert args == ["-i", "in.mkv", "-an", "-y", "out.mp4"]

    def test_streams_use_placeholder(self) -> None:
        """Stream input and output render as pipe:."""
        args = build_arguments(
            StreamSource(io.BytesIO()),
            [StreamTarget(io.BytesIO())],
            option_groups=[("-f", "matroska")],
        )
        assert args == ["-i", "pipe:", "-f", "matroska", "pipe:"]


def test_build_command_prepends_executable() -> None:
    """build_command adds the ffmpeg path as the first token."""
    cmd = build_command("/opt/ffmpeg", SOURCE, [PathTarget("out.mp4")])
    assert cmd == ["/opt/ffmpeg", "-i", "in.mkv", "out.mp4"]
