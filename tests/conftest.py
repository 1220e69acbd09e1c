"""Shared test fixtures for transcoder."""

import json
import logging
import os
import stat
from collections.abc import Callable
from pathlib import Path

import pytest

from transcoder.config import Flags, ToolPathsConfig, TranscoderConfig
from transcoder.config.loader import clear_config_cache
from transcoder.logging.config import PROGRESS_LOGGER, SESSION_LOGGER

FakeTool = Callable[[str, str], Path]


@pytest.fixture(autouse=True)
def isolate_config(
    tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch
):
    """Keep the user's config file and TRANSCODER_* variables out of tests."""
    for var in list(os.environ):
        if var.startswith("TRANSCODER_"):
            monkeypatch.delenv(var)
    config_dir = tmp_path_factory.mktemp("config")
    monkeypatch.setenv("TRANSCODER_CONFIG_PATH", str(config_dir / "config.toml"))
    clear_config_cache()
    yield
    clear_config_cache()


@pytest.fixture(autouse=True)
def reset_package_loggers():
    """Undo logger levels lowered by apply_flags()."""
    names = (PROGRESS_LOGGER, SESSION_LOGGER)
    saved = {name: logging.getLogger(name).level for name in names}
    for name in names:
        logging.getLogger(name).setLevel(logging.NOTSET)
    yield
    for name, level in saved.items():
        logging.getLogger(name).setLevel(level)


@pytest.fixture
def probe_data() -> dict:
    """ffprobe JSON output for a 100 second H.264/AAC file."""
    return {
        "streams": [
            {
                "index": 0,
                "codec_name": "h264",
                "codec_long_name": "H.264 / AVC / MPEG-4 AVC / MPEG-4 part 10",
                "profile": "High",
                "codec_type": "video",
                "codec_tag_string": "avc1",
                "codec_tag": "0x31637661",
                "width": 1920,
                "height": 1080,
                "coded_width": 1920,
                "coded_height": 1080,
                "has_b_frames": 2,
                "pix_fmt": "yuv420p",
                "level": 40,
                "r_frame_rate": "24000/1001",
                "avg_frame_rate": "24000/1001",
                "time_base": "1/24000",
                "duration_ts": 2400000,
                "duration": "100.000000",
                "bit_rate": "4500000",
                "disposition": {"default": 1, "forced": 0},
                "tags": {"language": "und", "handler_name": "VideoHandler"},
            },
            {
                "index": 1,
                "codec_name": "aac",
                "codec_type": "audio",
                "sample_rate": "48000",
                "channels": 2,
                "channel_layout": "stereo",
                "duration": "100.000000",
                "bit_rate": "128000",
                "disposition": {"default": 1},
            },
        ],
        "format": {
            "filename": "input.mp4",
            "nb_streams": 2,
            "nb_programs": 0,
            "format_name": "mov,mp4,m4a,3gp,3g2,mj2",
            "format_long_name": "QuickTime / MOV",
            "start_time": "0.000000",
            "duration": "100.000000",
            "size": "57862345",
            "bit_rate": "4628987",
            "probe_score": 100,
            "tags": {"ENCODER": "Lavf60.16.100", "major_brand": "isom"},
        },
    }


@pytest.fixture
def probe_json(probe_data: dict) -> str:
    """probe_data serialized the way ffprobe prints it."""
    return json.dumps(probe_data, indent=4)


@pytest.fixture
def fake_tool(tmp_path: Path) -> FakeTool:
    """Factory writing an executable shell script standing in for a tool.

    Usage:
        ffmpeg = fake_tool("ffmpeg", "echo hello >&2\\nexit 0")
    """
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir(exist_ok=True)

    def _make(name: str, body: str) -> Path:
        path = bin_dir / name
        path.write_text(f"#!/bin/sh\n{body}\n")
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return path

    return _make


@pytest.fixture
def fake_ffprobe(fake_tool: FakeTool, tmp_path: Path, probe_json: str) -> Path:
    """Fake ffprobe printing probe_json and exiting 0."""
    output = tmp_path / "ffprobe-output.json"
    output.write_text(probe_json)
    return fake_tool("ffprobe", f'cat "{output}"')


@pytest.fixture
def make_config() -> Callable[..., TranscoderConfig]:
    """Factory for TranscoderConfig with explicit tool paths and flags."""

    def _make(
        ffmpeg: Path | None = None,
        ffprobe: Path | None = None,
        **flags: bool,
    ) -> TranscoderConfig:
        return TranscoderConfig(
            tools=ToolPathsConfig(ffmpeg=ffmpeg, ffprobe=ffprobe),
            flags=Flags(**flags),
        )

    return _make
