"""Tests for the doctor command."""

import json
from unittest.mock import patch

from transcoder.cli import main
from transcoder.cli.exit_codes import ExitCode


class TestDoctorCommand:
    """Tests for transcoder doctor."""

    def _install_tools(self, fake_tool, monkeypatch) -> None:
        ffmpeg = fake_tool("ffmpeg", 'echo "ffmpeg version 6.1.1 Copyright"')
        ffprobe = fake_tool("ffprobe", 'echo "ffprobe version 6.1.1 Copyright"')
        monkeypatch.setenv("TRANSCODER_FFMPEG_PATH", str(ffmpeg))
        monkeypatch.setenv("TRANSCODER_FFPROBE_PATH", str(ffprobe))

    def test_all_available(self, runner, fake_tool, monkeypatch) -> None:
        """Both tools found exits with SUCCESS."""
        self._install_tools(fake_tool, monkeypatch)

        result = runner.invoke(main, ["doctor"])

        assert result.exit_code == ExitCode.SUCCESS, result.output
        assert "✓ ffmpeg: 6.1.1" in result.output
        assert "✓ ffprobe: 6.1.1" in result.output
        assert "All tools available" in result.output

    def test_missing_tool(self, runner) -> None:
        """A missing tool exits with TOOL_NOT_AVAILABLE."""
        with patch("transcoder.tools.detection.shutil.which", return_value=None):
            result = runner.invoke(main, ["doctor"])

        assert result.exit_code == ExitCode.TOOL_NOT_AVAILABLE
        assert "✗ ffmpeg: not found" in result.output

    def test_json_output(self, runner, fake_tool, monkeypatch) -> None:
        """--json prints one entry per tool."""
        self._install_tools(fake_tool, monkeypatch)

        result = runner.invoke(main, ["doctor", "--json"])

        data = json.loads(result.output)
        assert [entry["name"] for entry in data] == ["ffmpeg", "ffprobe"]
        assert all(entry["status"] == "available" for entry in data)
