"""Unit tests for options rendering."""

import pytest

from transcoder.options import (
    ArgumentProvider,
    Options,
    as_argument_group,
    render_flag,
)


class TestRenderFlag:
    """Tests for render_flag function."""

    def test_none_renders_nothing(self) -> None:
        """None values produce no tokens."""
        assert render_flag("-c:v", None) == []

    def test_true_renders_bare_flag(self) -> None:
        """True renders just the flag."""
        assert render_flag("-y", True) == ["-y"]

    def test_false_renders_bare_flag(self) -> None:
        """A set False is still one token; only None is absent."""
        assert render_flag("-y", False) == ["-y"]

    def test_string_value(self) -> None:
        """Strings render as flag followed by value."""
        assert render_flag("-preset", "fast") == ["-preset", "fast"]

    def test_int_value(self) -> None:
        """Integers are stringified."""
        assert render_flag("-crf", 23) == ["-crf", "23"]

    def test_zero_is_rendered(self) -> None:
        """Zero is a value, not an absent option."""
        assert render_flag("-threads", 0) == ["-threads", "0"]

    def test_list_repeats_flag(self) -> None:
        """Each list item gets its own flag."""
        assert render_flag("-protocol_whitelist", ["file", "http"]) == [
            "-protocol_whitelist",
            "file",
            "-protocol_whitelist",
            "http",
        ]

    def test_mapping_renders_key_value_pairs(self) -> None:
        """Mappings render as key:value per entry."""
        assert render_flag("-metadata", {"title": "Film", "year": "2020"}) == [
            "-metadata",
            "title:Film",
            "-metadata",
            "year:2020",
        ]


class TestOptionsToArgs:
    """Tests for Options.to_args method."""

    def test_empty_options_render_nothing(self) -> None:
        """Default Options have no tokens."""
        assert Options().to_args() == []

    def test_renders_in_declaration_order(self) -> None:
        """Tokens follow field declaration order, not keyword order."""
        opts = Options(overwrite=True, crf=23, video_codec="libx264")
        assert opts.to_args() == ["-c:v", "libx264", "-crf", "23", "-y"]

    def test_every_set_bool_contributes_one_token(self) -> None:
        """True and False booleans each render their bare flag once."""
        opts = Options(skip_audio=False, skip_video=True, overwrite=False)
        assert opts.to_args() == ["-vn", "-an", "-y"]

    def test_stream_ids_mapping(self) -> None:
        """stream_ids renders as repeated -streamid key:value."""
        opts = Options(stream_ids={"0": "33", "1": "36"})
        assert opts.to_args() == ["-streamid", "0:33", "-streamid", "1:36"]

    def test_hls_options(self) -> None:
        """HLS options use their ffmpeg flag names."""
        opts = Options(
            output_format="hls",
            hls_segment_duration=4,
            hls_playlist_type="vod",
        )
        assert opts.to_args() == [
            "-f",
            "hls",
            "-hls_playlist_type",
            "vod",
            "-hls_time",
            "4",
        ]

    def test_extra_args_appended_after_fields(self) -> None:
        """extra_args come after typed fields, in insertion order."""
        opts = Options(
            video_codec="copy",
            extra_args={"-map": "0:v", "-sn": None, "-dn": True, "-skip": False},
        )
        assert opts.to_args() == ["-c:v", "copy", "-map", "0:v", "-sn", "-dn"]

    def test_is_argument_provider(self) -> None:
        """Options satisfies the ArgumentProvider protocol."""
        assert isinstance(Options(), ArgumentProvider)


class TestAsArgumentGroup:
    """Tests for as_argument_group function."""

    def test_from_options(self) -> None:
        """Options are rendered into a tuple."""
        assert as_argument_group(Options(crf=20)) == ("-crf", "20")

    def test_from_list(self) -> None:
        """Plain token lists are accepted as-is."""
        assert as_argument_group(["-c:v", "copy"]) == ("-c:v", "copy")

    def test_from_custom_provider(self) -> None:
        """Any object with to_args() is accepted."""

        class Preset:
            def to_args(self) -> list[str]:
                return ["-preset", "slow"]

        assert as_argument_group(Preset()) == ("-preset", "slow")

    def test_rejects_bare_string(self) -> None:
        """A single string would be split into characters, so it is rejected."""
        with pytest.raises(TypeError, match="single string"):
            as_argument_group("-c:v copy")

    def test_rejects_non_string_tokens(self) -> None:
        """Tokens must be strings."""
        with pytest.raises(TypeError, match="must be strings"):
            as_argument_group(["-crf", 23])
