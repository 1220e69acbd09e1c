"""FFmpeg option declarations and their rendering to argument tokens.

Options is a flat dataclass: every field is optional, carries its ffmpeg
flag in field metadata and renders in declaration order. Some flags are
position-sensitive relative to ``-i`` and the output path, so the order must
stay deterministic.

Rendering rules:
- None: nothing
- bool: the bare flag, for False as well as True (only None is absent)
- str/int/float: flag followed by the value
- list/tuple: flag and value repeated for each item
- dict: flag and ``key:value`` repeated for each entry

No validation of flag semantics is performed.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field, fields
from typing import Any, Protocol, runtime_checkable

ArgumentGroup = tuple[str, ...]
"""An immutable, ordered slice of command-line tokens."""


@runtime_checkable
class ArgumentProvider(Protocol):
    """Anything that can render itself as ffmpeg argument tokens."""

    def to_args(self) -> list[str]:
        """Return the ordered argument tokens."""
        ...


def _flag(flag: str) -> Any:
    return field(default=None, metadata={"flag": flag})


@dataclass
class Options:
    """Allowed ffmpeg arguments.

    Example:
        >>> Options(video_codec="libx264", crf=23, overwrite=True).to_args()
        ['-c:v', 'libx264', '-crf', '23', '-y']
    """

    aspect: str | None = _flag("-aspect")
    resolution: str | None = _flag("-s")
    video_bit_rate: str | None = _flag("-b:v")
    video_bit_rate_tolerance: int | None = _flag("-bt")
    video_max_bit_rate: int | None = _flag("-maxrate")
    video_min_bitrate: int | None = _flag("-minrate")
    video_codec: str | None = _flag("-c:v")
    vframes: int | None = _flag("-vframes")
    frame_rate: int | None = _flag("-r")
    audio_rate: int | None = _flag("-ar")
    keyframe_interval: int | None = _flag("-g")
    audio_codec: str | None = _flag("-c:a")
    audio_bitrate: str | None = _flag("-ab")
    audio_channels: int | None = _flag("-ac")
    audio_variable_bitrate: bool | None = _flag("-q:a")
    buffer_size: int | None = _flag("-bufsize")
    threadset: bool | None = _flag("-threads")
    threads: int | None = _flag("-threads")
    preset: str | None = _flag("-preset")
    tune: str | None = _flag("-tune")
    audio_profile: str | None = _flag("-profile:a")
    video_profile: str | None = _flag("-profile:v")
    target: str | None = _flag("-target")
    duration: str | None = _flag("-t")
    qscale: int | None = _flag("-qscale")
    crf: int | None = _flag("-crf")
    strict: int | None = _flag("-strict")
    mux_delay: str | None = _flag("-muxdelay")
    seek_time: str | None = _flag("-ss")
    seek_using_timestamp: bool | None = _flag("-seek_timestamp")
    mov_flags: str | None = _flag("-movflags")
    hide_banner: bool | None = _flag("-hide_banner")
    output_format: str | None = _flag("-f")
    copy_ts: bool | None = _flag("-copyts")
    native_framerate_input: bool | None = _flag("-re")
    input_initial_offset: str | None = _flag("-itsoffset")
    rtmp_live: str | None = _flag("-rtmp_live")
    hls_playlist_type: str | None = _flag("-hls_playlist_type")
    hls_list_size: int | None = _flag("-hls_list_size")
    hls_segment_duration: int | None = _flag("-hls_time")
    hls_master_playlist_name: str | None = _flag("-master_pl_name")
    hls_segment_filename: str | None = _flag("-hls_segment_filename")
    http_method: str | None = _flag("-method")
    http_keep_alive: bool | None = _flag("-multiple_requests")
    hwaccel: str | None = _flag("-hwaccel")
    stream_ids: dict[str, str] | None = _flag("-streamid")
    video_filter: str | None = _flag("-vf")
    audio_filter: str | None = _flag("-af")
    skip_video: bool | None = _flag("-vn")
    skip_audio: bool | None = _flag("-an")
    compression_level: int | None = _flag("-compression_level")
    map_metadata: str | None = _flag("-map_metadata")
    metadata: dict[str, str] | None = _flag("-metadata")
    encryption_key: str | None = _flag("-hls_key_info_file")
    bframe: int | None = _flag("-bf")
    pix_fmt: str | None = _flag("-pix_fmt")
    white_list_protocols: list[str] | None = _flag("-protocol_whitelist")
    overwrite: bool | None = _flag("-y")

    # Free-form flags not covered above: {"-map": "0:v", "-sn": None}
    extra_args: dict[str, Any] = field(default_factory=dict)

    def to_args(self) -> list[str]:
        """Render the options as an ordered list of argument tokens."""
        tokens: list[str] = []
        for f in fields(self):
            flag = f.metadata.get("flag")
            if flag is None:
                continue
            tokens.extend(render_flag(flag, getattr(self, f.name)))

        for flag, value in self.extra_args.items():
            if value is None or value is True:
                tokens.append(flag)
            elif value is False:
                continue
            else:
                tokens.extend(render_flag(flag, value))
        return tokens


def render_flag(flag: str, value: Any) -> list[str]:
    """Render a single flag/value pair following the Options rules.

    Args:
        flag: The ffmpeg flag, e.g. ``-c:v``.
        value: Field value.

    Returns:
        Zero or more tokens.
    """
    if value is None:
        return []
    if isinstance(value, bool):
        return [flag]
    if isinstance(value, Mapping):
        tokens: list[str] = []
        for key, item in value.items():
            tokens.extend((flag, f"{key}:{item}"))
        return tokens
    if isinstance(value, (list, tuple)):
        tokens = []
        for item in value:
            tokens.extend((flag, str(item)))
        return tokens
    return [flag, str(value)]


def as_argument_group(
    source: ArgumentProvider | Sequence[str] | Iterable[str],
) -> ArgumentGroup:
    """Normalize an option source into an ArgumentGroup.

    Args:
        source: An Options instance, any object exposing ``to_args()``,
            or a plain sequence of tokens such as ``["-c:v", "copy"]``.

    Returns:
        Immutable tuple of tokens.

    Raises:
        TypeError: If source is a bare string or yields non-string tokens.
    """
    if isinstance(source, ArgumentProvider):
        tokens = source.to_args()
    elif isinstance(source, (str, bytes)):
        raise TypeError(
            "Option groups must be a sequence of tokens, not a single string"
        )
    else:
        tokens = list(source)

    for token in tokens:
        if not isinstance(token, str):
            raise TypeError(f"Argument tokens must be strings, got {token!r}")
    return tuple(tokens)
