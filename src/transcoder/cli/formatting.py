"""Formatters for probe results and progress events.

Shared by the probe and run commands.
"""

import json
from typing import Any

from transcoder.introspector.models import Metadata, Stream
from transcoder.tools.ffmpeg_progress import Progress

_SECTION_TITLES = {
    "video": "Video",
    "audio": "Audio",
    "subtitle": "Subtitles",
}


def format_human(metadata: Metadata, source: str) -> str:
    """Format a probe result for human-readable output.

    Args:
        metadata: The probe result to format.
        source: Input path or URL shown in the header.

    Returns:
        Formatted string for terminal output.
    """
    lines: list[str] = [f"File: {source}"]

    fmt = metadata.format
    if fmt.format_name:
        container = fmt.format_long_name or fmt.format_name.split(",")[0]
        lines.append(f"Container: {container}")
    if fmt.duration:
        lines.append(f"Duration: {metadata.duration_seconds:.2f}s")
    if fmt.size:
        lines.append(f"Size: {fmt.size} bytes")
    if fmt.bit_rate:
        lines.append(f"Bit rate: {fmt.bit_rate} b/s")
    lines.append("")

    lines.append("Streams:")
    for codec_type, title in _SECTION_TITLES.items():
        streams = metadata.streams_of_type(codec_type)
        if streams:
            lines.append(f"  {title}:")
            lines.extend(f"    {format_stream_line(s)}" for s in streams)

    other = [s for s in metadata.streams if s.codec_type not in _SECTION_TITLES]
    if other:
        lines.append("  Other:")
        lines.extend(f"    {format_stream_line(s)}" for s in other)

    if not metadata.streams:
        lines.append("  (no streams found)")

    return "\n".join(lines)


def format_stream_line(stream: Stream) -> str:
    """Format a single stream for human output."""
    parts = [f"#{stream.index}", f"[{stream.codec_type or 'unknown'}]"]

    if stream.codec_name:
        parts.append(stream.codec_name)

    if stream.codec_type == "video":
        if stream.width and stream.height:
            parts.append(f"{stream.width}x{stream.height}")
        fps = frame_rate_to_fps(stream.avg_frame_rate or stream.r_frame_rate)
        if fps:
            parts.append(f"@ {fps}fps")

    if stream.disposition.default:
        parts.append("(default)")

    return " ".join(parts)


def frame_rate_to_fps(frame_rate: str) -> str | None:
    """Convert a frame rate string to decimal FPS.

    Args:
        frame_rate: Frame rate as "N/D" or decimal string.

    Returns:
        Formatted FPS string or None if invalid.
    """
    try:
        if "/" in frame_rate:
            num, denom = frame_rate.split("/")
            fps = int(num) / int(denom)
        else:
            fps = float(frame_rate)
    except (ValueError, ZeroDivisionError):
        return None

    if fps <= 0:
        return None
    if fps == int(fps):
        return str(int(fps))
    return f"{fps:.3f}".rstrip("0").rstrip(".")


def format_json(metadata: Metadata) -> str:
    """Format a probe result as JSON, using ffprobe's own key names."""
    data: dict[str, Any] = metadata.model_dump(
        mode="json", by_alias=True, exclude_none=True
    )
    return json.dumps(data, indent=2)


def format_progress(progress: Progress) -> str:
    """Format a progress event as a single status line."""
    parts = [f"{progress.progress:5.1f}%"]
    if progress.current_time:
        parts.append(f"time={progress.current_time}")
    if progress.frames_processed:
        parts.append(f"frame={progress.frames_processed}")
    if progress.current_bitrate:
        parts.append(f"bitrate={progress.current_bitrate}")
    if progress.speed:
        parts.append(f"speed={progress.speed}")
    return "  ".join(parts)
