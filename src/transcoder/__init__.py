"""Transcoder: run ffmpeg from Python with typed options and live progress.

Typical use:

    from transcoder import Flags, Options, Session, auto_config

    config = auto_config(Flags(progress=True))
    session = (
        Session(config)
        .set_input("in.mkv")
        .add_output("out.mp4")
        .set_options(Options(video_codec="libx264", overwrite=True))
    )
    for progress in session.run():
        print(f"{progress.progress:.1f}%")
    if (err := session.error()) is not None:
        raise err
"""

from transcoder.config import Flags, TranscoderConfig, auto_config, get_config
from transcoder.exceptions import (
    ConfigurationError,
    ProbeError,
    ProbeExecutionError,
    ProbeParseError,
    ProcessRuntimeError,
    ProcessSpawnError,
    SessionStateError,
    TranscoderError,
)
from transcoder.executor import ProgressFeed, Session, SessionState
from transcoder.introspector import FFprobeProbe, Metadata, MetadataProbe
from transcoder.options import ArgumentProvider, Options
from transcoder.sources import PathSource, PathTarget, StreamSource, StreamTarget
from transcoder.tools.ffmpeg_progress import Progress, ProgressParser

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Session
    "Session",
    "SessionState",
    "ProgressFeed",
    "Progress",
    "ProgressParser",
    # Options and descriptors
    "ArgumentProvider",
    "Options",
    "PathSource",
    "PathTarget",
    "StreamSource",
    "StreamTarget",
    # Metadata
    "FFprobeProbe",
    "Metadata",
    "MetadataProbe",
    # Configuration
    "Flags",
    "TranscoderConfig",
    "auto_config",
    "get_config",
    # Errors
    "ConfigurationError",
    "ProbeError",
    "ProbeExecutionError",
    "ProbeParseError",
    "ProcessRuntimeError",
    "ProcessSpawnError",
    "SessionStateError",
    "TranscoderError",
]
