"""Introspector module for transcoder.

This module provides media metadata probing:

- MetadataProbe: Protocol defining the probe interface
- FFprobeProbe: Production implementation using ffprobe
- Metadata, Format, Stream: Pydantic models of ffprobe's JSON output
"""

from transcoder.introspector.ffprobe import FFprobeProbe
from transcoder.introspector.interface import MetadataProbe
from transcoder.introspector.models import (
    Disposition,
    Format,
    Metadata,
    ProbeErrorInfo,
    Stream,
    Tags,
)

__all__ = [
    "Disposition",
    "FFprobeProbe",
    "Format",
    "Metadata",
    "MetadataProbe",
    "ProbeErrorInfo",
    "Stream",
    "Tags",
]
