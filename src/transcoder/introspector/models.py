"""Pydantic models mirroring ffprobe's JSON output.

Only the ``format`` and ``streams`` sections requested by the probe command
are modeled. Unknown keys are ignored so newer ffprobe releases keep parsing;
known keys must have the type ffprobe documents for them.
"""

from pydantic import BaseModel, ConfigDict, Field

from transcoder.core.time_utils import parse_decimal_seconds


class _ProbeModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)


class Tags(_ProbeModel):
    """Container-level tags."""

    encoder: str = Field(default="", alias="ENCODER")


class Disposition(_ProbeModel):
    """Stream disposition flags (0 or 1)."""

    default: int = 0
    dub: int = 0
    original: int = 0
    comment: int = 0
    lyrics: int = 0
    karaoke: int = 0
    forced: int = 0
    hearing_impaired: int = 0
    visual_impaired: int = 0
    clean_effects: int = 0


class Format(_ProbeModel):
    """The ``format`` section: container-wide information."""

    filename: str = ""
    nb_streams: int = 0
    nb_programs: int = 0
    format_name: str = ""
    format_long_name: str = ""
    duration: str = ""
    size: str = ""
    bit_rate: str = ""
    probe_score: int = 0
    tags: Tags = Field(default_factory=Tags)


class Stream(_ProbeModel):
    """One entry of the ``streams`` section."""

    index: int = 0
    id: str = ""
    codec_name: str = ""
    codec_long_name: str = ""
    profile: str = ""
    codec_type: str = ""
    codec_time_base: str = ""
    codec_tag_string: str = ""
    codec_tag: str = ""
    width: int = 0
    height: int = 0
    coded_width: int = 0
    coded_height: int = 0
    has_b_frames: int = 0
    sample_aspect_ratio: str = ""
    display_aspect_ratio: str = ""
    pix_fmt: str = ""
    level: int = 0
    chroma_location: str = ""
    refs: int = 0
    quarter_sample: str = ""
    divx_packed: str = ""
    r_frame_rate: str = ""
    avg_frame_rate: str = ""
    time_base: str = ""
    duration_ts: int = 0
    duration: str = ""
    disposition: Disposition = Field(default_factory=Disposition)
    bit_rate: str = ""


class ProbeErrorInfo(_ProbeModel):
    """The ``error`` section emitted by ``-show_error``."""

    code: int = 0
    string: str = ""


class Metadata(_ProbeModel):
    """Immutable snapshot of an ffprobe result."""

    format: Format = Field(default_factory=Format)
    streams: tuple[Stream, ...] = ()
    error: ProbeErrorInfo | None = None

    @property
    def duration(self) -> str:
        """Container duration as ffprobe prints it (decimal seconds)."""
        return self.format.duration

    @property
    def size(self) -> str:
        """Total size in bytes as ffprobe prints it."""
        return self.format.size

    @property
    def duration_seconds(self) -> float:
        """Container duration in seconds, 0.0 if unknown."""
        return parse_decimal_seconds(self.format.duration)

    def streams_of_type(self, codec_type: str) -> list[Stream]:
        """Return the streams whose codec_type matches (e.g. "video")."""
        return [s for s in self.streams if s.codec_type == codec_type]
