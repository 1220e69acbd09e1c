"""MetadataProbe interface for media metadata extraction."""

from typing import Protocol, runtime_checkable

from transcoder.introspector.models import Metadata
from transcoder.sources import InputSource


@runtime_checkable
class MetadataProbe(Protocol):
    """Protocol for metadata probe implementations.

    A probe runs an external tool against an input (a file path or an
    attached stream) and returns the parsed Metadata.
    """

    def probe(self, source: InputSource) -> Metadata:
        """Probe an input.

        Args:
            source: The input descriptor to probe.

        Returns:
            Parsed Metadata.

        Raises:
            ProbeExecutionError: If the tool cannot run or fails.
            ProbeParseError: If the tool output cannot be parsed.
        """
        ...
