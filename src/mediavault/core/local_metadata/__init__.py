"""Local metadata extractors for sidecar files and embedded tags."""

from mediavault.core.local_metadata.artwork import LocalArtworkExtractor
from mediavault.core.local_metadata.base import (
    LocalMetadataExtractor,
    LocalMetadataResult,
    apply_local_metadata,
)
from mediavault.core.local_metadata.embedded import EmbeddedTagExtractor
from mediavault.core.local_metadata.nfo import NfoSidecarExtractor


def default_extractors() -> list[LocalMetadataExtractor]:
    """Extractors run by a standard scan, in order."""
    return [NfoSidecarExtractor(), EmbeddedTagExtractor(), LocalArtworkExtractor()]


__all__ = [
    "EmbeddedTagExtractor",
    "LocalArtworkExtractor",
    "LocalMetadataExtractor",
    "LocalMetadataResult",
    "NfoSidecarExtractor",
    "apply_local_metadata",
    "default_extractors",
]
