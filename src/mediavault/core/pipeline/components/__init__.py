"""Scan pipeline stages."""

from mediavault.core.pipeline.components.ancestor_cache import AncestorCache, CachedAncestor
from mediavault.core.pipeline.components.buffered import BufferedStage
from mediavault.core.pipeline.components.change_detection import (
    ChangeDetectionStage,
    FileSnapshotSource,
    KnownPathCache,
)
from mediavault.core.pipeline.components.local_metadata import LocalMetadataStage
from mediavault.core.pipeline.components.resolution import ItemResolutionStage
from mediavault.core.pipeline.components.traversal import DirectoryTraversalStage, position_key

__all__ = [
    "AncestorCache",
    "BufferedStage",
    "CachedAncestor",
    "ChangeDetectionStage",
    "DirectoryTraversalStage",
    "FileSnapshotSource",
    "ItemResolutionStage",
    "KnownPathCache",
    "LocalMetadataStage",
    "position_key",
]
