"""Library scan pipeline.

Stages are lazy, cancellable iterator transformations composed with
``ScanPipeline``::

    ScanPipeline.from_source(locations)
        .then(DirectoryTraversalStage(...))
        .then(BufferedStage(...))
        .then(ChangeDetectionStage(...))
        .then(ItemResolutionStage(...))
        .then(LocalMetadataStage(...))
"""

from mediavault.core.pipeline.base import CancellationToken, PipelineStage, ScanPipeline
from mediavault.core.pipeline.checkpoint import (
    ScanCheckpoint,
    TraversalCursor,
    decode_traversal_cursor,
)
from mediavault.core.pipeline.context import ScanContext
from mediavault.core.pipeline.factory import ScanPipelineFactory, ScanStages
from mediavault.core.pipeline.work_item import ScanWorkItem

__all__ = [
    "CancellationToken",
    "PipelineStage",
    "ScanCheckpoint",
    "ScanContext",
    "ScanPipeline",
    "ScanPipelineFactory",
    "ScanStages",
    "ScanWorkItem",
    "TraversalCursor",
    "decode_traversal_cursor",
]
