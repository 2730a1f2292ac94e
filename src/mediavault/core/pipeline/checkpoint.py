"""Version-tagged scan checkpoints.

A checkpoint is the ``(stage, cursor, version)`` triple stored on the scan
record. Each stage that can resume owns a cursor model and a format
version. A checkpoint whose stage or version is unknown, or whose cursor
does not parse, is treated as absent so an old cursor is never misread.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, ValidationError

from mediavault.core.models import LibraryScan
from mediavault.shared.constants import CheckpointConfig, PipelineStages

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScanCheckpoint:
    """Checkpoint triple reconstructed from a scan record."""

    stage: str
    cursor: str
    version: int

    @classmethod
    def from_scan(cls, scan: LibraryScan) -> ScanCheckpoint | None:
        """Rebuild the checkpoint stored on ``scan``, if complete."""
        if not scan.current_stage or not scan.resume_cursor or scan.checkpoint_version is None:
            return None
        return cls(scan.current_stage, scan.resume_cursor, scan.checkpoint_version)


class TraversalCursor(BaseModel):
    """Resume position of the directory traversal stage.

    Everything at or before ``path`` (in traversal order) inside location
    ``location_id``, and every location with a smaller id, has already
    been processed and flushed.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    location_id: int
    path: str

    def to_checkpoint(self) -> ScanCheckpoint:
        return ScanCheckpoint(
            stage=PipelineStages.DIRECTORY_TRAVERSAL,
            cursor=self.model_dump_json(),
            version=CheckpointConfig.TRAVERSAL_VERSION,
        )


# stage name -> (cursor model, supported version)
CURSOR_FORMATS: dict[str, tuple[type[BaseModel], int]] = {
    PipelineStages.DIRECTORY_TRAVERSAL: (TraversalCursor, CheckpointConfig.TRAVERSAL_VERSION),
}


def decode_cursor(checkpoint: ScanCheckpoint | None, stage: str) -> BaseModel | None:
    """Decode the cursor of ``checkpoint`` for ``stage``.

    Returns:
        The cursor model, or None when there is no usable checkpoint
    """
    if checkpoint is None or checkpoint.stage != stage:
        return None

    known = CURSOR_FORMATS.get(stage)
    if known is None:
        logger.warning("No cursor format registered for stage '%s'; ignoring checkpoint", stage)
        return None

    model, version = known
    if checkpoint.version != version:
        logger.warning(
            "Checkpoint version %s for stage '%s' is not supported (expected %s); starting over",
            checkpoint.version,
            stage,
            version,
        )
        return None

    try:
        return model.model_validate_json(checkpoint.cursor)
    except ValidationError as e:
        logger.warning("Unparsable %s cursor ignored: %s", stage, e.errors()[:1])
        return None


def decode_traversal_cursor(checkpoint: ScanCheckpoint | None) -> TraversalCursor | None:
    cursor = decode_cursor(checkpoint, PipelineStages.DIRECTORY_TRAVERSAL)
    return cursor if isinstance(cursor, TraversalCursor) else None
