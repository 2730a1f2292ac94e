"""Change detection stage.

Compares each observed entry with the snapshot the catalog held when the
scan started. Matching entries are flagged unchanged; every observed
path is removed from the snapshot, so what remains once the stream
drains is exactly the set of known paths that were not seen this run.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from typing import Protocol

from mediavault.core.models import FileSnapshot, path_key
from mediavault.core.pipeline.base import CancellationToken, PipelineStage
from mediavault.core.pipeline.context import ScanContext
from mediavault.core.pipeline.work_item import ScanWorkItem
from mediavault.shared.constants import PipelineStages, ScanDefaults

logger = logging.getLogger(__name__)


class FileSnapshotSource(Protocol):
    """Anything that can stream the known file snapshots of a library."""

    def iter_file_snapshots(self, library_id: int) -> Iterable[FileSnapshot]: ...


class KnownPathCache:
    """Paths known to the catalog at scan start, consumed as they are observed."""

    def __init__(self) -> None:
        self._snapshots: dict[str, FileSnapshot] = {}
        self._loaded = False

    @property
    def loaded(self) -> bool:
        return self._loaded

    def load(self, snapshots: Iterable[FileSnapshot]) -> int:
        """Replace the cache contents.

        Returns:
            Number of known paths
        """
        self._snapshots = {path_key(snapshot.path): snapshot for snapshot in snapshots}
        self._loaded = True
        return len(self._snapshots)

    def pop(self, path: str) -> FileSnapshot | None:
        return self._snapshots.pop(path_key(path), None)

    def remaining(self) -> list[str]:
        """Known paths not observed so far."""
        return [snapshot.path for snapshot in self._snapshots.values()]

    def clear(self) -> None:
        self._snapshots.clear()
        self._loaded = False

    def __len__(self) -> int:
        return len(self._snapshots)


class ChangeDetectionStage(PipelineStage[ScanWorkItem, ScanWorkItem]):
    """Flag entries whose size and modification time match the catalog.

    Args:
        source: Catalog access used to load the snapshot once per scan
        mtime_tolerance: Allowed modification time difference in seconds
    """

    name = PipelineStages.CHANGE_DETECTION

    def __init__(
        self,
        source: FileSnapshotSource,
        mtime_tolerance: float = ScanDefaults.MTIME_TOLERANCE,
    ) -> None:
        self.source = source
        self.mtime_tolerance = mtime_tolerance
        self.known_paths = KnownPathCache()

    def run(
        self,
        items: Iterator[ScanWorkItem],
        context: ScanContext,
        cancel: CancellationToken,
    ) -> Iterator[ScanWorkItem]:
        if not self.known_paths.loaded:
            count = self.known_paths.load(self.source.iter_file_snapshots(context.library.id))
            logger.debug("Loaded %d known paths for library %s", count, context.library.id)

        for item in items:
            cancel.raise_if_cancelled(self.name)
            snapshot = self.known_paths.pop(item.path)
            if snapshot is not None:
                context.record_seen(snapshot.path)
                item.is_unchanged = self._matches(item, snapshot)
            yield item

    def _matches(self, item: ScanWorkItem, snapshot: FileSnapshot) -> bool:
        if snapshot.mtime is None:
            return False
        if abs(item.file.mtime - snapshot.mtime) > self.mtime_tolerance:
            return False
        if item.is_directory:
            return True
        return snapshot.size == item.file.size

    def remaining_paths(self) -> list[str]:
        """Known paths never observed; valid once the stream has drained."""
        return self.known_paths.remaining()

    def release(self) -> None:
        self.known_paths.clear()
