"""Shared state of one scan execution."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from typing import Any

from mediavault.core.models import LibraryScan, LibrarySection, is_under
from mediavault.core.pipeline.checkpoint import ScanCheckpoint

logger = logging.getLogger(__name__)


class ScanContext:
    """Context handed to every stage of a scan pipeline.

    Carries the library, the scan record and the checkpoint being resumed
    from, and collects what stages observe: paths confirmed present on
    disk and path prefixes whose enumeration failed. Collections are lock
    protected because the traversal may run on a prefetch thread.
    """

    def __init__(
        self,
        library: LibrarySection,
        scan: LibraryScan,
        checkpoint: ScanCheckpoint | None = None,
        progress_callback: Callable[[dict[str, Any]], None] | None = None,
    ) -> None:
        self.library = library
        self.scan = scan
        self.checkpoint = checkpoint
        self._progress_callback = progress_callback
        self._lock = threading.Lock()
        self._seen_buffer: list[str] = []
        self._incomplete: set[str] = set()
        self._incomplete_buffer: list[str] = []

    @property
    def is_resuming(self) -> bool:
        return self.checkpoint is not None

    def record_seen(self, path: str) -> None:
        with self._lock:
            self._seen_buffer.append(path)

    def record_seen_many(self, paths: Iterable[str]) -> None:
        with self._lock:
            self._seen_buffer.extend(paths)

    def drain_seen_paths(self) -> list[str]:
        """Return and clear the paths recorded since the last drain."""
        with self._lock:
            drained, self._seen_buffer = self._seen_buffer, []
        return drained

    def mark_incomplete(self, path: str) -> None:
        """Record that ``path`` could not be fully enumerated."""
        with self._lock:
            if path not in self._incomplete:
                self._incomplete.add(path)
                self._incomplete_buffer.append(path)
        logger.debug("Marked %s as incompletely enumerated", path)

    def add_incomplete(self, paths: Iterable[str]) -> None:
        """Restore incomplete prefixes persisted by an interrupted run."""
        with self._lock:
            self._incomplete.update(paths)

    def drain_incomplete_paths(self) -> list[str]:
        """Return and clear incomplete prefixes not yet persisted."""
        with self._lock:
            drained, self._incomplete_buffer = self._incomplete_buffer, []
        return drained

    @property
    def incomplete_prefixes(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._incomplete)

    def is_under_incomplete(self, path: str) -> bool:
        with self._lock:
            prefixes = tuple(self._incomplete)
        return any(is_under(path, prefix) for prefix in prefixes)

    def report_progress(self, **progress: Any) -> None:
        """Forward progress to the registered callback; callback errors are logged."""
        if self._progress_callback is None:
            return
        try:
            self._progress_callback(progress)
        except (TypeError, ValueError, AttributeError) as e:
            logger.warning("Progress callback failed: %s", e, exc_info=True)

    def clear(self) -> None:
        with self._lock:
            self._seen_buffer.clear()
            self._incomplete.clear()
            self._incomplete_buffer.clear()
