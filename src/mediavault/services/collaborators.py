"""Out-of-process collaborators of the scanner.

The scanner only depends on these small protocols. The defaults keep a
standalone installation working: enrichment requests are logged, there
is no cross-scan deduplication state to clear, and finished scans are
announced in the log.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from mediavault.core.models import LibraryScan

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_HISTORY = 1000


@runtime_checkable
class EnrichmentQueue(Protocol):
    """Fire-and-forget queue for metadata refresh jobs."""

    def enqueue_refresh(self, item_uuid: str) -> None: ...


@runtime_checkable
class DeduplicationCache(Protocol):
    """Scan-scoped deduplication state, cleared when a scan ends."""

    def clear(self) -> None: ...


class LoggingEnrichmentQueue:
    """Logs refresh requests and keeps the most recent ones.

    Only the last ``history_size`` identifiers are kept, so a long-lived
    process does not grow with the size of the libraries it scans.
    """

    def __init__(self, history_size: int = DEFAULT_REFRESH_HISTORY) -> None:
        self._lock = threading.Lock()
        self._recent: deque[str] = deque(maxlen=history_size)

    def enqueue_refresh(self, item_uuid: str) -> None:
        with self._lock:
            self._recent.append(item_uuid)
        logger.debug("Metadata refresh requested for %s", item_uuid)

    @property
    def requested(self) -> list[str]:
        """Most recent requests, oldest first."""
        with self._lock:
            return list(self._recent)


class NullDeduplicationCache:
    def clear(self) -> None:
        return None


def log_scan_finished(scan: LibraryScan) -> None:
    """Default completion notification: one summary line per finished scan."""
    logger.info(
        "Scan %s of library %s finished as %s (%d files, +%d ~%d -%d)",
        scan.id,
        scan.library_id,
        scan.status.value,
        scan.total_files,
        scan.items_added,
        scan.items_updated,
        scan.items_removed,
        extra={"scan_id": scan.id, "library_id": scan.library_id},
    )
