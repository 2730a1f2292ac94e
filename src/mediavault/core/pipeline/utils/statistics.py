"""Statistics collectors for pipeline operations.

Thread-safe counters for the pipeline stages:
- TraversalStatistics: directory traversal metrics
- QueueStatistics: prefetch queue metrics
- ResolutionStatistics: resolver and ancestor cache metrics
"""

from __future__ import annotations

import threading
from typing import Any


class TraversalStatistics:
    """Statistics collector for directory traversal.

    The traversal may run on a prefetch thread while the consumer reads
    these counters, so every access takes the lock.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._files_scanned = 0
        self._directories_scanned = 0
        self._entries_ignored = 0
        self._enumeration_errors = 0

    def increment_files_scanned(self) -> None:
        with self._lock:
            self._files_scanned += 1

    def increment_directories_scanned(self) -> None:
        with self._lock:
            self._directories_scanned += 1

    def increment_entries_ignored(self, count: int = 1) -> None:
        with self._lock:
            self._entries_ignored += count

    def increment_enumeration_errors(self) -> None:
        with self._lock:
            self._enumeration_errors += 1

    @property
    def files_scanned(self) -> int:
        with self._lock:
            return self._files_scanned

    @property
    def directories_scanned(self) -> int:
        with self._lock:
            return self._directories_scanned

    @property
    def entries_ignored(self) -> int:
        with self._lock:
            return self._entries_ignored

    @property
    def enumeration_errors(self) -> int:
        with self._lock:
            return self._enumeration_errors

    def to_dict(self) -> dict[str, Any]:
        with self._lock:
            return {
                "files_scanned": self._files_scanned,
                "directories_scanned": self._directories_scanned,
                "entries_ignored": self._entries_ignored,
                "enumeration_errors": self._enumeration_errors,
            }


class QueueStatistics:
    """Statistics collector for queue operations."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._items_put = 0
        self._items_got = 0
        self._max_size = 0

    def increment_items_put(self) -> None:
        with self._lock:
            self._items_put += 1

    def increment_items_got(self) -> None:
        with self._lock:
            self._items_got += 1

    def update_max_size(self, size: int) -> None:
        """Record the largest queue size observed."""
        with self._lock:
            self._max_size = max(size, self._max_size)

    @property
    def items_put(self) -> int:
        with self._lock:
            return self._items_put

    @property
    def items_got(self) -> int:
        with self._lock:
            return self._items_got

    @property
    def max_size(self) -> int:
        with self._lock:
            return self._max_size


class ResolutionStatistics:
    """Statistics collector for the resolution stage."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._resolved = 0
        self._unresolved = 0
        self._skipped_unchanged = 0
        self._resolver_errors = 0
        self._prune_cycles = 0
        self._evicted = 0

    def increment_resolved(self) -> None:
        with self._lock:
            self._resolved += 1

    def increment_unresolved(self) -> None:
        with self._lock:
            self._unresolved += 1

    def increment_skipped_unchanged(self) -> None:
        with self._lock:
            self._skipped_unchanged += 1

    def increment_resolver_errors(self) -> None:
        with self._lock:
            self._resolver_errors += 1

    def record_prune(self, evicted: int) -> None:
        with self._lock:
            self._prune_cycles += 1
            self._evicted += evicted

    @property
    def resolved(self) -> int:
        with self._lock:
            return self._resolved

    @property
    def unresolved(self) -> int:
        with self._lock:
            return self._unresolved

    @property
    def resolver_errors(self) -> int:
        with self._lock:
            return self._resolver_errors

    @property
    def prune_cycles(self) -> int:
        with self._lock:
            return self._prune_cycles

    def to_dict(self) -> dict[str, Any]:
        with self._lock:
            return {
                "resolved": self._resolved,
                "unresolved": self._unresolved,
                "skipped_unchanged": self._skipped_unchanged,
                "resolver_errors": self._resolver_errors,
                "prune_cycles": self._prune_cycles,
                "evicted": self._evicted,
            }
