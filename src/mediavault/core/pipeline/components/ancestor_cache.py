"""Scan-scoped cache of resolved directories.

Maps a normalized directory path to its resolved metadata, its file entry
and whether it matched the catalog snapshot, so descendants can see their resolved ancestors without another lookup.
Entries are swept by a mark-and-sweep cycle tied to the item count:
paths touched since the last sweep (the current item's ancestors and
newly cached directories) survive, everything else is evicted.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from mediavault.core.models import FileEntry, MetadataItem, is_under, path_key
from mediavault.shared.constants import ScanDefaults

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CachedAncestor:
    metadata: MetadataItem
    file: FileEntry
    unchanged: bool = False


class AncestorCache:
    """Directory path -> resolved metadata map with periodic pruning."""

    def __init__(self, prune_interval: int = ScanDefaults.PRUNE_INTERVAL) -> None:
        self.prune_interval = prune_interval
        self._entries: dict[str, CachedAncestor] = {}
        self._active: set[str] = set()
        self._items_since_prune = 0

    def put(self, file: FileEntry, metadata: MetadataItem, *, unchanged: bool = False) -> None:
        key = path_key(file.path)
        self._entries[key] = CachedAncestor(metadata, file, unchanged)
        self._active.add(key)

    def get(self, path: str) -> CachedAncestor | None:
        return self._entries.get(path_key(path))

    def ancestors_of(self, path: str, root: str) -> list[CachedAncestor]:
        """Cached ancestors of ``path`` within ``root``, root first."""
        found: list[CachedAncestor] = []
        for key in self._ancestor_keys(path, root):
            cached = self._entries.get(key)
            if cached is not None:
                found.append(cached)
        found.reverse()
        return found

    def mark_active(self, path: str, root: str) -> None:
        """Keep the cached ancestors of ``path`` alive through the next sweep."""
        for key in self._ancestor_keys(path, root):
            if key in self._entries:
                self._active.add(key)

    def tick(self) -> int:
        """Count one processed item; sweep once every ``prune_interval`` items.

        Returns:
            Number of evicted entries (0 when no sweep ran)
        """
        self._items_since_prune += 1
        if self.prune_interval <= 0 or self._items_since_prune < self.prune_interval:
            return 0
        self._items_since_prune = 0
        return self.prune()

    def prune(self) -> int:
        stale = [key for key in self._entries if key not in self._active]
        for key in stale:
            del self._entries[key]
        self._active.clear()
        if stale:
            logger.debug("Pruned %d ancestor cache entries, %d kept", len(stale), len(self._entries))
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()
        self._active.clear()
        self._items_since_prune = 0

    def __len__(self) -> int:
        return len(self._entries)

    @staticmethod
    def _ancestor_keys(path: str, root: str) -> list[str]:
        """Keys of the directories from the parent of ``path`` up to ``root``, nearest first."""
        if not is_under(path, root):
            return []
        root_key = path_key(root)
        keys: list[str] = []
        current = path_key(path)
        while current != root_key:
            parent = os.path.dirname(current)
            if parent == current:
                break
            keys.append(parent)
            current = parent
        return keys
