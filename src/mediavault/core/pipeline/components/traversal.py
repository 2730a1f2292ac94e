"""Directory traversal stage.

Produces one work item per visible file and directory below each library
location, in deterministic pre-order: the root first, then every
directory before its descendants, siblings sorted by name. Because of
that order a traversal position can be expressed as the tuple of path
components relative to the root, and tuple comparison decides whether an
entry lies before or after a resume cursor.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator

from mediavault.core.ignore import IgnoreRuleSet
from mediavault.core.models import FileEntry, SectionLocation, is_under, normalize_path, path_key
from mediavault.core.pipeline.base import CancellationToken, PipelineStage
from mediavault.core.pipeline.checkpoint import TraversalCursor, decode_traversal_cursor
from mediavault.core.pipeline.context import ScanContext
from mediavault.core.pipeline.utils import TraversalStatistics
from mediavault.core.pipeline.work_item import ScanWorkItem
from mediavault.shared.constants import PipelineStages
from mediavault.shared.errors import ErrorCode, ErrorContext, InfrastructureError
from mediavault.shared.logging import log_operation_error

logger = logging.getLogger(__name__)

PositionKey = tuple[str, ...]


def position_key(root: str, path: str) -> PositionKey:
    """Traversal position of ``path`` inside ``root`` (``()`` for the root)."""
    if path_key(path) == path_key(root):
        return ()
    return tuple(os.path.relpath(path, root).split(os.sep))


class DirectoryTraversalStage(PipelineStage[SectionLocation, ScanWorkItem]):
    """Enumerate library locations into work items.

    Failures are contained: an entry that vanishes mid-enumeration is
    skipped, an unreadable sub-directory is logged and skipped, and an
    unreadable root abandons only that location. Every path that could not
    be enumerated is recorded on the context as an incomplete prefix.

    Args:
        ignore_rules: Rules applied before an entry is emitted
        stats: Optional statistics collector
    """

    name = PipelineStages.DIRECTORY_TRAVERSAL

    def __init__(
        self,
        ignore_rules: IgnoreRuleSet | None = None,
        stats: TraversalStatistics | None = None,
    ) -> None:
        self.ignore_rules = ignore_rules or IgnoreRuleSet()
        self.stats = stats or TraversalStatistics()

    def run(
        self,
        items: Iterator[SectionLocation],
        context: ScanContext,
        cancel: CancellationToken,
    ) -> Iterator[ScanWorkItem]:
        cursor = decode_traversal_cursor(context.checkpoint)
        if cursor is not None:
            logger.info(
                "Resuming traversal of library %s after %s",
                context.library.id,
                cursor.path,
            )

        for location in sorted(items, key=lambda loc: loc.id):
            cancel.raise_if_cancelled(self.name)
            if cursor is not None and location.id < cursor.location_id:
                logger.debug("Skipping location %s: already traversed", location.root_path)
                continue
            location_cursor = (
                cursor if cursor is not None and cursor.location_id == location.id else None
            )
            yield from self._traverse_location(location, location_cursor, context, cancel)

    def _traverse_location(
        self,
        location: SectionLocation,
        cursor: TraversalCursor | None,
        context: ScanContext,
        cancel: CancellationToken,
    ) -> Iterator[ScanWorkItem]:
        root_path = normalize_path(location.root_path)
        try:
            root = FileEntry.from_path(root_path)
            if not root.is_directory:
                raise NotADirectoryError(root_path)
            listing = self._list_directory(root_path)
        except OSError as e:
            error = InfrastructureError(
                ErrorCode.DIRECTORY_ENUMERATION_FAILED,
                f"Cannot enumerate library location: {root_path}",
                ErrorContext(
                    file_path=root_path,
                    operation="traverse_location",
                    additional_data={"location_id": location.id},
                ),
                original_error=e,
            )
            log_operation_error(logger, error)
            context.mark_incomplete(root_path)
            self.stats.increment_enumeration_errors()
            return

        cursor_key: PositionKey | None = None
        if cursor is not None:
            if is_under(cursor.path, root_path):
                cursor_key = position_key(root_path, cursor.path)
            else:
                logger.warning(
                    "Resume cursor %s is outside location %s; traversing it fully",
                    cursor.path,
                    root_path,
                )

        visible = self._visible_entries(listing)
        cancel.raise_if_cancelled(self.name)
        self.stats.increment_directories_scanned()
        yield ScanWorkItem(
            file=root,
            location=location,
            is_root=True,
            children=visible,
            replayed=cursor_key is not None,
        )
        yield from self._walk(location, (), listing, visible, cursor_key, context, cancel)

    def _walk(
        self,
        location: SectionLocation,
        directory_key: PositionKey,
        listing: list[FileEntry],
        visible: list[FileEntry],
        cursor_key: PositionKey | None,
        context: ScanContext,
        cancel: CancellationToken,
    ) -> Iterator[ScanWorkItem]:
        for entry in visible:
            cancel.raise_if_cancelled(self.name)
            key = (*directory_key, entry.name)

            replayed = False
            child_cursor: PositionKey | None = None
            if cursor_key is not None:
                if cursor_key[: len(key)] == key:
                    # On the path to the cursor (or the cursor itself)
                    replayed = True
                    child_cursor = cursor_key
                elif key < cursor_key:
                    continue

            if not entry.is_directory:
                if replayed:
                    continue
                self.stats.increment_files_scanned()
                yield ScanWorkItem(file=entry, location=location, siblings=listing)
                continue

            try:
                sub_listing = self._list_directory(entry.path)
            except FileNotFoundError:
                logger.debug("Directory vanished during traversal: %s", entry.path)
                continue
            except OSError as e:
                logger.warning("Cannot enumerate %s, skipping subtree: %s", entry.path, e)
                context.mark_incomplete(entry.path)
                self.stats.increment_enumeration_errors()
                continue

            if self.ignore_rules.is_directory_ignored(entry, sub_listing):
                self.stats.increment_entries_ignored()
                continue

            sub_visible = self._visible_entries(sub_listing)
            self.stats.increment_directories_scanned()
            yield ScanWorkItem(
                file=entry,
                location=location,
                children=sub_visible,
                siblings=listing,
                replayed=replayed,
            )
            yield from self._walk(
                location, key, sub_listing, sub_visible, child_cursor, context, cancel
            )

    def _visible_entries(self, listing: list[FileEntry]) -> list[FileEntry]:
        visible = [entry for entry in listing if not self.ignore_rules.is_name_ignored(entry)]
        ignored = len(listing) - len(visible)
        if ignored:
            self.stats.increment_entries_ignored(ignored)
        return visible

    @staticmethod
    def _list_directory(path: str) -> list[FileEntry]:
        """List ``path`` sorted by name.

        Raises:
            OSError: If the directory itself cannot be opened
        """
        entries: list[FileEntry] = []
        with os.scandir(path) as it:
            for dir_entry in it:
                try:
                    entries.append(FileEntry.from_dir_entry(dir_entry))
                except FileNotFoundError:
                    logger.debug("Entry vanished during enumeration: %s", dir_entry.path)
                except OSError as e:
                    logger.warning("Cannot stat %s, skipping: %s", dir_entry.path, e)
        entries.sort(key=lambda entry: entry.name)
        return entries
