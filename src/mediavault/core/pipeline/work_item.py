"""Work item flowing through the scan pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from mediavault.core.models import FileEntry, MetadataItem, SectionLocation

if TYPE_CHECKING:
    from mediavault.core.local_metadata.base import LocalMetadataResult


@dataclass
class ScanWorkItem:
    """One observed file or directory, enriched stage by stage.

    Attributes:
        file: The observed entry
        location: Root location the entry was found under
        is_root: True for the location root itself
        children: Visible entries of a directory (directories only)
        siblings: Unfiltered listing of the parent directory
        ancestors: Resolved ancestors, root first (set by resolution)
        resolved_parent: Nearest resolved ancestor (set by resolution)
        resolved: Metadata claimed by a resolver, None when unclaimed
        local_metadata: Merged sidecar metadata, if any was applied
        is_unchanged: Matches the catalog snapshot (set by change detection)
        replayed: Directory re-emitted on resume only to rebuild ancestor state
    """

    file: FileEntry
    location: SectionLocation
    is_root: bool = False
    children: list[FileEntry] | None = None
    siblings: list[FileEntry] | None = None
    ancestors: list[MetadataItem] = field(default_factory=list)
    resolved_parent: MetadataItem | None = None
    resolved: MetadataItem | None = None
    local_metadata: LocalMetadataResult | None = None
    is_unchanged: bool = False
    replayed: bool = False

    @property
    def path(self) -> str:
        return self.file.path

    @property
    def is_directory(self) -> bool:
        return self.file.is_directory
