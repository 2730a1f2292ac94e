"""Domain models for libraries, scans, file entries and metadata items."""

from mediavault.core.models.filesystem import (
    FileEntry,
    FileSnapshot,
    is_under,
    normalize_path,
    path_key,
)
from mediavault.core.models.library import LibrarySection, LibraryType, SectionLocation
from mediavault.core.models.metadata import (
    MetadataItem,
    MetadataType,
    PersonCredit,
    assign_identifier,
    flatten_items,
    path_identifier,
)
from mediavault.core.models.scan import ACTIVE_STATUSES, LibraryScan, ScanStatus

__all__ = [
    "ACTIVE_STATUSES",
    "FileEntry",
    "FileSnapshot",
    "LibraryScan",
    "LibrarySection",
    "LibraryType",
    "MetadataItem",
    "MetadataType",
    "PersonCredit",
    "ScanStatus",
    "SectionLocation",
    "assign_identifier",
    "flatten_items",
    "is_under",
    "normalize_path",
    "path_identifier",
    "path_key",
]
