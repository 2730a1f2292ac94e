"""Catalog operations.

Separate operation classes for libraries, metadata items and scans. They
assume the caller serializes connection access and owns transactions.
"""

from mediavault.services.catalog.operations.items import ItemOperations, UpsertResult
from mediavault.services.catalog.operations.libraries import LibraryOperations
from mediavault.services.catalog.operations.scans import (
    INCOMPLETE_KIND,
    SEEN_KIND,
    ScanOperations,
)

__all__ = [
    "INCOMPLETE_KIND",
    "SEEN_KIND",
    "ItemOperations",
    "LibraryOperations",
    "ScanOperations",
    "UpsertResult",
]
