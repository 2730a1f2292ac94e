"""SQLite catalog with modular operations.

The ``CatalogDB`` facade composes the schema manager, the transaction
manager and the library, item and scan operation classes.
"""

from mediavault.services.catalog.catalog_db import CatalogDB
from mediavault.services.catalog.operations import UpsertResult

__all__ = ["CatalogDB", "UpsertResult"]
