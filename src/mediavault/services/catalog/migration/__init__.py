"""Catalog schema management."""

from mediavault.services.catalog.migration.manager import SCHEMA_VERSION, MigrationManager

__all__ = ["SCHEMA_VERSION", "MigrationManager"]
