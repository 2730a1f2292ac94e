"""Catalog transaction management."""

from mediavault.services.catalog.transaction.manager import TransactionManager

__all__ = ["TransactionManager"]
