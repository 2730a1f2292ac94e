"""Scan services: catalog, orchestration, job execution and recovery."""

from mediavault.services.catalog import CatalogDB, UpsertResult
from mediavault.services.collaborators import (
    DeduplicationCache,
    EnrichmentQueue,
    LoggingEnrichmentQueue,
    NullDeduplicationCache,
    log_scan_finished,
)
from mediavault.services.jobs import ScanJobRunner
from mediavault.services.library_scanner import LibraryScannerService, ScanExecution
from mediavault.services.scan_manager import ScanManager
from mediavault.services.scan_recovery import ScanRecoveryService

__all__ = [
    "CatalogDB",
    "DeduplicationCache",
    "EnrichmentQueue",
    "LibraryScannerService",
    "LoggingEnrichmentQueue",
    "NullDeduplicationCache",
    "ScanExecution",
    "ScanJobRunner",
    "ScanManager",
    "ScanRecoveryService",
    "UpsertResult",
    "log_scan_finished",
]
