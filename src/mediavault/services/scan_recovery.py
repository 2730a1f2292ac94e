"""Startup recovery of interrupted scans."""

from __future__ import annotations

import logging

from mediavault.services.library_scanner import LibraryScannerService
from mediavault.shared.constants import ScanLogMessages
from mediavault.shared.errors import MediaVaultError
from mediavault.shared.logging import log_operation_error

logger = logging.getLogger(__name__)


class ScanRecoveryService:
    """Resume every scan a previous process left Running with a checkpoint."""

    def __init__(self, scanner: LibraryScannerService) -> None:
        self.scanner = scanner

    def recover(self) -> list[int]:
        """Re-enqueue interrupted scans.

        Returns:
            Ids of the scans that were re-enqueued
        """
        resumed: list[int] = []
        for scan in self.scanner.get_interrupted_scans():
            try:
                if self.scanner.resume_scan(scan.id):
                    resumed.append(scan.id)
            except MediaVaultError as e:
                log_operation_error(
                    logger,
                    e,
                    operation=ScanLogMessages.RECOVER,
                    additional_context={"scan_id": scan.id},
                )
        if resumed:
            logger.info("Resumed %d interrupted scan(s): %s", len(resumed), resumed)
        else:
            logger.debug("No interrupted scans to resume")
        return resumed
