"""Process-wide registry of running scans."""

from __future__ import annotations

import logging
import threading

from mediavault.core.pipeline import CancellationToken
from mediavault.shared.errors import DomainError, ErrorCode, ErrorContext

logger = logging.getLogger(__name__)


class ScanManager:
    """Cancellation handles keyed by scan id plus per-library locks.

    The library locks serialize "is there an active scan?" checks with the
    creation of a new scan record, per library rather than globally.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._handles: dict[int, CancellationToken] = {}
        self._library_locks: dict[int, threading.Lock] = {}

    def library_lock(self, library_id: int) -> threading.Lock:
        with self._lock:
            lock = self._library_locks.get(library_id)
            if lock is None:
                lock = threading.Lock()
                self._library_locks[library_id] = lock
            return lock

    def register(self, scan_id: int) -> CancellationToken:
        """Register a cancellation handle for an executing scan.

        Raises:
            DomainError: If the scan is already executing in this process
        """
        with self._lock:
            if scan_id in self._handles:
                raise DomainError(
                    ErrorCode.SCAN_ALREADY_RUNNING,
                    f"Scan {scan_id} is already executing",
                    ErrorContext(operation="register_scan", additional_data={"scan_id": scan_id}),
                )
            token = CancellationToken()
            self._handles[scan_id] = token
            return token

    def unregister(self, scan_id: int) -> bool:
        with self._lock:
            return self._handles.pop(scan_id, None) is not None

    def cancel(self, scan_id: int) -> bool:
        """Signal the scan's handle; returns False when it is not executing here."""
        with self._lock:
            token = self._handles.get(scan_id)
        if token is None:
            logger.info("Cancel requested for scan %s, which is not running", scan_id)
            return False
        token.cancel()
        logger.info("Cancellation requested for scan %s", scan_id)
        return True

    def is_running(self, scan_id: int) -> bool:
        with self._lock:
            return scan_id in self._handles

    def running_scan_ids(self) -> set[int]:
        with self._lock:
            return set(self._handles)
