"""Background execution of scan jobs."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor

from mediavault.shared.constants import WorkerConfig

logger = logging.getLogger(__name__)


class ScanJobRunner:
    """Thread pool that runs at most one job per scan id at a time.

    Enqueuing a scan id that is still queued or running returns the
    existing future instead of starting a second execution.
    """

    def __init__(self, max_workers: int = WorkerConfig.DEFAULT) -> None:
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="mediavault-scan",
        )
        self._lock = threading.RLock()
        self._inflight: dict[int, Future[None]] = {}

    def enqueue(self, scan_id: int, job: Callable[[int], None]) -> Future[None]:
        with self._lock:
            existing = self._inflight.get(scan_id)
            if existing is not None and not existing.done():
                logger.debug("Scan %s already queued or running", scan_id)
                return existing

            future = self._executor.submit(job, scan_id)
            self._inflight[scan_id] = future
        future.add_done_callback(lambda f: self._on_done(scan_id, f))
        return future

    def _on_done(self, scan_id: int, future: Future[None]) -> None:
        with self._lock:
            if self._inflight.get(scan_id) is future:
                del self._inflight[scan_id]
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.error("Scan job %s raised %s", scan_id, error, exc_info=error)

    def is_inflight(self, scan_id: int) -> bool:
        with self._lock:
            future = self._inflight.get(scan_id)
            return future is not None and not future.done()

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait, cancel_futures=not wait)
