"""Library scan orchestration.

``LibraryScannerService`` owns the scan lifecycle::

    PENDING -> RUNNING -> {COMPLETED | FAILED | CANCELLED}

A scan record is created Pending and handed to the job runner. Execution
moves it to Running, drives the pipeline through a ``ScanExecution``
(batching, checkpoints, deletion reconciliation) and records the
terminal state. A scan that is still Running with a checkpoint when the
process dies can be resumed from that checkpoint.
"""

from __future__ import annotations

import gc
import logging
import time
from collections.abc import Callable, Iterator
from datetime import datetime, timezone

from mediavault.config.models import ScanSettings
from mediavault.core.models import (
    LibraryScan,
    LibrarySection,
    MetadataItem,
    ScanStatus,
    flatten_items,
    is_under,
)
from mediavault.core.pipeline import (
    CancellationToken,
    ScanCheckpoint,
    ScanContext,
    ScanPipelineFactory,
    ScanStages,
    ScanWorkItem,
    TraversalCursor,
)
from mediavault.services.catalog import CatalogDB
from mediavault.services.collaborators import (
    DeduplicationCache,
    EnrichmentQueue,
    LoggingEnrichmentQueue,
    NullDeduplicationCache,
)
from mediavault.services.jobs import ScanJobRunner
from mediavault.services.scan_manager import ScanManager
from mediavault.shared.constants import ScanLogMessages
from mediavault.shared.errors import (
    DomainError,
    ErrorCode,
    ErrorContext,
    MediaVaultError,
    ScanCancelledError,
    create_library_not_found_error,
    create_scan_not_found_error,
    describe_failure,
)
from mediavault.shared.logging import (
    log_operation_error,
    log_operation_start,
    log_operation_success,
)

logger = logging.getLogger(__name__)

ScanFinishedCallback = Callable[[LibraryScan], None]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ScanExecution:
    """One run of the pipeline for one scan record.

    Consumes the pipeline on the calling thread, which is therefore the
    only thread writing items to the catalog for this scan.

    Args:
        catalog: Catalog facade
        library: Library being scanned
        scan: Scan record, mutated in place as counters advance
        stages: Fresh stages for this run
        settings: Scan tuning values
        enrichment_queue: Receives one refresh request per inserted item
        cancel: Cancellation token of this scan
    """

    def __init__(
        self,
        catalog: CatalogDB,
        library: LibrarySection,
        scan: LibraryScan,
        stages: ScanStages,
        settings: ScanSettings,
        enrichment_queue: EnrichmentQueue,
        cancel: CancellationToken,
    ) -> None:
        self.catalog = catalog
        self.library = library
        self.scan = scan
        self.stages = stages
        self.settings = settings
        self.enrichment_queue = enrichment_queue
        self.cancel = cancel
        self.context = ScanContext(library, scan, ScanCheckpoint.from_scan(scan))

        self._pending: list[MetadataItem] = []
        self._cursor: TraversalCursor | None = None
        self._items_since_checkpoint = 0
        self._last_checkpoint = time.monotonic()

    def run(self) -> None:
        """Drain the pipeline, flush the last batch and reconcile deletions.

        Raises:
            ScanCancelledError: If the scan was cancelled
        """
        resuming = self.context.is_resuming
        if resuming:
            self.context.add_incomplete(self.catalog.load_incomplete_paths(self.scan.id))

        stream = self.stages.pipeline.build(self.context, self.cancel)
        try:
            for item in stream:
                self._consume(item)
        finally:
            close = getattr(stream, "close", None)
            if close is not None:
                close()

        self._flush()
        self.cancel.raise_if_cancelled(ScanLogMessages.EXECUTE_SCAN)
        self._reconcile(resuming=resuming)

    def release(self) -> None:
        """Drop every scan-scoped cache."""
        self.stages.release()
        self.context.clear()
        self._pending.clear()

    def _consume(self, item: ScanWorkItem) -> None:
        if item.replayed:
            return

        self.scan.total_files += 1
        gc_interval = self.settings.gc_interval
        if gc_interval and self.scan.total_files % gc_interval == 0:
            gc.collect(0)

        if item.is_unchanged:
            self.scan.processed_files += 1
        elif item.resolved is None:
            logger.debug("Skipping unresolved entry %s", item.path)
        else:
            self._pending.append(item.resolved)
            if len(self._pending) >= self.settings.batch_size:
                self._flush()

        self._cursor = TraversalCursor(location_id=item.location.id, path=item.path)
        self._items_since_checkpoint += 1
        if self._checkpoint_due():
            self._checkpoint()

    def _flush(self) -> None:
        if not self._pending:
            return
        batch, self._pending = self._pending, []

        start = time.perf_counter()
        nodes = flatten_items(batch, self.library.id)
        result = self.catalog.upsert_items(nodes)
        self.scan.items_added += result.added
        self.scan.items_updated += result.updated
        self.scan.processed_files += len(batch)
        self.context.record_seen_many(node.path for node in nodes if node.path)

        for item_uuid in dict.fromkeys(item.uuid for item in batch if item.uuid):
            try:
                self.enrichment_queue.enqueue_refresh(item_uuid)
            except Exception as e:  # noqa: BLE001
                logger.warning("Could not enqueue refresh for %s: %s", item_uuid, e)

        log_operation_success(
            logger,
            ScanLogMessages.FLUSH_BATCH,
            (time.perf_counter() - start) * 1000,
            result_info={
                "items": len(batch),
                "nodes": len(nodes),
                "added": result.added,
                "updated": result.updated,
            },
        )

    def _checkpoint_due(self) -> bool:
        if self._items_since_checkpoint >= self.settings.checkpoint_item_threshold:
            return True
        elapsed = time.monotonic() - self._last_checkpoint
        return elapsed >= self.settings.checkpoint_interval_seconds

    def _checkpoint(self) -> None:
        """Flush, then persist seen paths and the resume position together."""
        if self._cursor is None:
            return
        self._flush()

        checkpoint = self._cursor.to_checkpoint()
        self.scan.current_stage = checkpoint.stage
        self.scan.resume_cursor = checkpoint.cursor
        self.scan.checkpoint_version = checkpoint.version
        self.scan.last_checkpoint_at = _utc_now()
        self.catalog.save_checkpoint(
            self.scan,
            self.context.drain_seen_paths(),
            self.context.drain_incomplete_paths(),
        )

        self._items_since_checkpoint = 0
        self._last_checkpoint = time.monotonic()
        logger.debug(
            "Checkpoint for scan %s at %s (%d files)",
            self.scan.id,
            self._cursor.path,
            self.scan.total_files,
        )

    def _reconcile(self, *, resuming: bool) -> None:
        """Delete catalog paths that were known at scan start but not observed."""
        start = time.perf_counter()
        candidates = self.stages.change_detection.remaining_paths()
        if resuming and candidates:
            seen_before = self.catalog.load_seen_paths(self.scan.id)
            candidates = [path for path in candidates if path not in seen_before]

        incomplete = self.context.incomplete_prefixes
        doomed = sorted(
            path
            for path in candidates
            if not any(is_under(path, prefix) for prefix in incomplete)
        )
        kept = len(candidates) - len(doomed)
        if kept:
            logger.info(
                "Keeping %d catalog paths under locations that could not be fully enumerated",
                kept,
            )

        removed = 0
        chunk_size = self.settings.delete_chunk_size
        for offset in range(0, len(doomed), chunk_size):
            self.cancel.raise_if_cancelled(ScanLogMessages.RECONCILE)
            removed += self.catalog.delete_items_by_path(
                self.library.id,
                doomed[offset : offset + chunk_size],
                soft=self.settings.soft_delete,
            )
        self.scan.items_removed += removed

        log_operation_success(
            logger,
            ScanLogMessages.RECONCILE,
            (time.perf_counter() - start) * 1000,
            result_info={"candidates": len(candidates), "removed": removed, "kept": kept},
        )


class LibraryScannerService:
    """Starts, executes, cancels and resumes library scans.

    Args:
        catalog: Catalog facade
        scan_manager: Registry of executing scans and per-library locks
        job_runner: Background executor, at most one job per scan id
        pipeline_factory: Builds fresh pipeline stages per run
        settings: Scan tuning values
        enrichment_queue: Fire-and-forget metadata refresh queue
        dedup_cache: Deduplication state cleared after every scan
        on_scan_finished: Called with the scan after every terminal transition
    """

    def __init__(
        self,
        catalog: CatalogDB,
        scan_manager: ScanManager,
        job_runner: ScanJobRunner,
        pipeline_factory: ScanPipelineFactory,
        settings: ScanSettings,
        enrichment_queue: EnrichmentQueue | None = None,
        dedup_cache: DeduplicationCache | None = None,
        on_scan_finished: ScanFinishedCallback | None = None,
    ) -> None:
        self.catalog = catalog
        self.scan_manager = scan_manager
        self.job_runner = job_runner
        self.pipeline_factory = pipeline_factory
        self.settings = settings
        self.enrichment_queue = enrichment_queue or LoggingEnrichmentQueue()
        self.dedup_cache = dedup_cache or NullDeduplicationCache()
        self.on_scan_finished = on_scan_finished

    def start_scan(self, library_id: int) -> int:
        """Start a scan of ``library_id``, or return the one already active.

        Returns:
            Id of the new or already active scan

        Raises:
            DomainError: If the library does not exist
        """
        log_operation_start(logger, ScanLogMessages.START_SCAN, {"library_id": library_id})
        with self.scan_manager.library_lock(library_id):
            if self.catalog.get_library(library_id) is None:
                raise create_library_not_found_error(library_id, ScanLogMessages.START_SCAN)

            active = self.catalog.get_active_scan(library_id)
            if active is not None:
                logger.info("Library %s already has active scan %s", library_id, active.id)
                scan_id = active.id
                needs_execution = not self._is_executing(scan_id)
            else:
                scan_id = self.catalog.create_scan(library_id).id
                needs_execution = True
                logger.info("Created scan %s for library %s", scan_id, library_id)

        if needs_execution:
            self.job_runner.enqueue(scan_id, self.execute_scan)
        return scan_id

    def execute_scan(self, scan_id: int) -> LibraryScan | None:
        """Run a scan to a terminal state on the calling thread.

        A Running scan with a checkpoint resumes from it; anything else
        starts from scratch.

        Returns:
            The scan record as it ended, or None if it does not exist

        Raises:
            DomainError: If the scan is already executing in this process
        """
        token = self.scan_manager.register(scan_id)
        started = time.perf_counter()
        try:
            scan = self.catalog.get_scan(scan_id)
            if scan is None:
                logger.warning("Scan %s vanished before execution", scan_id)
                return None
            if scan.status.is_terminal:
                logger.info("Scan %s is already %s", scan_id, scan.status.value)
                return scan
            return self._run(scan, token)
        finally:
            self.scan_manager.unregister(scan_id)
            logger.info(
                "Scan %s finished in %.2fs",
                scan_id,
                time.perf_counter() - started,
                extra={"scan_id": scan_id},
            )

    def _run(self, scan: LibraryScan, token: CancellationToken) -> LibraryScan:
        resuming = scan.status == ScanStatus.RUNNING and ScanCheckpoint.from_scan(scan) is not None
        if resuming:
            log_operation_start(logger, ScanLogMessages.RESUME_SCAN, {"scan_id": scan.id})
        else:
            scan.reset_progress()
            scan.started_at = _utc_now()
        scan.status = ScanStatus.RUNNING
        scan.completed_at = None
        scan.error_message = None
        self.catalog.update_scan(scan)

        execution: ScanExecution | None = None
        try:
            library = self.catalog.get_library(scan.library_id)
            if library is None:
                raise create_library_not_found_error(scan.library_id, ScanLogMessages.EXECUTE_SCAN)
            execution = ScanExecution(
                self.catalog,
                library,
                scan,
                self.pipeline_factory.create(library),
                self.settings,
                self.enrichment_queue,
                token,
            )
            execution.run()
            scan.status = ScanStatus.COMPLETED
        except ScanCancelledError:
            scan.status = ScanStatus.CANCELLED
            logger.info("Scan %s cancelled", scan.id, extra={"scan_id": scan.id})
        except MediaVaultError as e:
            scan.status = ScanStatus.FAILED
            scan.error_message = describe_failure(e)
            log_operation_error(logger, e, operation=ScanLogMessages.EXECUTE_SCAN)
        except Exception as e:
            scan.status = ScanStatus.FAILED
            scan.error_message = describe_failure(e)
            logger.exception("Scan %s failed", scan.id, extra={"scan_id": scan.id})
        finally:
            try:
                if scan.status.is_terminal:
                    self._record_outcome(scan)
            finally:
                if execution is not None:
                    execution.release()
                self.dedup_cache.clear()

        self._notify(scan)
        return scan

    def _record_outcome(self, scan: LibraryScan) -> None:
        scan.completed_at = _utc_now()
        scan.clear_checkpoint()
        self.catalog.update_scan(scan)
        self.catalog.clear_seen_paths(scan.id)
        if scan.status == ScanStatus.COMPLETED:
            self.catalog.mark_library_scanned(scan.library_id, scan.completed_at)
            log_operation_success(
                logger,
                ScanLogMessages.EXECUTE_SCAN,
                (scan.duration_seconds or 0.0) * 1000,
                result_info={
                    "total": scan.total_files,
                    "processed": scan.processed_files,
                    "added": scan.items_added,
                    "updated": scan.items_updated,
                    "removed": scan.items_removed,
                },
                context={"scan_id": scan.id, "library_id": scan.library_id},
            )

    def _notify(self, scan: LibraryScan) -> None:
        if self.on_scan_finished is None:
            return
        try:
            self.on_scan_finished(scan)
        except Exception:
            logger.exception("Scan finished callback failed for scan %s", scan.id)

    def cancel_scan(self, scan_id: int) -> bool:
        """Request cooperative cancellation.

        Returns:
            True if a running scan was signalled
        """
        log_operation_start(logger, ScanLogMessages.CANCEL_SCAN, {"scan_id": scan_id})
        return self.scan_manager.cancel(scan_id)

    def get_scan_status(self, scan_id: int) -> LibraryScan | None:
        return self.catalog.get_scan(scan_id)

    def get_scan_history(self, library_id: int, limit: int | None = None) -> Iterator[LibraryScan]:
        """Scans of a library, newest first."""
        yield from self.catalog.list_scans(library_id, limit)

    def get_interrupted_scans(self) -> list[LibraryScan]:
        """Scans left Running with a checkpoint that are not executing here."""
        return [
            scan
            for scan in self.catalog.list_interrupted_scans()
            if not self._is_executing(scan.id)
        ]

    def resume_scan(self, scan_id: int) -> bool:
        """Re-enqueue an interrupted scan.

        Returns:
            False if the scan is already queued or executing

        Raises:
            DomainError: If the scan does not exist or already ended
        """
        scan = self.catalog.get_scan(scan_id)
        if scan is None:
            raise create_scan_not_found_error(scan_id, ScanLogMessages.RESUME_SCAN)
        if scan.status.is_terminal:
            raise DomainError(
                ErrorCode.SCAN_NOT_RESUMABLE,
                f"Scan {scan_id} already ended as {scan.status.value}",
                ErrorContext(
                    operation=ScanLogMessages.RESUME_SCAN,
                    additional_data={"scan_id": scan_id, "status": scan.status.value},
                ),
            )
        if self._is_executing(scan_id):
            logger.info("Scan %s is already executing", scan_id)
            return False

        log_operation_start(logger, ScanLogMessages.RESUME_SCAN, {"scan_id": scan_id})
        self.job_runner.enqueue(scan_id, self.execute_scan)
        return True

    def _is_executing(self, scan_id: int) -> bool:
        return self.scan_manager.is_running(scan_id) or self.job_runner.is_inflight(scan_id)
