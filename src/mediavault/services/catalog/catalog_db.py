"""SQLite catalog database facade.

Single entry point for everything the scanner persists: library sections,
metadata items, scan records and the per-scan seen-path log. All access
goes through one connection guarded by a re-entrant lock, so exactly one
thread writes to the catalog at a time.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
import time
from collections.abc import Callable, Iterable, Iterator, Sequence
from datetime import datetime
from pathlib import Path
from typing import Any, TypeVar

from mediavault.core.models import (
    FileSnapshot,
    LibraryScan,
    LibrarySection,
    LibraryType,
    MetadataItem,
)
from mediavault.services.catalog.migration import MigrationManager
from mediavault.services.catalog.operations import (
    INCOMPLETE_KIND,
    SEEN_KIND,
    ItemOperations,
    LibraryOperations,
    ScanOperations,
    UpsertResult,
)
from mediavault.services.catalog.transaction import TransactionManager
from mediavault.shared.errors import (
    DomainError,
    ErrorCode,
    ErrorContext,
    InfrastructureError,
    create_catalog_error,
)
from mediavault.shared.logging import log_operation_error, log_operation_success

logger = logging.getLogger(__name__)

T = TypeVar("T")

IN_MEMORY = ":memory:"
SNAPSHOT_PAGE_SIZE = 1000


class CatalogDB:
    """SQLite-backed media catalog.

    Uses WAL mode and an autocommit connection; multi-statement writes run
    inside explicit transactions.

    Attributes:
        db_path: Path to the SQLite database file (or ``:memory:``)
        conn: SQLite database connection, None once closed

    Example:
        >>> catalog = CatalogDB(Path("catalog.db"))
        >>> library = catalog.create_library("Movies", LibraryType.MOVIES, ["/media/movies"])
        >>> scan = catalog.create_scan(library.id)
        >>> catalog.close()
    """

    def __init__(self, db_path: Path | str) -> None:
        """Open (and if needed create) the catalog.

        Args:
            db_path: Path to SQLite database file

        Raises:
            InfrastructureError: If the database cannot be opened or initialized
        """
        self.db_path = db_path if str(db_path) == IN_MEMORY else Path(db_path).expanduser()
        self.conn: sqlite3.Connection | None = None
        self._lock = threading.RLock()
        self._initialize_db()

    def _initialize_db(self) -> None:
        context = ErrorContext(
            operation="initialize_catalog",
            additional_data={"db_path": str(self.db_path)},
        )
        start = time.perf_counter()
        try:
            if isinstance(self.db_path, Path):
                self.db_path.parent.mkdir(parents=True, exist_ok=True)

            self.conn = sqlite3.connect(
                str(self.db_path),
                check_same_thread=False,
                isolation_level=None,
            )
            self.conn.execute("PRAGMA journal_mode=WAL")
            self.conn.execute("PRAGMA synchronous=NORMAL")

            MigrationManager(self.conn).create_tables()

            self._transactions = TransactionManager(self.conn)
            self._libraries = LibraryOperations(self.conn)
            self._items = ItemOperations(self.conn)
            self._scans = ScanOperations(self.conn)
        except (sqlite3.Error, OSError) as e:
            error = InfrastructureError(
                ErrorCode.CATALOG_ERROR,
                f"Failed to initialize catalog: {e!s}",
                context,
                original_error=e,
            )
            log_operation_error(logger, error, operation="initialize_catalog")
            raise error from e

        log_operation_success(
            logger,
            operation="initialize_catalog",
            duration_ms=(time.perf_counter() - start) * 1000,
            context=context,
        )

    def _execute(
        self,
        operation: str,
        func: Callable[..., T],
        *args: Any,
        transactional: bool = False,
        **kwargs: Any,
    ) -> T:
        """Run an operation under the connection lock, wrapping sqlite errors."""
        with self._lock:
            if self.conn is None:
                raise InfrastructureError(
                    ErrorCode.CATALOG_ERROR,
                    "Catalog is closed",
                    ErrorContext(operation=operation),
                )
            try:
                if transactional:
                    with self._transactions.transaction():
                        return func(*args, **kwargs)
                return func(*args, **kwargs)
            except sqlite3.Error as e:
                error = create_catalog_error(
                    f"Catalog operation '{operation}' failed: {e!s}",
                    operation=operation,
                    original_error=e,
                )
                log_operation_error(logger, error, operation=operation)
                raise error from e

    # Libraries

    def create_library(
        self,
        name: str,
        library_type: LibraryType,
        root_paths: Sequence[str],
    ) -> LibrarySection:
        """Create a library section.

        Raises:
            DomainError: If the name is taken or no root path is given
        """
        if not root_paths:
            raise DomainError(
                ErrorCode.VALIDATION_ERROR,
                "A library needs at least one root path",
                ErrorContext(operation="create_library", additional_data={"name": name}),
            )
        try:
            return self._execute(
                "create_library",
                self._libraries.create_library,
                name,
                library_type,
                root_paths,
                transactional=True,
            )
        except InfrastructureError as e:
            if isinstance(e.original_error, sqlite3.IntegrityError):
                raise DomainError(
                    ErrorCode.VALIDATION_ERROR,
                    f"Library already exists: {name}",
                    ErrorContext(operation="create_library", additional_data={"name": name}),
                    original_error=e.original_error,
                ) from e
            raise

    def get_library(self, library_id: int) -> LibrarySection | None:
        return self._execute("get_library", self._libraries.get_library, library_id)

    def list_libraries(self) -> list[LibrarySection]:
        return self._execute("list_libraries", self._libraries.list_libraries)

    def mark_library_scanned(self, library_id: int, scanned_at: datetime) -> None:
        self._execute(
            "mark_library_scanned",
            self._libraries.mark_library_scanned,
            library_id,
            scanned_at,
        )

    # Items

    def upsert_items(self, nodes: Sequence[MetadataItem]) -> UpsertResult:
        """Insert or update a flattened batch atomically."""
        return self._execute("upsert_items", self._items.upsert_items, nodes, transactional=True)

    def iter_file_snapshots(
        self,
        library_id: int,
        page_size: int = SNAPSHOT_PAGE_SIZE,
    ) -> Iterator[FileSnapshot]:
        """Stream the live, path-backed rows of a library page by page.

        The lock is only held while a page is fetched.
        """
        after = ""
        while True:
            page = self._execute(
                "iter_file_snapshots",
                self._items.fetch_snapshot_page,
                library_id,
                after,
                page_size,
            )
            if not page:
                return
            yield from page
            after = page[-1].path

    def delete_items_by_path(
        self,
        library_id: int,
        paths: Iterable[str],
        *,
        soft: bool = False,
    ) -> int:
        """Delete rows by path, cascading to their descendants.

        Returns:
            Number of listed paths that matched a live row
        """
        return self._execute(
            "delete_items_by_path",
            self._items.delete_items_by_path,
            library_id,
            paths,
            soft=soft,
            transactional=True,
        )

    def count_items(self, library_id: int, *, include_deleted: bool = False) -> int:
        return self._execute(
            "count_items", self._items.count_items, library_id, include_deleted=include_deleted
        )

    def get_item_by_path(self, library_id: int, path: str) -> dict[str, Any] | None:
        return self._execute("get_item_by_path", self._items.get_item_by_path, library_id, path)

    def list_items(self, library_id: int, *, include_deleted: bool = False) -> list[dict[str, Any]]:
        return self._execute(
            "list_items", self._items.list_items, library_id, include_deleted=include_deleted
        )

    # Scans

    def create_scan(self, library_id: int) -> LibraryScan:
        return self._execute("create_scan", self._scans.create_scan, library_id)

    def get_scan(self, scan_id: int) -> LibraryScan | None:
        return self._execute("get_scan", self._scans.get_scan, scan_id)

    def update_scan(self, scan: LibraryScan) -> None:
        self._execute("update_scan", self._scans.update_scan, scan)

    def get_active_scan(self, library_id: int) -> LibraryScan | None:
        return self._execute("get_active_scan", self._scans.get_active_scan, library_id)

    def list_scans(self, library_id: int, limit: int | None = None) -> list[LibraryScan]:
        return self._execute("list_scans", self._scans.list_scans, library_id, limit)

    def list_interrupted_scans(self) -> list[LibraryScan]:
        return self._execute("list_interrupted_scans", self._scans.list_interrupted_scans)

    def save_checkpoint(
        self,
        scan: LibraryScan,
        seen_paths: Iterable[str] = (),
        incomplete_paths: Iterable[str] = (),
    ) -> None:
        """Persist the seen-path log and the scan row in one transaction."""

        def _save() -> None:
            self._scans.record_paths(scan.id, seen_paths, SEEN_KIND)
            self._scans.record_paths(scan.id, incomplete_paths, INCOMPLETE_KIND)
            self._scans.update_scan(scan)

        self._execute("save_checkpoint", _save, transactional=True)

    def load_seen_paths(self, scan_id: int) -> set[str]:
        return self._execute("load_seen_paths", self._scans.load_paths, scan_id, SEEN_KIND)

    def load_incomplete_paths(self, scan_id: int) -> set[str]:
        return self._execute(
            "load_incomplete_paths", self._scans.load_paths, scan_id, INCOMPLETE_KIND
        )

    def clear_seen_paths(self, scan_id: int) -> int:
        return self._execute("clear_seen_paths", self._scans.clear_paths, scan_id)

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            if self.conn is not None:
                self.conn.close()
                self.conn = None
                logger.debug("Catalog connection closed")

    def __enter__(self) -> CatalogDB:
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.close()
