"""Scan record and seen-path operations."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from mediavault.core.models import ACTIVE_STATUSES, LibraryScan, ScanStatus
from mediavault.services.catalog.operations.base import (
    BaseOperation,
    from_db_timestamp,
    to_db_timestamp,
    utc_now,
)
from mediavault.shared.errors import create_catalog_error

logger = logging.getLogger(__name__)

SEEN_KIND = "seen"
INCOMPLETE_KIND = "incomplete"

_SCAN_COLUMNS = (
    "id",
    "library_id",
    "status",
    "created_at",
    "started_at",
    "completed_at",
    "total_files",
    "processed_files",
    "items_added",
    "items_updated",
    "items_removed",
    "error_message",
    "current_stage",
    "resume_cursor",
    "checkpoint_version",
    "last_checkpoint_at",
)
_SELECT_SCAN = f"SELECT {', '.join(_SCAN_COLUMNS)} FROM library_scans"  # noqa: S608
_TIMESTAMP_COLUMNS = frozenset({"created_at", "started_at", "completed_at", "last_checkpoint_at"})


class ScanOperations(BaseOperation):
    """Reads and writes of ``library_scans`` and ``scan_seen_paths``."""

    def create_scan(self, library_id: int) -> LibraryScan:
        self._validate_connection()
        cursor = self.conn.execute(
            "INSERT INTO library_scans (library_id, status, created_at) VALUES (?, ?, ?)",
            (library_id, ScanStatus.PENDING.value, to_db_timestamp(utc_now())),
        )
        scan_id = int(cursor.lastrowid or 0)
        scan = self.get_scan(scan_id)
        if scan is None:
            raise create_catalog_error(
                f"Scan {scan_id} missing right after insert",
                operation="create_scan",
                additional_data={"library_id": library_id},
            )
        return scan

    def get_scan(self, scan_id: int) -> LibraryScan | None:
        self._validate_connection()
        row = self.conn.execute(f"{_SELECT_SCAN} WHERE id = ?", (scan_id,)).fetchone()
        return self._to_scan(row) if row else None

    def update_scan(self, scan: LibraryScan) -> None:
        """Persist every mutable field of ``scan``."""
        self._validate_connection()
        self.conn.execute(
            "UPDATE library_scans SET status = ?, started_at = ?, completed_at = ?, "
            "total_files = ?, processed_files = ?, items_added = ?, items_updated = ?, "
            "items_removed = ?, error_message = ?, current_stage = ?, resume_cursor = ?, "
            "checkpoint_version = ?, last_checkpoint_at = ? WHERE id = ?",
            (
                scan.status.value,
                to_db_timestamp(scan.started_at),
                to_db_timestamp(scan.completed_at),
                scan.total_files,
                scan.processed_files,
                scan.items_added,
                scan.items_updated,
                scan.items_removed,
                scan.error_message,
                scan.current_stage,
                scan.resume_cursor,
                scan.checkpoint_version,
                to_db_timestamp(scan.last_checkpoint_at),
                scan.id,
            ),
        )

    def get_active_scan(self, library_id: int) -> LibraryScan | None:
        self._validate_connection()
        placeholders = ", ".join("?" for _ in ACTIVE_STATUSES)
        row = self.conn.execute(
            f"{_SELECT_SCAN} WHERE library_id = ? AND status IN ({placeholders}) "
            "ORDER BY id DESC LIMIT 1",
            (library_id, *(status.value for status in ACTIVE_STATUSES)),
        ).fetchone()
        return self._to_scan(row) if row else None

    def list_scans(self, library_id: int, limit: int | None = None) -> list[LibraryScan]:
        """Scans of a library, newest first."""
        self._validate_connection()
        sql = f"{_SELECT_SCAN} WHERE library_id = ? ORDER BY id DESC"
        params: tuple[Any, ...] = (library_id,)
        if limit is not None:
            sql += " LIMIT ?"
            params = (library_id, limit)
        return [self._to_scan(row) for row in self.conn.execute(sql, params).fetchall()]

    def list_interrupted_scans(self) -> list[LibraryScan]:
        """Running scans that carry a complete checkpoint."""
        self._validate_connection()
        rows = self.conn.execute(
            f"{_SELECT_SCAN} WHERE status = ? AND current_stage IS NOT NULL "
            "AND resume_cursor IS NOT NULL ORDER BY id",
            (ScanStatus.RUNNING.value,),
        ).fetchall()
        return [self._to_scan(row) for row in rows]

    def record_paths(self, scan_id: int, paths: Iterable[str], kind: str = SEEN_KIND) -> None:
        self._validate_connection()
        self.conn.executemany(
            "INSERT OR IGNORE INTO scan_seen_paths (scan_id, kind, path) VALUES (?, ?, ?)",
            ((scan_id, kind, path) for path in paths),
        )

    def load_paths(self, scan_id: int, kind: str = SEEN_KIND) -> set[str]:
        self._validate_connection()
        rows = self.conn.execute(
            "SELECT path FROM scan_seen_paths WHERE scan_id = ? AND kind = ?",
            (scan_id, kind),
        ).fetchall()
        return {row[0] for row in rows}

    def clear_paths(self, scan_id: int) -> int:
        self._validate_connection()
        cursor = self.conn.execute("DELETE FROM scan_seen_paths WHERE scan_id = ?", (scan_id,))
        return cursor.rowcount

    @staticmethod
    def _to_scan(row: tuple) -> LibraryScan:
        data: dict[str, Any] = dict(zip(_SCAN_COLUMNS, row))
        for column in _TIMESTAMP_COLUMNS:
            data[column] = from_db_timestamp(data[column])
        return LibraryScan.model_validate(data)
