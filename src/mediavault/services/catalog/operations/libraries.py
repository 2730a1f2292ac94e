"""Library section operations."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime

from mediavault.core.models import LibrarySection, LibraryType, SectionLocation, normalize_path
from mediavault.services.catalog.operations.base import (
    BaseOperation,
    from_db_timestamp,
    to_db_timestamp,
    utc_now,
)
from mediavault.shared.errors import create_catalog_error

logger = logging.getLogger(__name__)


class LibraryOperations(BaseOperation):
    """Create and read library sections with their locations."""

    def create_library(
        self,
        name: str,
        library_type: LibraryType,
        root_paths: Sequence[str],
    ) -> LibrarySection:
        """Insert a library and its root locations.

        Returns:
            The stored library section
        """
        self._validate_connection()
        cursor = self.conn.execute(
            "INSERT INTO library_sections (name, library_type, created_at) VALUES (?, ?, ?)",
            (name, library_type.value, to_db_timestamp(utc_now())),
        )
        library_id = int(cursor.lastrowid or 0)

        for root_path in dict.fromkeys(normalize_path(path) for path in root_paths):
            self.conn.execute(
                "INSERT INTO section_locations (library_id, root_path) VALUES (?, ?)",
                (library_id, root_path),
            )

        logger.debug("Created library %s (%s) with %d locations", name, library_type.value, len(root_paths))
        library = self.get_library(library_id)
        if library is None:
            raise create_catalog_error(
                f"Library {library_id} missing right after insert",
                operation="create_library",
                additional_data={"library_id": library_id},
            )
        return library

    def get_library(self, library_id: int) -> LibrarySection | None:
        self._validate_connection()
        row = self.conn.execute(
            "SELECT id, name, library_type, created_at, last_scanned_at "
            "FROM library_sections WHERE id = ?",
            (library_id,),
        ).fetchone()
        if row is None:
            return None
        return self._to_library(row)

    def list_libraries(self) -> list[LibrarySection]:
        self._validate_connection()
        rows = self.conn.execute(
            "SELECT id, name, library_type, created_at, last_scanned_at "
            "FROM library_sections ORDER BY id"
        ).fetchall()
        return [self._to_library(row) for row in rows]

    def mark_library_scanned(self, library_id: int, scanned_at: datetime) -> None:
        self._validate_connection()
        self.conn.execute(
            "UPDATE library_sections SET last_scanned_at = ? WHERE id = ?",
            (to_db_timestamp(scanned_at), library_id),
        )

    def _to_library(self, row: tuple) -> LibrarySection:
        library_id = row[0]
        locations = [
            SectionLocation(id=loc[0], library_id=library_id, root_path=loc[1])
            for loc in self.conn.execute(
                "SELECT id, root_path FROM section_locations WHERE library_id = ? ORDER BY id",
                (library_id,),
            ).fetchall()
        ]
        return LibrarySection(
            id=library_id,
            name=row[1],
            library_type=LibraryType(row[2]),
            locations=locations,
            created_at=from_db_timestamp(row[3]),
            last_scanned_at=from_db_timestamp(row[4]),
        )
