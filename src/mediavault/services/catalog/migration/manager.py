"""Schema management for the catalog database."""

from __future__ import annotations

import logging
import sqlite3

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

REQUIRED_TABLES = (
    "library_sections",
    "section_locations",
    "metadata_items",
    "library_scans",
    "scan_seen_paths",
    "schema_version",
)


class MigrationManager:
    """Creates and validates the catalog schema."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        """Initialize migration manager.

        Args:
            conn: SQLite database connection
        """
        self.conn = conn
        self._current_version = self._get_current_version()

    def get_current_version(self) -> int:
        return self._current_version

    def _get_current_version(self) -> int:
        """Read the schema version (0 for an empty database)."""
        cursor = self.conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name='schema_version'"
        )
        if cursor.fetchone() is None:
            return 0

        cursor = self.conn.execute("SELECT MAX(version) FROM schema_version")
        row = cursor.fetchone()
        return row[0] if row and row[0] is not None else 0

    def create_tables(self) -> None:
        """Create database schema (v1)."""
        schema_sql = """
        CREATE TABLE IF NOT EXISTS library_sections (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL UNIQUE,
            library_type TEXT NOT NULL,
            created_at TEXT NOT NULL,
            last_scanned_at TEXT,

            CHECK (length(name) > 0)
        );

        CREATE TABLE IF NOT EXISTS section_locations (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            library_id INTEGER NOT NULL REFERENCES library_sections(id) ON DELETE CASCADE,
            root_path TEXT NOT NULL,

            UNIQUE (library_id, root_path)
        );

        CREATE TABLE IF NOT EXISTS metadata_items (
            uuid TEXT PRIMARY KEY,
            library_id INTEGER NOT NULL,
            parent_uuid TEXT,
            metadata_type TEXT NOT NULL,
            title TEXT NOT NULL,
            sort_title TEXT,
            original_title TEXT,
            summary TEXT,
            year INTEGER,
            item_index INTEGER,

            -- Backing file; NULL for virtual nodes
            path TEXT,
            size INTEGER,
            mtime REAL,
            is_directory INTEGER NOT NULL DEFAULT 0,

            thumb_uri TEXT,
            art_uri TEXT,

            -- JSON columns
            genres TEXT NOT NULL DEFAULT '[]',
            tags TEXT NOT NULL DEFAULT '[]',
            people TEXT NOT NULL DEFAULT '[]',
            groups_json TEXT NOT NULL DEFAULT '[]',
            extra_fields TEXT NOT NULL DEFAULT '{}',

            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            deleted_at TEXT
        );

        CREATE UNIQUE INDEX IF NOT EXISTS idx_items_library_path
            ON metadata_items(library_id, path) WHERE path IS NOT NULL;
        CREATE INDEX IF NOT EXISTS idx_items_parent ON metadata_items(parent_uuid);

        CREATE TABLE IF NOT EXISTS library_scans (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            library_id INTEGER NOT NULL REFERENCES library_sections(id) ON DELETE CASCADE,
            status TEXT NOT NULL,
            created_at TEXT NOT NULL,
            started_at TEXT,
            completed_at TEXT,

            total_files INTEGER NOT NULL DEFAULT 0,
            processed_files INTEGER NOT NULL DEFAULT 0,
            items_added INTEGER NOT NULL DEFAULT 0,
            items_updated INTEGER NOT NULL DEFAULT 0,
            items_removed INTEGER NOT NULL DEFAULT 0,
            error_message TEXT,

            -- Resume state
            current_stage TEXT,
            resume_cursor TEXT,
            checkpoint_version INTEGER,
            last_checkpoint_at TEXT
        );

        -- At most one pending or running scan per library
        CREATE UNIQUE INDEX IF NOT EXISTS idx_scans_one_active
            ON library_scans(library_id) WHERE status IN ('pending', 'running');
        CREATE INDEX IF NOT EXISTS idx_scans_library ON library_scans(library_id, id);

        CREATE TABLE IF NOT EXISTS scan_seen_paths (
            scan_id INTEGER NOT NULL,
            path TEXT NOT NULL,
            kind TEXT NOT NULL DEFAULT 'seen',

            PRIMARY KEY (scan_id, kind, path),
            CHECK (kind IN ('seen', 'incomplete'))
        ) WITHOUT ROWID;

        CREATE TABLE IF NOT EXISTS schema_version (
            version INTEGER PRIMARY KEY,
            applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP NOT NULL
        );
        """

        self.conn.executescript(schema_sql)
        self.conn.execute(
            "INSERT OR IGNORE INTO schema_version (version) VALUES (?)",
            (SCHEMA_VERSION,),
        )
        self._current_version = SCHEMA_VERSION

        logger.debug("Catalog schema ready (v%d)", SCHEMA_VERSION)

    def validate_schema(self) -> bool:
        """Check that every required table exists."""
        for table in REQUIRED_TABLES:
            cursor = self.conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
                (table,),
            )
            if cursor.fetchone() is None:
                logger.error("Required table '%s' not found", table)
                return False
        return True
