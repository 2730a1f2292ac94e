"""Metadata item operations: upsert, snapshots and path-based deletion."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from mediavault.core.models import FileSnapshot, MetadataItem
from mediavault.services.catalog.operations.base import (
    MAX_SQL_PARAMETERS,
    BaseOperation,
    dump_json,
    load_json,
    to_db_timestamp,
    utc_now,
)

logger = logging.getLogger(__name__)

# Columns written by an upsert, in parameter order
_ITEM_COLUMNS = (
    "uuid",
    "library_id",
    "parent_uuid",
    "metadata_type",
    "title",
    "sort_title",
    "original_title",
    "summary",
    "year",
    "item_index",
    "path",
    "size",
    "mtime",
    "is_directory",
    "thumb_uri",
    "art_uri",
    "genres",
    "tags",
    "people",
    "groups_json",
    "extra_fields",
)
_JSON_COLUMNS = {
    "genres": [],
    "tags": [],
    "people": [],
    "groups_json": [],
    "extra_fields": {},
}

_UPSERT_SQL = (
    f"INSERT INTO metadata_items ({', '.join(_ITEM_COLUMNS)}, created_at, updated_at, deleted_at) "
    f"VALUES ({', '.join('?' for _ in _ITEM_COLUMNS)}, ?, ?, NULL) "
    "ON CONFLICT(uuid) DO UPDATE SET "
    + ", ".join(f"{column} = excluded.{column}" for column in _ITEM_COLUMNS[1:])
    + ", updated_at = excluded.updated_at, deleted_at = NULL"
)


@dataclass(frozen=True)
class UpsertResult:
    added: int = 0
    updated: int = 0


class ItemOperations(BaseOperation):
    """Writes and reads of ``metadata_items`` rows."""

    def upsert_items(self, nodes: Sequence[MetadataItem]) -> UpsertResult:
        """Insert or update flattened nodes.

        Nodes must already carry ``uuid`` and ``library_id``. A row that
        exists but is soft-deleted is revived and counted as added.
        """
        self._validate_connection()
        if not nodes:
            return UpsertResult()

        live = self._existing_live_uuids([node.uuid for node in nodes if node.uuid])
        now = to_db_timestamp(utc_now())
        self.conn.executemany(
            _UPSERT_SQL,
            [(*self._to_row(node), now, now) for node in nodes],
        )
        updated = sum(1 for node in nodes if node.uuid in live)
        return UpsertResult(added=len(nodes) - updated, updated=updated)

    def _existing_live_uuids(self, uuids: Sequence[str]) -> set[str]:
        live: set[str] = set()
        for start in range(0, len(uuids), MAX_SQL_PARAMETERS):
            chunk = uuids[start : start + MAX_SQL_PARAMETERS]
            placeholders = ", ".join("?" for _ in chunk)
            rows = self.conn.execute(
                f"SELECT uuid FROM metadata_items WHERE deleted_at IS NULL AND uuid IN ({placeholders})",  # noqa: S608
                chunk,
            ).fetchall()
            live.update(row[0] for row in rows)
        return live

    @staticmethod
    def _to_row(node: MetadataItem) -> tuple[Any, ...]:
        return (
            node.uuid,
            node.library_id,
            node.parent_uuid,
            node.metadata_type.value,
            node.title,
            node.sort_title,
            node.original_title,
            node.summary,
            node.year,
            node.index,
            node.path,
            node.size,
            node.mtime,
            int(node.is_directory),
            node.thumb_uri,
            node.art_uri,
            dump_json(node.genres),
            dump_json(node.tags),
            dump_json([person.to_dict() for person in node.people]),
            dump_json(node.groups),
            dump_json(node.extra_fields),
        )

    def fetch_snapshot_page(
        self,
        library_id: int,
        after_path: str,
        limit: int,
    ) -> list[FileSnapshot]:
        """One keyset page of live, path-backed rows ordered by path."""
        self._validate_connection()
        rows = self.conn.execute(
            "SELECT path, size, mtime, is_directory FROM metadata_items "
            "WHERE library_id = ? AND path IS NOT NULL AND deleted_at IS NULL AND path > ? "
            "ORDER BY path LIMIT ?",
            (library_id, after_path, limit),
        ).fetchall()
        return [
            FileSnapshot(path=row[0], size=row[1], mtime=row[2], is_directory=bool(row[3]))
            for row in rows
        ]

    def delete_items_by_path(
        self,
        library_id: int,
        paths: Iterable[str],
        *,
        soft: bool,
    ) -> int:
        """Delete live rows with the given paths and all their descendants.

        Returns:
            Number of live rows whose path was listed
        """
        self._validate_connection()
        self.conn.execute("CREATE TEMP TABLE IF NOT EXISTS doomed_paths (path TEXT PRIMARY KEY)")
        self.conn.execute("DELETE FROM temp.doomed_paths")
        self.conn.executemany(
            "INSERT OR IGNORE INTO temp.doomed_paths (path) VALUES (?)",
            ((path,) for path in paths),
        )

        matched = self.conn.execute(
            "SELECT COUNT(*) FROM metadata_items WHERE library_id = ? AND deleted_at IS NULL "
            "AND path IN (SELECT path FROM temp.doomed_paths)",
            (library_id,),
        ).fetchone()[0]

        doomed_cte = (
            "WITH RECURSIVE doomed(uuid) AS ("
            " SELECT uuid FROM metadata_items"
            " WHERE library_id = ? AND path IN (SELECT path FROM temp.doomed_paths)"
            " UNION"
            " SELECT m.uuid FROM metadata_items m JOIN doomed d ON m.parent_uuid = d.uuid"
            ") "
        )
        if soft:
            self.conn.execute(
                doomed_cte + "UPDATE metadata_items SET deleted_at = ? "
                "WHERE deleted_at IS NULL AND uuid IN (SELECT uuid FROM doomed)",
                (library_id, to_db_timestamp(utc_now())),
            )
        else:
            self.conn.execute(
                doomed_cte + "DELETE FROM metadata_items WHERE uuid IN (SELECT uuid FROM doomed)",
                (library_id,),
            )
        self.conn.execute("DELETE FROM temp.doomed_paths")
        return int(matched)

    def count_items(self, library_id: int, *, include_deleted: bool = False) -> int:
        self._validate_connection()
        sql = "SELECT COUNT(*) FROM metadata_items WHERE library_id = ?"
        if not include_deleted:
            sql += " AND deleted_at IS NULL"
        return int(self.conn.execute(sql, (library_id,)).fetchone()[0])

    def get_item_by_path(self, library_id: int, path: str) -> dict[str, Any] | None:
        self._validate_connection()
        cursor = self.conn.execute(
            "SELECT * FROM metadata_items WHERE library_id = ? AND path = ?",
            (library_id, path),
        )
        row = cursor.fetchone()
        if row is None:
            return None
        return self._to_dict(cursor.description, row)

    def list_items(self, library_id: int, *, include_deleted: bool = False) -> list[dict[str, Any]]:
        self._validate_connection()
        sql = "SELECT * FROM metadata_items WHERE library_id = ?"
        if not include_deleted:
            sql += " AND deleted_at IS NULL"
        cursor = self.conn.execute(sql + " ORDER BY path, uuid", (library_id,))
        return [self._to_dict(cursor.description, row) for row in cursor.fetchall()]

    @staticmethod
    def _to_dict(description: Any, row: tuple) -> dict[str, Any]:
        record = {column[0]: value for column, value in zip(description, row)}
        for column, default in _JSON_COLUMNS.items():
            record[column] = load_json(record.get(column), default)
        record["groups"] = record.pop("groups_json")
        record["is_directory"] = bool(record["is_directory"])
        return record
