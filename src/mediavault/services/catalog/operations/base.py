"""Base operation class for catalog operations."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING

import orjson

from mediavault.shared.errors import ErrorCode, ErrorContext, InfrastructureError

if TYPE_CHECKING:
    import sqlite3
    from typing import Any

logger = logging.getLogger(__name__)

# Stay well below SQLite's host parameter limit
MAX_SQL_PARAMETERS = 500


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_db_timestamp(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def from_db_timestamp(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def dump_json(value: Any) -> str:
    return orjson.dumps(value).decode("utf-8")


def load_json(value: str | bytes | None, default: Any) -> Any:
    if not value:
        return default
    return orjson.loads(value)


class BaseOperation:
    """Base class for catalog operations with shared functionality."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        """Initialize base operation.

        Args:
            conn: SQLite database connection
        """
        self.conn = conn

    def _validate_connection(self) -> None:
        """Validate database connection is available.

        Raises:
            InfrastructureError: If connection is not initialized
        """
        if self.conn is None:
            raise InfrastructureError(
                ErrorCode.CATALOG_ERROR,
                "Catalog connection not initialized",
                ErrorContext(operation="validate_connection"),
            )
