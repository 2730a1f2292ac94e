"""Transaction manager for the catalog database."""

from __future__ import annotations

import logging
from collections.abc import Generator
from contextlib import contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import sqlite3

logger = logging.getLogger(__name__)


class TransactionManager:
    """Explicit BEGIN/COMMIT/ROLLBACK over an autocommit connection."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        """Initialize transaction manager.

        Args:
            conn: SQLite connection opened with ``isolation_level=None``
        """
        self.conn = conn

    def __enter__(self) -> TransactionManager:
        self.begin()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> bool | None:
        if exc_type is None:
            self.commit()
        else:
            self.rollback()
        return None

    def begin(self) -> None:
        self.conn.execute("BEGIN IMMEDIATE")

    def commit(self) -> None:
        self.conn.execute("COMMIT")

    def rollback(self) -> None:
        self.conn.execute("ROLLBACK")

    @contextmanager
    def transaction(self) -> Generator[None, None, None]:
        """Run the block in one transaction.

        Commits on success, rolls back and re-raises on any exception
        (cancellation included), so a batch is never half written.

        Example:
            >>> with transaction_manager.transaction():
            ...     items.upsert_items(batch)
            ...     scans.update_scan(scan)
        """
        self.begin()
        try:
            yield
        except BaseException:
            self.rollback()
            raise
        self.commit()
