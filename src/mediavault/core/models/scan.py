"""Library scan record models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class ScanStatus(str, Enum):
    """Lifecycle state of a library scan.

    ``PENDING -> RUNNING -> {COMPLETED | FAILED | CANCELLED}``
    """

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (ScanStatus.COMPLETED, ScanStatus.FAILED, ScanStatus.CANCELLED)

    @property
    def is_active(self) -> bool:
        return self in (ScanStatus.PENDING, ScanStatus.RUNNING)


ACTIVE_STATUSES: tuple[ScanStatus, ...] = (ScanStatus.PENDING, ScanStatus.RUNNING)


class LibraryScan(BaseModel):
    """Persisted record of one scan run.

    Counters are updated at every checkpoint so they stay queryable while
    the scan runs. The resume fields are only meaningful while the scan
    is RUNNING.
    """

    id: int
    library_id: int
    status: ScanStatus = ScanStatus.PENDING
    created_at: datetime | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None

    total_files: int = Field(default=0, ge=0)
    processed_files: int = Field(default=0, ge=0)
    items_added: int = Field(default=0, ge=0)
    items_updated: int = Field(default=0, ge=0)
    items_removed: int = Field(default=0, ge=0)
    error_message: str | None = None

    current_stage: str | None = None
    resume_cursor: str | None = None
    checkpoint_version: int | None = None
    last_checkpoint_at: datetime | None = None

    def reset_progress(self) -> None:
        """Zero counters and drop resume state before a fresh run."""
        self.total_files = 0
        self.processed_files = 0
        self.items_added = 0
        self.items_updated = 0
        self.items_removed = 0
        self.clear_checkpoint()

    def clear_checkpoint(self) -> None:
        self.current_stage = None
        self.resume_cursor = None
        self.checkpoint_version = None
        self.last_checkpoint_at = None

    @property
    def duration_seconds(self) -> float | None:
        if self.started_at is None or self.completed_at is None:
            return None
        return (self.completed_at - self.started_at).total_seconds()
