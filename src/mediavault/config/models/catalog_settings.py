"""Catalog database and job runner configuration models."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from mediavault.shared.constants import FileSystem, WorkerConfig


def _default_database_path() -> str:
    return str(Path.home() / FileSystem.HOME_DIR / FileSystem.DATABASE_FILE)


class DatabaseSettings(BaseModel):
    """Catalog database location."""

    path: str = Field(
        default_factory=_default_database_path,
        description="Path of the sqlite catalog database",
    )


class JobSettings(BaseModel):
    """Background scan execution."""

    max_concurrent_scans: int = Field(
        default=WorkerConfig.DEFAULT,
        gt=0,
        description="Worker threads available for scan executions",
    )
