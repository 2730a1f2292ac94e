"""Scan and filter configuration models.

This module contains configuration models for the library scan pipeline
and the traversal ignore rules.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from mediavault.shared.constants import ScanDefaults


class FilterSettings(BaseModel):
    """Configuration for the traversal ignore rules.

    The built-in junk names always apply; these settings extend them.
    """

    extra_ignored_directories: list[str] = Field(
        default_factory=list,
        description="Additional directory names to skip (case-insensitive)",
    )
    extra_ignored_files: list[str] = Field(
        default_factory=list,
        description="Additional file names to skip (case-insensitive)",
    )
    honor_dot_ignore: bool = Field(
        default=True,
        description="Skip directories containing an empty .ignore file",
    )

    @field_validator("extra_ignored_directories", "extra_ignored_files")
    @classmethod
    def validate_names(cls, v: list[str]) -> list[str]:
        """Normalize names to lower case and reject blanks."""
        cleaned = [name.strip().lower() for name in v]
        if any(not name for name in cleaned):
            msg = "Ignored names must be non-empty strings"
            raise ValueError(msg)
        return cleaned


class ScanSettings(BaseModel):
    """Configuration for the library scan pipeline.

    Batching, checkpointing, reconciliation and memory tuning.
    """

    batch_size: int = Field(
        default=ScanDefaults.BATCH_SIZE,
        gt=0,
        description="Number of resolved items flushed to the catalog per batch",
    )
    delete_chunk_size: int = Field(
        default=ScanDefaults.DELETE_CHUNK_SIZE,
        gt=0,
        description="Maximum number of paths removed per delete statement",
    )
    prune_interval: int = Field(
        default=ScanDefaults.PRUNE_INTERVAL,
        gt=0,
        description="Items between ancestor cache prune cycles",
    )
    gc_interval: int = Field(
        default=ScanDefaults.GC_INTERVAL,
        ge=0,
        description="Files between young-generation GC hints (0 disables)",
    )
    checkpoint_item_threshold: int = Field(
        default=ScanDefaults.CHECKPOINT_ITEM_THRESHOLD,
        gt=0,
        description="Items processed between checkpoints",
    )
    checkpoint_interval_seconds: float = Field(
        default=ScanDefaults.CHECKPOINT_INTERVAL_SECONDS,
        gt=0,
        description="Maximum seconds between checkpoints",
    )
    prefetch_queue_size: int = Field(
        default=ScanDefaults.PREFETCH_QUEUE_SIZE,
        ge=0,
        description="Capacity of the traversal prefetch queue (0 disables prefetch)",
    )
    soft_delete: bool = Field(
        default=False,
        description="Mark removed items deleted instead of removing their rows",
    )

    filter_config: FilterSettings = Field(
        default_factory=FilterSettings,
        description="Traversal ignore rules",
        alias="filter",
    )

    model_config = {"populate_by_name": True}
