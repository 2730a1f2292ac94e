"""Library section models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class LibraryType(str, Enum):
    """Kind of media a library section holds."""

    MOVIES = "movies"
    TV_SHOWS = "tv"
    MUSIC = "music"
    PHOTOS = "photos"


class SectionLocation(BaseModel):
    """A root directory belonging to a library section."""

    id: int = Field(..., description="Location identifier")
    library_id: int = Field(..., description="Owning library section")
    root_path: str = Field(..., description="Absolute root directory path")


class LibrarySection(BaseModel):
    """A library section and its root locations."""

    id: int
    name: str
    library_type: LibraryType
    locations: list[SectionLocation] = Field(default_factory=list)
    created_at: datetime | None = None
    last_scanned_at: datetime | None = Field(
        default=None,
        description="Completion time of the last successful scan",
    )
