"""Fixtures for pipeline stage tests."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from mediavault.core.models import (
    FileEntry,
    LibraryScan,
    LibrarySection,
    LibraryType,
    SectionLocation,
)
from mediavault.core.pipeline import CancellationToken, ScanCheckpoint, ScanContext, ScanWorkItem


@pytest.fixture
def make_context() -> Callable[..., ScanContext]:
    """Return a helper building a scan context over the given roots.

    Locations get ids 1, 2, ... in argument order.
    """

    def _make_context(
        *roots: Path,
        library_type: LibraryType = LibraryType.MOVIES,
        checkpoint: ScanCheckpoint | None = None,
    ) -> ScanContext:
        locations = [
            SectionLocation(id=index, library_id=1, root_path=str(root))
            for index, root in enumerate(roots, start=1)
        ]
        library = LibrarySection(
            id=1,
            name="Test",
            library_type=library_type,
            locations=locations,
        )
        return ScanContext(library, LibraryScan(id=1, library_id=1), checkpoint)

    return _make_context


@pytest.fixture
def make_item() -> Callable[..., ScanWorkItem]:
    """Return a helper building a work item without touching the disk."""

    def _make_item(
        path: str,
        *,
        is_directory: bool = False,
        size: int = 10,
        mtime: float = 1000.0,
        root: str = "/library",
        is_root: bool = False,
    ) -> ScanWorkItem:
        name = path.rstrip("/").rsplit("/", 1)[-1]
        return ScanWorkItem(
            file=FileEntry(
                path=path,
                name=name,
                is_directory=is_directory,
                size=0 if is_directory else size,
                mtime=mtime,
            ),
            location=SectionLocation(id=1, library_id=1, root_path=root),
            is_root=is_root,
        )

    return _make_item


@pytest.fixture
def cancel() -> CancellationToken:
    return CancellationToken()
