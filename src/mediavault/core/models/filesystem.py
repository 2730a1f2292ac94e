"""File system descriptors used by the scan pipeline."""

from __future__ import annotations

import os
from dataclasses import dataclass


def normalize_path(path: str | os.PathLike[str]) -> str:
    """Return the absolute, normalized form of ``path`` used as catalog key."""
    return os.path.normpath(os.path.abspath(os.fspath(path)))


def path_key(path: str) -> str:
    """Return the comparison key of a normalized path (case-folded where the OS is)."""
    return os.path.normcase(path)


def is_under(path: str, prefix: str) -> bool:
    """Check whether ``path`` equals ``prefix`` or lies below it."""
    path_k = path_key(path)
    prefix_k = path_key(prefix).rstrip(os.sep)
    return path_k == prefix_k or path_k.startswith(prefix_k + os.sep)


@dataclass(frozen=True)
class FileEntry:
    """A file or directory observed on disk.

    Attributes:
        path: Absolute normalized path
        name: Final path component
        is_directory: True for directories
        size: Size in bytes (0 for directories)
        mtime: Modification time as Unix timestamp
    """

    path: str
    name: str
    is_directory: bool
    size: int = 0
    mtime: float = 0.0

    @property
    def extension(self) -> str:
        """Lower-cased extension including the dot, empty for directories."""
        if self.is_directory:
            return ""
        return os.path.splitext(self.name)[1].lower()

    @property
    def stem(self) -> str:
        """File name without its extension."""
        if self.is_directory:
            return self.name
        return os.path.splitext(self.name)[0]

    @property
    def parent(self) -> str:
        return os.path.dirname(self.path)

    @classmethod
    def from_dir_entry(cls, entry: os.DirEntry[str]) -> FileEntry:
        """Build a descriptor from an ``os.scandir`` entry.

        Raises:
            OSError: If the entry cannot be stat'ed (e.g. it vanished)
        """
        is_directory = entry.is_dir(follow_symlinks=True)
        stat = entry.stat(follow_symlinks=True)
        return cls(
            path=normalize_path(entry.path),
            name=entry.name,
            is_directory=is_directory,
            size=0 if is_directory else stat.st_size,
            mtime=stat.st_mtime,
        )

    @classmethod
    def from_path(cls, path: str | os.PathLike[str]) -> FileEntry:
        """Build a descriptor by stat'ing ``path``.

        Raises:
            OSError: If the path does not exist or cannot be stat'ed
        """
        normalized = normalize_path(path)
        stat = os.stat(normalized)
        is_directory = os.path.isdir(normalized)
        return cls(
            path=normalized,
            name=os.path.basename(normalized) or normalized,
            is_directory=is_directory,
            size=0 if is_directory else stat.st_size,
            mtime=stat.st_mtime,
        )


@dataclass(frozen=True)
class FileSnapshot:
    """What the catalog knew about a path at scan start."""

    path: str
    size: int | None
    mtime: float | None
    is_directory: bool = False
