"""Local artwork discovery."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from mediavault.core.local_metadata.base import LocalMetadataExtractor, LocalMetadataResult
from mediavault.core.models import FileEntry, MetadataItem, MetadataType
from mediavault.shared.constants import ImageFormats, SidecarFormats


class LocalArtworkExtractor(LocalMetadataExtractor):
    """Find poster and backdrop images among an item's siblings.

    Poster lookup order: ``<stem>-poster.<ext>``, ``<stem>.<ext>``, then
    ``poster``/``folder``/``cover``. Backdrops: ``<stem>-fanart.<ext>``,
    then ``fanart``/``backdrop``/``background``.
    """

    name = "artwork"

    def applies_to(self, item: MetadataItem) -> bool:
        return item.metadata_type != MetadataType.PHOTO

    def extract(
        self,
        item: MetadataItem,
        file: FileEntry,
        siblings: Sequence[FileEntry],
    ) -> LocalMetadataResult | None:
        images = {
            entry.stem.lower(): entry
            for entry in siblings
            if not entry.is_directory and entry.extension in ImageFormats.ARTWORK_EXTENSIONS
        }
        if not images:
            return None

        stem = file.stem.lower()
        poster = self._first(
            images, (f"{stem}-poster", stem, *SidecarFormats.POSTER_NAMES)
        )
        backdrop = self._first(
            images, (f"{stem}-fanart", *SidecarFormats.BACKDROP_NAMES)
        )
        if poster is None and backdrop is None:
            return None

        return LocalMetadataResult(
            thumb_uri=Path(poster.path).as_uri() if poster else None,
            art_uri=Path(backdrop.path).as_uri() if backdrop else None,
            applied=True,
        )

    @staticmethod
    def _first(images: dict[str, FileEntry], names: Sequence[str]) -> FileEntry | None:
        for name in names:
            if name in images:
                return images[name]
        return None
