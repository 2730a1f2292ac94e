"""Embedded tag reader for audio and video files."""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from typing import Any

from mutagen import File as MutagenFile
from mutagen import MutagenError

from mediavault.core.local_metadata.base import LocalMetadataExtractor, LocalMetadataResult
from mediavault.core.models import FileEntry, MetadataItem, MetadataType
from mediavault.shared.errors import DomainError, ErrorCode, ErrorContext

logger = logging.getLogger(__name__)

_YEAR = re.compile(r"^\s*(\d{4})")


class EmbeddedTagExtractor(LocalMetadataExtractor):
    """Read tags stored inside the media file itself.

    Uses mutagen's "easy" key names, so ID3, Vorbis comments and MP4 atoms
    map to the same fields: ``title``, ``artist`` and ``albumartist``
    (groups), ``genre`` and ``date`` (year).
    """

    name = "embedded_tags"

    _TYPES = frozenset(
        {MetadataType.TRACK, MetadataType.MOVIE, MetadataType.EPISODE, MetadataType.EXTRA}
    )

    def applies_to(self, item: MetadataItem) -> bool:
        return item.metadata_type in self._TYPES

    def extract(
        self,
        item: MetadataItem,
        file: FileEntry,
        siblings: Sequence[FileEntry],
    ) -> LocalMetadataResult | None:
        try:
            media = MutagenFile(file.path, easy=True)
        except MutagenError as e:
            raise DomainError(
                ErrorCode.EMBEDDED_TAGS_UNREADABLE,
                f"Cannot read embedded tags: {file.path}",
                ErrorContext(file_path=file.path, operation="read_embedded_tags"),
                original_error=e,
            ) from e

        tags = getattr(media, "tags", None) if media is not None else None
        if not tags:
            logger.debug("No embedded tags in %s", file.path)
            return None

        groups: list[str] = []
        for key in ("artist", "albumartist"):
            for value in _values(tags, key):
                if value not in groups:
                    groups.append(value)

        titles = _values(tags, "title")
        dates = _values(tags, "date")
        result = LocalMetadataResult(
            title=titles[0] if titles else None,
            year=_year(dates[0]) if dates else None,
            genres=_values(tags, "genre"),
            groups=groups,
        )
        result.applied = bool(result.title or result.year or result.genres or result.groups)
        return result if result.applied else None


def _values(tags: Any, key: str) -> list[str]:
    try:
        raw = tags.get(key)
    except (KeyError, ValueError):
        return []
    if raw is None:
        return []
    if isinstance(raw, str):
        raw = [raw]
    return [str(value).strip() for value in raw if str(value).strip()]


def _year(value: str) -> int | None:
    match = _YEAR.match(value)
    return int(match.group(1)) if match else None
