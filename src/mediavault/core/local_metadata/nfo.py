"""Kodi-style ``.nfo`` sidecar reader."""

from __future__ import annotations

import logging
import os
import xml.etree.ElementTree as ET
from collections.abc import Sequence

from mediavault.core.local_metadata.base import LocalMetadataExtractor, LocalMetadataResult
from mediavault.core.models import FileEntry, MetadataItem, MetadataType, PersonCredit
from mediavault.shared.constants import SidecarFormats
from mediavault.shared.errors import DomainError, ErrorCode, ErrorContext

logger = logging.getLogger(__name__)


class NfoSidecarExtractor(LocalMetadataExtractor):
    """Read ``<stem>.nfo`` (or ``movie.nfo`` for movies) next to a video file.

    Recognised elements: title, originaltitle, year, plot, genre, tag,
    studio and actor (name, role).
    """

    name = "nfo"

    _TYPES = frozenset({MetadataType.MOVIE, MetadataType.EPISODE})

    def applies_to(self, item: MetadataItem) -> bool:
        return item.metadata_type in self._TYPES

    def extract(
        self,
        item: MetadataItem,
        file: FileEntry,
        siblings: Sequence[FileEntry],
    ) -> LocalMetadataResult | None:
        sidecar = self._find_sidecar(item, file, siblings)
        if sidecar is None:
            return None

        try:
            root = ET.parse(sidecar.path).getroot()
        except ET.ParseError as e:
            raise DomainError(
                ErrorCode.SIDECAR_PARSE_FAILED,
                f"Invalid NFO file: {sidecar.path}",
                ErrorContext(file_path=sidecar.path, operation="parse_nfo"),
                original_error=e,
            ) from e

        result = LocalMetadataResult(
            title=_text(root, "title"),
            original_title=_text(root, "originaltitle"),
            summary=_text(root, "plot"),
            year=_year(_text(root, "year")),
            genres=_texts(root, "genre"),
            tags=_texts(root, "tag"),
            groups=_texts(root, "studio"),
        )
        for actor in root.findall("actor"):
            name = _text(actor, "name")
            if name:
                result.people.append(PersonCredit(name=name, character=_text(actor, "role")))
        result.applied = True
        logger.debug("Read NFO sidecar %s", sidecar.path)
        return result

    @staticmethod
    def _find_sidecar(
        item: MetadataItem,
        file: FileEntry,
        siblings: Sequence[FileEntry],
    ) -> FileEntry | None:
        by_name = {entry.name.lower(): entry for entry in siblings if not entry.is_directory}
        candidate = by_name.get(f"{file.stem}{SidecarFormats.NFO_EXTENSION}".lower())
        if candidate is None and item.metadata_type == MetadataType.MOVIE:
            candidate = by_name.get(SidecarFormats.MOVIE_NFO)
        if candidate is None or not os.path.isfile(candidate.path):
            return None
        return candidate


def _text(element: ET.Element, tag: str) -> str | None:
    found = element.find(tag)
    if found is None or found.text is None:
        return None
    value = found.text.strip()
    return value or None


def _texts(element: ET.Element, tag: str) -> list[str]:
    values: list[str] = []
    for found in element.findall(tag):
        if found.text and found.text.strip():
            values.append(found.text.strip())
    return values


def _year(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value[:4])
    except ValueError:
        return None
