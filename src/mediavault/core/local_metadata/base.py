"""Local (sidecar) metadata extraction contract."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field

from mediavault.core.models import FileEntry, MetadataItem, PersonCredit


@dataclass
class LocalMetadataResult:
    """Metadata read from files next to a media item.

    ``applied`` is True when the extractor found anything at all.
    """

    people: list[PersonCredit] = field(default_factory=list)
    groups: list[str] = field(default_factory=list)
    genres: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    title: str | None = None
    original_title: str | None = None
    year: int | None = None
    summary: str | None = None
    thumb_uri: str | None = None
    art_uri: str | None = None
    applied: bool = False

    def merge(self, other: LocalMetadataResult) -> None:
        """Fold ``other`` into this result; earlier values win for scalars."""
        _union(self.genres, other.genres)
        _union(self.tags, other.tags)
        self.people.extend(other.people)
        self.groups.extend(other.groups)
        for name in ("title", "original_title", "year", "summary", "thumb_uri", "art_uri"):
            if getattr(self, name) is None:
                setattr(self, name, getattr(other, name))
        self.applied = self.applied or other.applied


class LocalMetadataExtractor(ABC):
    """Reads sidecar metadata for one resolved item."""

    name: str = "extractor"

    def applies_to(self, item: MetadataItem) -> bool:
        return True

    @abstractmethod
    def extract(
        self,
        item: MetadataItem,
        file: FileEntry,
        siblings: Sequence[FileEntry],
    ) -> LocalMetadataResult | None:
        """Return what was found, or None when no sidecar exists.

        Raises:
            DomainError: If a sidecar exists but cannot be parsed
            OSError: If a sidecar cannot be read
        """


def apply_local_metadata(item: MetadataItem, result: LocalMetadataResult) -> None:
    """Copy ``result`` onto ``item``.

    Lists are merged (genres and tags without duplicates); scalar fields
    are only filled in where the resolver left them empty.
    """
    _union(item.genres, result.genres)
    _union(item.tags, result.tags)
    item.people.extend(result.people)
    item.groups.extend(result.groups)
    if result.title and not item.title:
        item.title = result.title
    if result.original_title and not item.original_title:
        item.original_title = result.original_title
    if result.year is not None and item.year is None:
        item.year = result.year
    if result.summary and not item.summary:
        item.summary = result.summary
    if result.thumb_uri and not item.thumb_uri:
        item.thumb_uri = result.thumb_uri
    if result.art_uri and not item.art_uri:
        item.art_uri = result.art_uri


def _union(target: list[str], values: Sequence[str]) -> None:
    seen = {value.casefold() for value in target}
    for value in values:
        if value.casefold() not in seen:
            seen.add(value.casefold())
            target.append(value)
