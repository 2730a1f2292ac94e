"""Movie extras resolver.

Trailers, featurettes and the like are cataloged as extras of the movie
they belong to. An extra is either a video in a category folder next to
the movie (``Alien (1979)/Trailers/teaser.mkv``) or a video whose name
ends in a category suffix (``Alien (1979)/alien-trailer.mkv``).
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from mediavault.core.models import (
    FileEntry,
    LibraryType,
    MetadataItem,
    MetadataType,
    path_identifier,
)
from mediavault.core.resolvers.base import ItemResolveArgs, ItemResolver
from mediavault.core.resolvers.naming import clean_title, sort_title
from mediavault.shared.constants import VideoFormats

logger = logging.getLogger(__name__)

EXTRAS_FOLDERS = frozenset(
    {
        "behind the scenes",
        "deleted scenes",
        "extras",
        "featurettes",
        "interviews",
        "other",
        "samples",
        "scenes",
        "shorts",
        "trailers",
        "teasers",
        "bonus",
    }
)

_SAMPLE = re.compile(r"\bsample\b", re.IGNORECASE)
_INLINE_SUFFIX = re.compile(
    r"[\s._-](?P<category>behind[\s._-]?the[\s._-]?scenes|deleted[\s._-]?scenes?|featurettes?"
    r"|interviews?|bloopers?|scenes?|shorts?|teasers?|trailers?|promos?|previews?"
    r"|bonus|extras?|other)$",
    re.IGNORECASE,
)
_PART = re.compile(r"[\s._-]*(?:cd|disc|part|pt)[\s._-]?(\d{1,2})(?=[\s._-]|$)", re.IGNORECASE)
_TOKEN_SEPARATORS = re.compile(r"[\s._-]+")

_CATEGORIES = {
    "behindthescene": "behind_the_scenes",
    "deleted": "deleted_scene",
    "deletedscene": "deleted_scene",
    "featurette": "featurette",
    "interview": "interview",
    "scene": "scene",
    "short": "short",
    "trailer": "trailer",
    "teaser": "trailer",
    "promo": "trailer",
    "preview": "trailer",
}


def is_sample(file: FileEntry) -> bool:
    return _SAMPLE.search(file.stem) is not None


def has_extra_suffix(stem: str) -> bool:
    return _INLINE_SUFFIX.search(stem) is not None


def in_extras_folder(file: FileEntry) -> bool:
    return os.path.basename(file.parent).lower() in EXTRAS_FOLDERS


def extra_category(token: str) -> str:
    """Map a folder name or name suffix to an extra category ("other" when unknown)."""
    key = _TOKEN_SEPARATORS.sub("", token).lower().rstrip("s")
    return _CATEGORIES.get(key, "other")


@dataclass(frozen=True)
class ExtraClassification:
    category: str
    title: str
    movie_folder: str


def classify_extra(file: FileEntry) -> ExtraClassification | None:
    """Work out whether ``file`` is an extra and which folder holds its movie."""
    if in_extras_folder(file):
        folder = os.path.basename(file.parent)
        title = clean_title(file.stem) or file.stem
        return ExtraClassification(extra_category(folder), title, os.path.dirname(file.parent))

    match = _INLINE_SUFFIX.search(file.stem)
    if match is not None:
        title = clean_title(file.stem[: match.start()])
        if title:
            return ExtraClassification(extra_category(match.group("category")), title, file.parent)
    return None


class ExtrasResolver(ItemResolver):
    """Claim trailers and other extras and link them to their movie.

    The owning movie is the only feature video in the movie folder, or the
    first part of a split movie. Extras whose owner is missing or ambiguous
    stay unclaimed.
    """

    name = "extras"
    order = 50
    library_types = frozenset({LibraryType.MOVIES})

    def resolve(self, args: ItemResolveArgs) -> MetadataItem | None:
        file = args.file
        if args.is_root or file.is_directory or file.extension not in VideoFormats.EXTENSIONS:
            return None
        if is_sample(file) or os.path.basename(file.parent).lower() == "samples":
            return None

        classification = classify_extra(file)
        if classification is None:
            return None

        if classification.movie_folder == file.parent and args.siblings is not None:
            candidates: Iterable[FileEntry] = args.siblings
        else:
            candidates = _list_files(classification.movie_folder)
        owner = _owner_movie(candidates)
        if owner is None:
            logger.debug(
                "No single movie owns extra %s in %s",
                file.path,
                classification.movie_folder,
            )
            return None

        item = MetadataItem(
            metadata_type=MetadataType.EXTRA,
            title=classification.title,
            sort_title=sort_title(classification.title),
            path=file.path,
            size=file.size,
            mtime=file.mtime,
            parent_uuid=path_identifier(args.library_id, owner.path),
        )
        item.extra_fields["extra_type"] = classification.category
        return item


def _list_files(folder: str) -> list[FileEntry]:
    entries: list[FileEntry] = []
    try:
        with os.scandir(folder) as it:
            for dir_entry in it:
                try:
                    entries.append(FileEntry.from_dir_entry(dir_entry))
                except OSError:
                    continue
    except OSError as e:
        logger.debug("Cannot list movie folder %s: %s", folder, e)
    return entries


def _owner_movie(entries: Iterable[FileEntry]) -> FileEntry | None:
    features = sorted(
        (
            entry
            for entry in entries
            if not entry.is_directory
            and entry.extension in VideoFormats.EXTENSIONS
            and not is_sample(entry)
            and not has_extra_suffix(entry.stem)
        ),
        key=lambda entry: entry.name.lower(),
    )
    if not features:
        return None
    if len(features) == 1:
        return features[0]
    return features[0] if _is_single_stack(features) else None


def _is_single_stack(features: Sequence[FileEntry]) -> bool:
    """True when every video is a part of the same split movie."""
    bases: set[str] = set()
    for entry in features:
        match = _PART.search(entry.stem)
        if match is None:
            return False
        bases.add(clean_title(entry.stem[: match.start()] + entry.stem[match.end():]).lower())
    return len(bases) == 1
