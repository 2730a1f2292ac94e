"""Movie resolver."""

from __future__ import annotations

import os
import re
from collections.abc import Sequence

from mediavault.core.models import FileEntry, LibraryType, MetadataItem, MetadataType, path_key
from mediavault.core.resolvers.base import ItemResolveArgs, ItemResolver
from mediavault.core.resolvers.extras import has_extra_suffix, in_extras_folder, is_sample
from mediavault.core.resolvers.naming import (
    clean_title,
    has_bracketed_year,
    parse_title_year,
    sort_title,
)
from mediavault.shared.constants import VideoFormats

_PART = re.compile(r"[\s._-]*(?:cd|disc|part|pt)[\s._-]?(\d{1,2})(?=[\s._-]|$)", re.IGNORECASE)


class MovieResolver(ItemResolver):
    """Claim video files in movie libraries.

    The title and year come from a ``Title (YYYY)`` parent folder when there
    is one, otherwise from the file name. Split movies (``cd1``/``part2``)
    record their part number when a sibling shares the same base name.
    """

    name = "movie"
    order = 20
    library_types = frozenset({LibraryType.MOVIES})

    def resolve(self, args: ItemResolveArgs) -> MetadataItem | None:
        file = args.file
        if args.is_root or file.is_directory or file.extension not in VideoFormats.EXTENSIONS:
            return None

        if in_extras_folder(file) or is_sample(file) or has_extra_suffix(file.stem):
            return None

        parent_name = os.path.basename(file.parent)
        base_name, part = self._split_part(file, args.siblings or ())

        in_movie_folder = path_key(file.parent) != path_key(args.location_root)
        if in_movie_folder and has_bracketed_year(parent_name):
            title, year = parse_title_year(parent_name)
        else:
            title, year = parse_title_year(base_name)

        item = MetadataItem(
            metadata_type=MetadataType.MOVIE,
            title=title,
            sort_title=sort_title(title),
            year=year,
            path=file.path,
            size=file.size,
            mtime=file.mtime,
        )
        if part is not None:
            item.extra_fields["part"] = part
        return item

    @staticmethod
    def _split_part(file: FileEntry, siblings: Sequence[FileEntry]) -> tuple[str, int | None]:
        """Strip a part token when another video shares the same base name."""
        match = _PART.search(file.stem)
        if match is None:
            return file.stem, None

        base = _strip_part(file.stem, match)
        for sibling in siblings:
            if sibling.path == file.path or sibling.is_directory:
                continue
            if sibling.extension not in VideoFormats.EXTENSIONS:
                continue
            sibling_match = _PART.search(sibling.stem)
            if sibling_match and _strip_part(sibling.stem, sibling_match).lower() == base.lower():
                return base, int(match.group(1))
        return file.stem, None


def _strip_part(stem: str, match: re.Match[str]) -> str:
    return clean_title(stem[: match.start()] + stem[match.end():])
