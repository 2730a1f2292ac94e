"""TV show, season and episode resolvers.

A show is a folder directly under a TV location. Seasons are folders
inside a resolved show. Episodes are video files carrying an ``S01E02``
or ``1x02`` token, or numbered files inside a season folder.
"""

from __future__ import annotations

import re

from mediavault.core.models import LibraryType, MetadataItem, MetadataType, path_key
from mediavault.core.resolvers.base import ItemResolveArgs, ItemResolver
from mediavault.core.resolvers.naming import clean_title, parse_title_year, sort_title
from mediavault.shared.constants import VideoFormats

_SEASON_FOLDER = re.compile(r"^(?:season|series|saison|staffel)[\s._-]*(\d{1,4})$", re.IGNORECASE)
_SHORT_SEASON_FOLDER = re.compile(r"^s(\d{1,4})$", re.IGNORECASE)
_SPECIALS_FOLDER = re.compile(r"^specials?$", re.IGNORECASE)

_SXXEYY = re.compile(r"[Ss](\d{1,4})[\s._-]*[Ee](\d{1,4})")
_NXNN = re.compile(r"(?<!\d)(\d{1,2})x(\d{2,3})(?!\d)")
_NUMBERED = re.compile(r"^(?:e|ep|episode)?[\s._-]*(\d{1,4})(?=[\s._-]|$)", re.IGNORECASE)


def parse_season_folder(name: str) -> int | None:
    """Season number of a season folder name (0 for specials)."""
    if _SPECIALS_FOLDER.match(name):
        return 0
    match = _SEASON_FOLDER.match(name) or _SHORT_SEASON_FOLDER.match(name)
    return int(match.group(1)) if match else None


class ShowResolver(ItemResolver):
    name = "show"
    order = 10
    library_types = frozenset({LibraryType.TV_SHOWS})

    def resolve(self, args: ItemResolveArgs) -> MetadataItem | None:
        file = args.file
        if args.is_root or not file.is_directory:
            return None
        if path_key(file.parent) != path_key(args.location_root):
            return None
        if parse_season_folder(file.name) is not None:
            return None

        title, year = parse_title_year(file.name)
        return MetadataItem(
            metadata_type=MetadataType.SHOW,
            title=title,
            sort_title=sort_title(title),
            year=year,
            path=file.path,
            mtime=file.mtime,
            is_directory=True,
        )


class SeasonResolver(ItemResolver):
    name = "season"
    order = 15
    library_types = frozenset({LibraryType.TV_SHOWS})

    def resolve(self, args: ItemResolveArgs) -> MetadataItem | None:
        file = args.file
        if args.is_root or not file.is_directory:
            return None
        show = args.resolved_parent
        if show is None or show.metadata_type != MetadataType.SHOW:
            return None
        season_number = parse_season_folder(file.name)
        if season_number is None:
            return None

        return MetadataItem(
            metadata_type=MetadataType.SEASON,
            title="Specials" if season_number == 0 else f"Season {season_number}",
            index=season_number,
            path=file.path,
            mtime=file.mtime,
            is_directory=True,
            parent=show,
        )


class EpisodeResolver(ItemResolver):
    name = "episode"
    order = 20
    library_types = frozenset({LibraryType.TV_SHOWS})

    def resolve(self, args: ItemResolveArgs) -> MetadataItem | None:
        file = args.file
        if args.is_root or file.is_directory or file.extension not in VideoFormats.EXTENSIONS:
            return None

        season = args.parent_of_type(MetadataType.SEASON)
        show = args.parent_of_type(MetadataType.SHOW)

        parsed = self._parse_token(file.stem)
        if parsed is not None:
            season_number, episode_number, remainder = parsed
        elif season is not None:
            match = _NUMBERED.match(file.stem)
            if match is None:
                return None
            season_number = season.index
            episode_number = int(match.group(1))
            remainder = file.stem[match.end():]
        else:
            return None

        if season is not None and season.index is not None:
            season_number = season.index

        title = clean_title(remainder) or f"Episode {episode_number}"
        item = MetadataItem(
            metadata_type=MetadataType.EPISODE,
            title=title,
            index=episode_number,
            path=file.path,
            size=file.size,
            mtime=file.mtime,
            parent=season or show,
        )
        item.extra_fields["season"] = season_number
        if show is not None:
            item.extra_fields["show"] = show.title
        return item

    @staticmethod
    def _parse_token(stem: str) -> tuple[int, int, str] | None:
        """Find a season/episode token; return season, episode and the episode title part."""
        match = _SXXEYY.search(stem) or _NXNN.search(stem)
        if match is None:
            return None
        return int(match.group(1)), int(match.group(2)), stem[match.end():]
