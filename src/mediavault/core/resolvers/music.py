"""Music artist and album resolvers.

An album folder produces the whole ``Album -> Medium -> Track`` tree in
one go; loose track files are left unclaimed because the album owns them.
When the album folder itself is unchanged its tree is not stored again,
so a changed disc folder or track below it is claimed from that tree.
Artist folders directly under the root become the albums' parent.
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Sequence

from mediavault.core.models import FileEntry, LibraryType, MetadataItem, MetadataType, path_key
from mediavault.core.resolvers.base import ItemResolveArgs, ItemResolver
from mediavault.core.resolvers.naming import clean_title, parse_title_year, sort_title
from mediavault.shared.constants import AudioFormats

logger = logging.getLogger(__name__)

_DISC_FOLDER = re.compile(r"^(?:cd|disc|disk)[\s._-]?(\d{1,2})$", re.IGNORECASE)
_STANDARD_TRACK = re.compile(r"^(\d{1,3})\s*[-.\s]+\s*(.+)$")
_PLEX_MULTI_DISC_TRACK = re.compile(r"^(\d)(\d{2})\s*[-.\s]+\s*(.+)$")


def disc_number(name: str) -> int | None:
    match = _DISC_FOLDER.match(name)
    return int(match.group(1)) if match else None


def _is_audio(entry: FileEntry) -> bool:
    return not entry.is_directory and entry.extension in AudioFormats.EXTENSIONS


class MusicAlbumResolver(ItemResolver):
    name = "music_album"
    order = 10
    library_types = frozenset({LibraryType.MUSIC})

    def resolve(self, args: ItemResolveArgs) -> MetadataItem | None:
        if args.parent_unchanged:
            refreshed = self._from_unchanged_album(args)
            if refreshed is not None:
                return refreshed

        folder = args.file
        if args.is_root or not folder.is_directory or disc_number(folder.name) is not None:
            return None

        children = list(args.children or ())
        tracks = sorted((entry for entry in children if _is_audio(entry)), key=lambda e: e.name)
        disc_folders: list[tuple[int, FileEntry]] = []
        for entry in children:
            number = disc_number(entry.name) if entry.is_directory else None
            if number is not None:
                disc_folders.append((number, entry))
        disc_folders.sort(key=lambda pair: pair[0])
        if not tracks and not disc_folders:
            return None

        title, year = parse_title_year(folder.name)
        album = MetadataItem(
            metadata_type=MetadataType.ALBUM,
            title=title,
            sort_title=sort_title(title),
            year=year,
            path=folder.path,
            mtime=folder.mtime,
            is_directory=True,
        )
        if path_key(folder.parent) != path_key(args.location_root):
            artist = os.path.basename(folder.parent)
            album.extra_fields["artist"] = artist
            album.groups.append(artist)
        parent = args.resolved_parent
        if parent is not None and parent.metadata_type == MetadataType.ARTIST:
            album.parent = parent

        for number, disc_folder in disc_folders:
            disc_tracks = self._list_disc(disc_folder)
            if disc_tracks:
                self._add_medium(album, number, disc_folder, disc_tracks, plex_numbering=False)

        if tracks:
            grouped = self._group_by_plex_disc(tracks)
            if grouped is not None and not disc_folders:
                for number, disc_tracks in sorted(grouped.items()):
                    self._add_medium(album, number, None, disc_tracks, plex_numbering=True)
            else:
                loose_disc = 1 if not disc_folders else disc_folders[-1][0] + 1
                self._add_medium(album, loose_disc, None, tracks, plex_numbering=False)

        if not album.children:
            return None
        return album

    @staticmethod
    def _from_unchanged_album(args: ItemResolveArgs) -> MetadataItem | None:
        """Node for a changed disc folder or track taken from its unchanged album's tree."""
        album = args.parent_of_type(MetadataType.ALBUM)
        entry = args.file
        if album is None or album.path is None:
            return None
        if entry.is_directory:
            if disc_number(entry.name) is None or path_key(entry.parent) != path_key(album.path):
                return None
        elif not _is_audio(entry):
            return None

        key = path_key(entry.path)
        for node in album.iter_tree():
            if node.path is not None and path_key(node.path) == key:
                return node
        return None

    @staticmethod
    def _list_disc(disc_folder: FileEntry) -> list[FileEntry]:
        entries: list[FileEntry] = []
        try:
            with os.scandir(disc_folder.path) as it:
                for dir_entry in it:
                    try:
                        entry = FileEntry.from_dir_entry(dir_entry)
                    except OSError:
                        continue
                    if _is_audio(entry):
                        entries.append(entry)
        except OSError as e:
            logger.warning("Cannot read disc folder %s: %s", disc_folder.path, e)
            return []
        entries.sort(key=lambda entry: entry.name)
        return entries

    @staticmethod
    def _group_by_plex_disc(tracks: Sequence[FileEntry]) -> dict[int, list[FileEntry]] | None:
        """Group ``101 - Title`` style tracks by disc; None unless several discs show up."""
        groups: dict[int, list[FileEntry]] = {}
        for track in tracks:
            match = _PLEX_MULTI_DISC_TRACK.match(track.stem)
            if match is None or int(match.group(1)) == 0:
                return None
            groups.setdefault(int(match.group(1)), []).append(track)
        return groups if len(groups) > 1 else None

    @staticmethod
    def _add_medium(
        album: MetadataItem,
        number: int,
        disc_folder: FileEntry | None,
        tracks: Sequence[FileEntry],
        *,
        plex_numbering: bool,
    ) -> None:
        medium = album.add_child(
            MetadataItem(
                metadata_type=MetadataType.MEDIUM,
                title=f"Disc {number}",
                index=number,
                path=disc_folder.path if disc_folder else None,
                mtime=disc_folder.mtime if disc_folder else None,
                is_directory=disc_folder is not None,
            )
        )
        for position, track in enumerate(tracks, start=1):
            title, track_number = _parse_track(track.stem, plex_numbering=plex_numbering)
            medium.add_child(
                MetadataItem(
                    metadata_type=MetadataType.TRACK,
                    title=title,
                    index=track_number if track_number is not None else position,
                    path=track.path,
                    size=track.size,
                    mtime=track.mtime,
                )
            )


def _parse_track(stem: str, *, plex_numbering: bool) -> tuple[str, int | None]:
    if plex_numbering:
        match = _PLEX_MULTI_DISC_TRACK.match(stem)
        if match:
            return clean_title(match.group(3)) or stem, int(match.group(2))
    match = _STANDARD_TRACK.match(stem)
    if match:
        return clean_title(match.group(2)) or stem, int(match.group(1))
    return clean_title(stem) or stem, None


class MusicArtistResolver(ItemResolver):
    """Claim ``Artist/`` folders directly under the location root.

    Runs after the album resolver, so a folder holding tracks is always an
    album. A folder qualifies when it has at least one non-disc
    subfolder.
    """

    name = "music_artist"
    order = 12
    library_types = frozenset({LibraryType.MUSIC})

    def resolve(self, args: ItemResolveArgs) -> MetadataItem | None:
        folder = args.file
        if args.is_root or not folder.is_directory:
            return None
        if path_key(folder.parent) != path_key(args.location_root):
            return None
        if not any(
            entry.is_directory and disc_number(entry.name) is None for entry in args.children or ()
        ):
            return None

        title = clean_title(folder.name) or folder.name
        return MetadataItem(
            metadata_type=MetadataType.ARTIST,
            title=title,
            sort_title=sort_title(title),
            path=folder.path,
            mtime=folder.mtime,
            is_directory=True,
        )
