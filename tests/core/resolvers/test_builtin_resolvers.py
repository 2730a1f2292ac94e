"""Tests for the built-in resolvers."""

from __future__ import annotations

import os
from collections.abc import Sequence
from pathlib import Path

import pytest

from mediavault.core.models import FileEntry, LibraryType, MetadataItem, MetadataType, path_identifier
from mediavault.core.resolvers import (
    EpisodeResolver,
    ExtrasResolver,
    ItemResolveArgs,
    MovieResolver,
    MusicAlbumResolver,
    MusicArtistResolver,
    PhotoResolver,
    SeasonResolver,
    ShowResolver,
)
from mediavault.core.resolvers.extras import extra_category
from mediavault.core.resolvers.tv import parse_season_folder

ROOT = "/library"


def _file(path: str, *, is_directory: bool = False) -> FileEntry:
    return FileEntry(path=path, name=os.path.basename(path), is_directory=is_directory, size=5)


def _args(
    file: FileEntry,
    library_type: LibraryType,
    *,
    siblings: Sequence[FileEntry] | None = None,
    children: Sequence[FileEntry] | None = None,
    ancestors: Sequence[MetadataItem] = (),
    root: str = ROOT,
    parent_unchanged: bool = False,
) -> ItemResolveArgs:
    return ItemResolveArgs(
        file=file,
        library_type=library_type,
        location_id=1,
        library_id=1,
        location_root=root,
        children=children,
        ancestors=tuple(ancestors),
        resolved_parent=ancestors[-1] if ancestors else None,
        siblings=siblings,
        parent_unchanged=parent_unchanged,
    )


class TestMovieResolver:
    """Movie classification."""

    def test_title_and_year_come_from_bracketed_folder(self) -> None:
        # Given
        file = _file("/library/Alien (1979)/alien.1080p.mkv")

        # When
        item = MovieResolver().resolve(_args(file, LibraryType.MOVIES))

        # Then
        assert item.metadata_type == MetadataType.MOVIE
        assert (item.title, item.year) == ("Alien", 1979)
        assert item.size == 5

    def test_loose_file_uses_its_own_name(self) -> None:
        # Given
        file = _file("/library/The.Thing.1982.1080p.mkv")

        # When
        item = MovieResolver().resolve(_args(file, LibraryType.MOVIES))

        # Then
        assert (item.title, item.year) == ("The Thing", 1982)
        assert item.sort_title == "Thing"

    @pytest.mark.parametrize(
        "path",
        [
            "/library/Alien (1979)/Trailers/alien.mkv",
            "/library/Alien (1979)/alien-trailer.mkv",
            "/library/Alien (1979)/alien.sample.mkv",
            "/library/Alien (1979)/alien.srt",
            "/library/Alien (1979)",
        ],
    )
    def test_extras_samples_and_non_video_are_unclaimed(self, path: str) -> None:
        file = _file(path, is_directory=not os.path.splitext(path)[1])
        assert MovieResolver().resolve(_args(file, LibraryType.MOVIES)) is None

    def test_split_parts_need_a_matching_sibling(self) -> None:
        # Given
        part1 = _file("/library/Heat (1995)/Heat cd1.avi")
        part2 = _file("/library/Heat (1995)/Heat cd2.avi")
        lonely = _file("/library/Solo cd1.avi")

        # When
        first = MovieResolver().resolve(_args(part1, LibraryType.MOVIES, siblings=[part1, part2]))
        alone = MovieResolver().resolve(_args(lonely, LibraryType.MOVIES, siblings=[lonely]))

        # Then
        assert first.extra_fields == {"part": 1}
        assert first.title == "Heat"
        assert alone.extra_fields == {}
        assert alone.title == "Solo cd1"


class TestExtrasResolver:
    """Extras linked to the movie they belong to."""

    def test_suffixed_extra_is_linked_to_the_only_movie(self) -> None:
        # Given
        movie = _file("/library/Alien (1979)/Alien.mkv")
        trailer = _file("/library/Alien (1979)/alien-trailer.mkv")
        subtitle = _file("/library/Alien (1979)/Alien.srt")

        # When
        item = ExtrasResolver().resolve(
            _args(trailer, LibraryType.MOVIES, siblings=[movie, trailer, subtitle])
        )

        # Then
        assert item.metadata_type == MetadataType.EXTRA
        assert item.extra_fields == {"extra_type": "trailer"}
        assert item.parent_uuid == path_identifier(1, movie.path)
        assert item.path == trailer.path

    def test_extra_in_a_category_folder_is_linked_to_the_movie(self, media_root, make_files) -> None:
        # Given
        movie, teaser = make_files(
            media_root, ["Alien (1979)/Alien.mkv", "Alien (1979)/Behind The Scenes/making of.mkv"]
        )
        file = FileEntry.from_path(teaser)

        # When
        item = ExtrasResolver().resolve(_args(file, LibraryType.MOVIES, root=str(media_root)))

        # Then
        assert item.extra_fields == {"extra_type": "behind_the_scenes"}
        assert item.parent_uuid == path_identifier(1, FileEntry.from_path(movie).path)

    def test_split_movie_owns_its_extras_through_the_first_part(self) -> None:
        # Given
        part1 = _file("/library/Heat (1995)/Heat cd1.avi")
        part2 = _file("/library/Heat (1995)/Heat cd2.avi")
        extra = _file("/library/Heat (1995)/heat.deleted.scene.avi")

        # When
        item = ExtrasResolver().resolve(_args(extra, LibraryType.MOVIES, siblings=[part2, extra, part1]))

        # Then
        assert item.extra_fields == {"extra_type": "deleted_scene"}
        assert item.parent_uuid == path_identifier(1, part1.path)

    @pytest.mark.parametrize(
        ("path", "siblings"),
        [
            (
                "/library/Collection/alien-trailer.mkv",
                ["/library/Collection/Alien.mkv", "/library/Collection/Aliens.mkv"],
            ),
            ("/library/Alien (1979)/alien-trailer.mkv", []),
            ("/library/Alien (1979)/alien.sample.mkv", ["/library/Alien (1979)/Alien.mkv"]),
            ("/library/Alien (1979)/Alien.mkv", []),
        ],
    )
    def test_unowned_samples_and_features_are_unclaimed(self, path: str, siblings: list[str]) -> None:
        # Given
        file = _file(path)
        entries = [file, *(_file(sibling) for sibling in siblings)]

        # When / Then
        assert ExtrasResolver().resolve(_args(file, LibraryType.MOVIES, siblings=entries)) is None

    @pytest.mark.parametrize(
        ("token", "expected"),
        [
            ("Trailers", "trailer"),
            ("teaser", "trailer"),
            ("Deleted Scenes", "deleted_scene"),
            ("behind.the.scenes", "behind_the_scenes"),
            ("Featurettes", "featurette"),
            ("Interviews", "interview"),
            ("Shorts", "short"),
            ("Extras", "other"),
            ("bloopers", "other"),
        ],
    )
    def test_category_names(self, token: str, expected: str) -> None:
        assert extra_category(token) == expected


class TestTvResolvers:
    """Show, season and episode classification."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [("Season 1", 1), ("season.02", 2), ("S03", 3), ("Specials", 0), ("Extras", None)],
    )
    def test_season_folder_names(self, name: str, expected: int | None) -> None:
        assert parse_season_folder(name) == expected

    def test_show_is_a_folder_directly_under_the_root(self) -> None:
        # Given
        show_dir = _file("/library/Doctor Who (2005)", is_directory=True)
        nested = _file("/library/Doctor Who (2005)/Bonus", is_directory=True)

        # When
        show = ShowResolver().resolve(_args(show_dir, LibraryType.TV_SHOWS))
        not_show = ShowResolver().resolve(_args(nested, LibraryType.TV_SHOWS))

        # Then
        assert (show.title, show.year) == ("Doctor Who", 2005)
        assert not_show is None

    def test_season_requires_a_resolved_show_parent(self) -> None:
        # Given
        show = MetadataItem(metadata_type=MetadataType.SHOW, title="Doctor Who")
        season_dir = _file("/library/Doctor Who/Season 2", is_directory=True)

        # When
        season = SeasonResolver().resolve(_args(season_dir, LibraryType.TV_SHOWS, ancestors=[show]))
        orphan = SeasonResolver().resolve(_args(season_dir, LibraryType.TV_SHOWS))

        # Then
        assert (season.title, season.index) == ("Season 2", 2)
        assert season.parent is show
        assert orphan is None

    @pytest.mark.parametrize(
        ("name", "season_number", "episode_number", "title"),
        [
            ("Show.S02E05.The.Title.mkv", 2, 5, "The Title"),
            ("Show - 3x07 - Another.mkv", 3, 7, "Another"),
        ],
    )
    def test_episode_tokens(self, name, season_number, episode_number, title) -> None:
        # Given
        file = _file(f"/library/Show/{name}")

        # When
        item = EpisodeResolver().resolve(_args(file, LibraryType.TV_SHOWS))

        # Then
        assert item.extra_fields["season"] == season_number
        assert item.index == episode_number
        assert item.title == title

    def test_numbered_file_inside_a_season_folder(self) -> None:
        # Given
        show = MetadataItem(metadata_type=MetadataType.SHOW, title="Show")
        season = MetadataItem(metadata_type=MetadataType.SEASON, title="Season 4", index=4, parent=show)
        file = _file("/library/Show/Season 4/07.mkv")

        # When
        item = EpisodeResolver().resolve(_args(file, LibraryType.TV_SHOWS, ancestors=[show, season]))

        # Then
        assert item.index == 7
        assert item.title == "Episode 7"
        assert item.parent is season
        assert item.extra_fields == {"season": 4, "show": "Show"}

    def test_unnumbered_file_outside_a_season_is_unclaimed(self) -> None:
        file = _file("/library/Show/behind the scenes.mkv")
        assert EpisodeResolver().resolve(_args(file, LibraryType.TV_SHOWS)) is None


class TestMusicAlbumResolver:
    """Album trees built from disk."""

    @staticmethod
    def _entries(directory: Path) -> list[FileEntry]:
        return sorted(
            (FileEntry.from_path(directory / name) for name in os.listdir(directory)),
            key=lambda entry: entry.name,
        )

    def test_single_disc_album_with_artist_folder(self, media_root, make_files) -> None:
        # Given
        album_dir = media_root / "Pink Floyd" / "Animals (1977)"
        make_files(album_dir, ["01 - Pigs on the Wing.flac", "02 - Dogs.flac", "cover.jpg"])
        folder = FileEntry.from_path(album_dir)

        # When
        album = MusicAlbumResolver().resolve(
            _args(folder, LibraryType.MUSIC, children=self._entries(album_dir), root=str(media_root))
        )

        # Then
        assert (album.title, album.year) == ("Animals", 1977)
        assert album.extra_fields == {"artist": "Pink Floyd"}
        assert album.groups == ["Pink Floyd"]
        [medium] = album.children
        assert (medium.title, medium.index, medium.path) == ("Disc 1", 1, None)
        assert [(track.index, track.title) for track in medium.children] == [
            (1, "Pigs on the Wing"),
            (2, "Dogs"),
        ]

    def test_disc_folders_become_media(self, media_root, make_files) -> None:
        # Given
        album_dir = media_root / "The Wall"
        make_files(album_dir, ["CD1/01 - In the Flesh.mp3", "CD2/01 - Hey You.mp3"])
        folder = FileEntry.from_path(album_dir)

        # When
        album = MusicAlbumResolver().resolve(
            _args(folder, LibraryType.MUSIC, children=self._entries(album_dir), root=str(media_root))
        )

        # Then
        assert [medium.index for medium in album.children] == [1, 2]
        assert all(medium.is_directory for medium in album.children)
        assert album.children[1].children[0].title == "Hey You"
        assert "artist" not in album.extra_fields

    def test_plex_numbering_groups_tracks_by_disc(self, media_root, make_files) -> None:
        # Given
        album_dir = media_root / "Double"
        make_files(album_dir, ["101 - One.mp3", "102 - Two.mp3", "201 - Three.mp3"])
        folder = FileEntry.from_path(album_dir)

        # When
        album = MusicAlbumResolver().resolve(
            _args(folder, LibraryType.MUSIC, children=self._entries(album_dir), root=str(media_root))
        )

        # Then
        assert [(medium.index, len(medium.children)) for medium in album.children] == [(1, 2), (2, 1)]
        assert [track.index for track in album.children[0].children] == [1, 2]

    def test_folder_without_audio_is_unclaimed(self, media_root, make_files) -> None:
        # Given
        artist_dir = media_root / "Artist"
        make_files(artist_dir, ["Album/01 - Song.mp3", "notes.txt"])
        folder = FileEntry.from_path(artist_dir)

        # When / Then
        assert (
            MusicAlbumResolver().resolve(
                _args(folder, LibraryType.MUSIC, children=self._entries(artist_dir), root=str(media_root))
            )
            is None
        )


    def test_album_under_a_resolved_artist_is_its_child(self, media_root, make_files) -> None:
        # Given
        album_dir = media_root / "Pink Floyd" / "Animals (1977)"
        make_files(album_dir, ["01 - Dogs.flac"])
        artist = MetadataItem(metadata_type=MetadataType.ARTIST, title="Pink Floyd", is_directory=True)

        # When
        album = MusicAlbumResolver().resolve(
            _args(
                FileEntry.from_path(album_dir),
                LibraryType.MUSIC,
                children=self._entries(album_dir),
                ancestors=[artist],
                root=str(media_root),
            )
        )

        # Then
        assert album.parent is artist
        assert artist.children == []

    def _resolved_double_album(self, media_root, make_files) -> tuple[Path, MetadataItem]:
        album_dir = media_root / "The Wall"
        make_files(album_dir, ["CD1/01 - In the Flesh.mp3", "CD1/02 - Thin Ice.mp3", "CD2/01 - Hey You.mp3"])
        album = MusicAlbumResolver().resolve(
            _args(
                FileEntry.from_path(album_dir),
                LibraryType.MUSIC,
                children=self._entries(album_dir),
                root=str(media_root),
            )
        )
        return album_dir, album

    def test_changed_disc_folder_of_unchanged_album_comes_from_its_tree(
        self, media_root, make_files
    ) -> None:
        # Given
        album_dir, album = self._resolved_double_album(media_root, make_files)
        disc = FileEntry.from_path(album_dir / "CD1")

        # When
        medium = MusicAlbumResolver().resolve(
            _args(disc, LibraryType.MUSIC, ancestors=[album], root=str(media_root), parent_unchanged=True)
        )

        # Then
        assert medium is album.children[0]
        assert medium.parent is album
        assert [track.title for track in medium.children] == ["In the Flesh", "Thin Ice"]

    def test_changed_track_of_unchanged_album_comes_from_its_tree(self, media_root, make_files) -> None:
        # Given
        album_dir, album = self._resolved_double_album(media_root, make_files)
        medium = album.children[0]
        track = FileEntry.from_path(album_dir / "CD1" / "02 - Thin Ice.mp3")

        # When
        item = MusicAlbumResolver().resolve(
            _args(
                track,
                LibraryType.MUSIC,
                ancestors=[album, medium],
                root=str(media_root),
                parent_unchanged=True,
            )
        )

        # Then
        assert item is medium.children[1]
        assert (item.metadata_type, item.index) == (MetadataType.TRACK, 2)
        assert item.parent is medium

    def test_disc_folders_and_tracks_of_a_changed_album_are_unclaimed(
        self, media_root, make_files
    ) -> None:
        # Given
        album_dir, album = self._resolved_double_album(media_root, make_files)
        disc = FileEntry.from_path(album_dir / "CD1")
        track = FileEntry.from_path(album_dir / "CD1" / "01 - In the Flesh.mp3")
        resolver = MusicAlbumResolver()

        # When
        results = [
            resolver.resolve(_args(entry, LibraryType.MUSIC, ancestors=[album], root=str(media_root)))
            for entry in (disc, track)
        ]

        # Then
        assert results == [None, None]


class TestMusicArtistResolver:
    """Artist folders directly under the root."""

    def test_folder_of_albums_is_an_artist(self) -> None:
        # Given
        folder = _file("/library/Pink Floyd", is_directory=True)
        children = [_file("/library/Pink Floyd/Animals (1977)", is_directory=True)]

        # When
        artist = MusicArtistResolver().resolve(_args(folder, LibraryType.MUSIC, children=children))

        # Then
        assert (artist.metadata_type, artist.title) == (MetadataType.ARTIST, "Pink Floyd")
        assert artist.is_directory
        assert artist.path == folder.path

    @pytest.mark.parametrize(
        ("path", "children"),
        [
            ("/library/Pink Floyd/Animals", ["/library/Pink Floyd/Animals/Live"]),
            ("/library/The Wall", ["/library/The Wall/CD1"]),
            ("/library/Empty", []),
        ],
    )
    def test_nested_folders_and_folders_without_albums_are_unclaimed(
        self, path: str, children: list[str]
    ) -> None:
        # Given
        folder = _file(path, is_directory=True)
        entries = [_file(child, is_directory=True) for child in children]

        # When / Then
        assert MusicArtistResolver().resolve(_args(folder, LibraryType.MUSIC, children=entries)) is None


class TestPhotoResolver:
    def test_album_comes_from_parent_folder(self) -> None:
        # Given
        file = _file("/library/Holidays 2020/IMG_0001.JPG")

        # When
        item = PhotoResolver().resolve(_args(file, LibraryType.PHOTOS))

        # Then
        assert item.metadata_type == MetadataType.PHOTO
        assert item.title == "IMG_0001"
        assert item.extra_fields == {"album": "Holidays 2020"}

    def test_photo_at_root_has_no_album(self) -> None:
        item = PhotoResolver().resolve(_args(_file("/library/scan.png"), LibraryType.PHOTOS))
        assert item.extra_fields == {}
