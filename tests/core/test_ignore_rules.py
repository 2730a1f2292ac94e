"""Tests for traversal ignore rules."""

from __future__ import annotations

import pytest

from mediavault.core.ignore import CoreIgnoreRule, DotIgnoreRule, IgnoreRuleSet
from mediavault.core.models import FileEntry


def _file(name: str, size: int = 1) -> FileEntry:
    return FileEntry(path=f"/library/{name}", name=name, is_directory=False, size=size)


def _directory(name: str) -> FileEntry:
    return FileEntry(path=f"/library/{name}", name=name, is_directory=True)


class TestCoreIgnoreRule:
    """Built-in junk names."""

    @pytest.mark.parametrize(
        "name",
        [
            "Thumbs.db",
            ".DS_Store",
            ".hidden.mkv",
            "Movie.Sample.mkv",
            "sample.mkv",
            "Movie.trickplay",
            "poster.jpg",
            "small.png",
            "AlbumArt.webp",
        ],
    )
    def test_junk_files_are_ignored(self, name: str) -> None:
        assert CoreIgnoreRule().should_ignore_file(_file(name))

    @pytest.mark.parametrize("name", ["Movie.mkv", "Samples of Life (2010).mkv", "..weird.mkv", "folder.jpg"])
    def test_media_files_are_kept(self, name: str) -> None:
        assert not CoreIgnoreRule().should_ignore_file(_file(name))

    @pytest.mark.parametrize("name", ["extrafanart", "@eaDir", "#recycle", "lost+found", "Subs"])
    def test_metadata_folders_are_ignored(self, name: str) -> None:
        assert CoreIgnoreRule().should_ignore_directory(_directory(name), [])

    def test_extra_names_extend_the_defaults(self) -> None:
        # Given
        rule = CoreIgnoreRule(extra_directories=["Backups"], extra_files=["desktop.ini"])

        # When / Then
        assert rule.should_ignore_directory(_directory("backups"), [])
        assert rule.should_ignore_file(_file("Desktop.ini"))
        assert rule.should_ignore_directory(_directory("@eadir"), [])


class TestDotIgnoreRule:
    def test_empty_marker_hides_directory(self) -> None:
        assert DotIgnoreRule().should_ignore_directory(_directory("private"), [_file(".ignore", size=0)])

    def test_non_empty_marker_does_not(self) -> None:
        assert not DotIgnoreRule().should_ignore_directory(_directory("private"), [_file(".ignore", size=3)])


class TestIgnoreRuleSet:
    def test_name_check_skips_content_rules(self) -> None:
        # Given
        rules = IgnoreRuleSet()

        # When / Then
        assert not rules.is_name_ignored(_directory("Movies"))
        assert rules.is_name_ignored(_directory("@eaDir"))
        assert rules.is_directory_ignored(_directory("Movies"), [_file(".ignore", size=0)])

    def test_dot_ignore_can_be_disabled(self) -> None:
        # Given
        rules = IgnoreRuleSet.from_settings(honor_dot_ignore=False)

        # When / Then
        assert not rules.is_directory_ignored(_directory("Movies"), [_file(".ignore", size=0)])
        assert [rule.name for rule in rules.rules] == ["core"]
