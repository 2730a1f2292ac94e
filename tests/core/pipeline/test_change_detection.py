"""Tests for the change detection stage."""

from __future__ import annotations

from mediavault.core.models import FileSnapshot
from mediavault.core.pipeline.components import ChangeDetectionStage, KnownPathCache


def _stage(mocker, snapshots):
    source = mocker.Mock()
    source.iter_file_snapshots.return_value = list(snapshots)
    return ChangeDetectionStage(source), source


class TestChangeDetectionStage:
    """Snapshot comparison."""

    def test_matching_size_and_mtime_is_unchanged(self, mocker, make_context, make_item, cancel, temp_dir) -> None:
        # Given
        stage, _ = _stage(
            mocker,
            [
                FileSnapshot("/library/same.mkv", 10, 1000.0),
                FileSnapshot("/library/resized.mkv", 11, 1000.0),
                FileSnapshot("/library/touched.mkv", 10, 1005.0),
            ],
        )
        items = [
            make_item("/library/same.mkv"),
            make_item("/library/resized.mkv"),
            make_item("/library/touched.mkv"),
            make_item("/library/new.mkv"),
        ]

        # When
        result = list(stage(iter(items), make_context(temp_dir), cancel))

        # Then
        assert [item.is_unchanged for item in result] == [True, False, False, False]

    def test_mtime_within_tolerance_still_matches(self, mocker, make_context, make_item, cancel, temp_dir) -> None:
        # Given
        stage, _ = _stage(mocker, [FileSnapshot("/library/a.mkv", 10, 1000.0)])

        # When
        result = list(stage(iter([make_item("/library/a.mkv", mtime=1000.0005)]), make_context(temp_dir), cancel))

        # Then
        assert result[0].is_unchanged is True

    def test_directories_compare_mtime_only(self, mocker, make_context, make_item, cancel, temp_dir) -> None:
        # Given
        stage, _ = _stage(mocker, [FileSnapshot("/library/Show", None, 1000.0, is_directory=True)])

        # When
        result = list(
            stage(iter([make_item("/library/Show", is_directory=True)]), make_context(temp_dir), cancel)
        )

        # Then
        assert result[0].is_unchanged is True

    def test_snapshot_without_mtime_never_matches(self, mocker, make_context, make_item, cancel, temp_dir) -> None:
        # Given
        stage, _ = _stage(mocker, [FileSnapshot("/library/a.mkv", 10, None)])

        # When
        result = list(stage(iter([make_item("/library/a.mkv")]), make_context(temp_dir), cancel))

        # Then
        assert result[0].is_unchanged is False

    def test_observed_known_paths_are_recorded_and_removed(
        self, mocker, make_context, make_item, cancel, temp_dir
    ) -> None:
        # Given
        stage, _ = _stage(
            mocker,
            [
                FileSnapshot("/library/kept.mkv", 10, 1000.0),
                FileSnapshot("/library/gone.mkv", 10, 1000.0),
            ],
        )
        context = make_context(temp_dir)

        # When
        list(stage(iter([make_item("/library/kept.mkv"), make_item("/library/new.mkv")]), context, cancel))

        # Then
        assert stage.remaining_paths() == ["/library/gone.mkv"]
        assert context.drain_seen_paths() == ["/library/kept.mkv"]

    def test_snapshot_is_loaded_once_per_scan(self, mocker, make_context, make_item, cancel, temp_dir) -> None:
        # Given
        stage, source = _stage(mocker, [FileSnapshot("/library/a.mkv", 10, 1000.0)])
        context = make_context(temp_dir)

        # When
        list(stage(iter([make_item("/library/a.mkv")]), context, cancel))
        list(stage(iter([make_item("/library/b.mkv")]), context, cancel))

        # Then
        source.iter_file_snapshots.assert_called_once_with(1)

    def test_release_drops_the_snapshot(self, mocker, make_context, make_item, cancel, temp_dir) -> None:
        # Given
        stage, source = _stage(mocker, [FileSnapshot("/library/a.mkv", 10, 1000.0)])
        list(stage(iter([]), make_context(temp_dir), cancel))

        # When
        stage.release()
        list(stage(iter([]), make_context(temp_dir), cancel))

        # Then
        assert source.iter_file_snapshots.call_count == 2


class TestKnownPathCache:
    def test_pop_consumes_entries(self) -> None:
        # Given
        cache = KnownPathCache()
        cache.load([FileSnapshot("/library/a.mkv", 1, 1.0), FileSnapshot("/library/b.mkv", 1, 1.0)])

        # When
        popped = cache.pop("/library/a.mkv")
        missing = cache.pop("/library/a.mkv")

        # Then
        assert popped is not None
        assert missing is None
        assert len(cache) == 1
        assert cache.remaining() == ["/library/b.mkv"]
