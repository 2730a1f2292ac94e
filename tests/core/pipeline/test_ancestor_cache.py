"""Tests for the ancestor cache."""

from __future__ import annotations

from mediavault.core.models import FileEntry, MetadataItem, MetadataType
from mediavault.core.pipeline.components import AncestorCache


def _directory(path: str) -> FileEntry:
    return FileEntry(path=path, name=path.rsplit("/", 1)[-1], is_directory=True)


def _show(title: str) -> MetadataItem:
    return MetadataItem(metadata_type=MetadataType.SHOW, title=title)


class TestAncestorCache:
    """Lookups and mark-and-sweep pruning."""

    def test_ancestors_are_returned_root_first(self) -> None:
        # Given
        cache = AncestorCache()
        show = _show("Show")
        season = MetadataItem(metadata_type=MetadataType.SEASON, title="Season 1")
        cache.put(_directory("/library/Show"), show)
        cache.put(_directory("/library/Show/Season 1"), season)

        # When
        ancestors = cache.ancestors_of("/library/Show/Season 1/e01.mkv", "/library")

        # Then
        assert [cached.metadata for cached in ancestors] == [show, season]

    def test_paths_outside_the_root_have_no_ancestors(self) -> None:
        # Given
        cache = AncestorCache()
        cache.put(_directory("/library/Show"), _show("Show"))

        # When / Then
        assert cache.ancestors_of("/elsewhere/Show/e01.mkv", "/library") == []

    def test_prune_evicts_entries_not_touched_since_last_sweep(self) -> None:
        # Given
        cache = AncestorCache()
        cache.put(_directory("/library/A"), _show("A"))
        cache.put(_directory("/library/B"), _show("B"))
        assert cache.prune() == 0

        # When
        cache.mark_active("/library/A/e01.mkv", "/library")
        evicted = cache.prune()

        # Then
        assert evicted == 1
        assert cache.get("/library/A") is not None
        assert cache.get("/library/B") is None

    def test_unmarked_entry_is_gone_after_two_sweeps(self) -> None:
        # Given
        cache = AncestorCache()
        cache.put(_directory("/library/A"), _show("A"))

        # When
        cache.prune()
        cache.prune()

        # Then
        assert len(cache) == 0

    def test_tick_sweeps_every_interval(self) -> None:
        # Given
        cache = AncestorCache(prune_interval=3)
        cache.put(_directory("/library/A"), _show("A"))
        cache.prune()

        # When
        results = [cache.tick() for _ in range(3)]

        # Then
        assert results == [0, 0, 1]
        assert len(cache) == 0

    def test_zero_interval_disables_sweeping(self) -> None:
        # Given
        cache = AncestorCache(prune_interval=0)
        cache.put(_directory("/library/A"), _show("A"))
        cache.prune()

        # When
        for _ in range(10):
            cache.tick()

        # Then
        assert cache.get("/library/A") is not None
