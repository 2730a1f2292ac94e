"""Tests for scan orchestration against a real catalog and file tree."""

from __future__ import annotations

import os
import shutil
import threading

import pytest

from mediavault.config.models import ScanSettings
from mediavault.core.models import LibraryType, MetadataType, ScanStatus, normalize_path, path_identifier
from mediavault.shared.errors import DomainError, ErrorCode, create_catalog_error


def _run_scan(scanner, library):
    scan_id = scanner.start_scan(library.id)
    return scanner.get_scan_status(scan_id)


class _InterruptingQueue:
    """Raises KeyboardInterrupt once, on the given enqueue call."""

    def __init__(self, interrupt_on_call: int) -> None:
        self.interrupt_on_call = interrupt_on_call
        self.calls = 0

    def enqueue_refresh(self, item_uuid: str) -> None:
        self.calls += 1
        if self.calls == self.interrupt_on_call:
            raise KeyboardInterrupt


class _CancellingQueue:
    """Cancels every running scan on the first refresh request."""

    def __init__(self) -> None:
        self.scanner = None

    def enqueue_refresh(self, item_uuid: str) -> None:
        for scan_id in self.scanner.scan_manager.running_scan_ids():
            self.scanner.cancel_scan(scan_id)


class TestScanLifecycle:
    """End-to-end scans of a movie library."""

    def test_first_scan_adds_and_move_is_add_plus_remove(
        self, scanner, catalog, create_library, media_root, make_files
    ) -> None:
        # Given
        [movie] = make_files(media_root, ["Alien (1979)/Alien.mkv"])
        library = create_library(LibraryType.MOVIES, media_root)

        # When
        first = _run_scan(scanner, library)

        # Then
        assert first.status == ScanStatus.COMPLETED
        assert (first.items_added, first.items_updated, first.items_removed) == (1, 0, 0)
        assert first.total_files == 1
        row = catalog.get_item_by_path(library.id, normalize_path(movie))
        assert (row["title"], row["year"], row["metadata_type"]) == ("Alien", 1979, "movie")
        assert catalog.get_library(library.id).last_scanned_at is not None

        # Given
        target = media_root / "Sci-Fi" / "Alien (1979)"
        target.mkdir(parents=True)
        shutil.move(str(movie), str(target / "Alien.mkv"))

        # When
        second = _run_scan(scanner, library)

        # Then
        assert (second.items_added, second.items_removed) == (1, 1)
        assert catalog.count_items(library.id) == 1
        assert catalog.get_item_by_path(library.id, normalize_path(movie)) is None

    @pytest.mark.parametrize(
        ("library_type", "files"),
        [
            (LibraryType.MOVIES, ["Alien (1979)/Alien.mkv", "Heat (1995)/Heat.mkv", "Loose.2001.mkv"]),
            (
                LibraryType.TV_SHOWS,
                ["Show (2010)/Season 1/Show.S01E01.mkv", "Show (2010)/Season 1/Show.S01E02.mkv"],
            ),
            (LibraryType.MUSIC, ["Artist/Album/01 - One.flac", "Artist/Album/02 - Two.flac"]),
        ],
    )
    def test_rescan_without_changes_is_a_no_op(
        self, scanner, catalog, create_library, media_root, make_files, library_type, files
    ) -> None:
        # Given
        make_files(media_root, files)
        library = create_library(library_type, media_root)
        first = _run_scan(scanner, library)
        count = catalog.count_items(library.id)

        # When
        second = _run_scan(scanner, library)

        # Then
        assert first.items_added == count
        assert (second.items_added, second.items_updated, second.items_removed) == (0, 0, 0)
        assert second.processed_files == second.total_files
        assert catalog.count_items(library.id) == count

    @pytest.mark.parametrize("chunk_size", [1, 2, 1000])
    def test_deleted_file_is_removed_whatever_the_chunk_size(
        self, build_scanner, catalog, create_library, media_root, make_files, chunk_size
    ) -> None:
        # Given
        scanner = build_scanner(settings=ScanSettings(batch_size=2, delete_chunk_size=chunk_size))
        files = make_files(media_root, ["A.mkv", "B.mkv", "C.mkv"])
        library = create_library(LibraryType.MOVIES, media_root)
        _run_scan(scanner, library)
        files[1].unlink()

        # When
        scan = _run_scan(scanner, library)

        # Then
        assert scan.items_removed == 1
        remaining = {row["path"] for row in catalog.list_items(library.id)}
        assert remaining == {normalize_path(files[0]), normalize_path(files[2])}

    def test_soft_delete_keeps_rows(
        self, build_scanner, catalog, create_library, media_root, make_files
    ) -> None:
        # Given
        scanner = build_scanner(settings=ScanSettings(soft_delete=True))
        files = make_files(media_root, ["A.mkv", "B.mkv"])
        library = create_library(LibraryType.MOVIES, media_root)
        _run_scan(scanner, library)
        files[0].unlink()

        # When
        scan = _run_scan(scanner, library)

        # Then
        assert scan.items_removed == 1
        assert catalog.count_items(library.id) == 1
        assert catalog.count_items(library.id, include_deleted=True) == 2

    def test_unreachable_root_removes_nothing(
        self, scanner, catalog, create_library, media_root, make_files
    ) -> None:
        # Given
        make_files(media_root, ["A.mkv", "B.mkv"])
        library = create_library(LibraryType.MOVIES, media_root)
        _run_scan(scanner, library)
        shutil.rmtree(media_root)

        # When
        scan = _run_scan(scanner, library)

        # Then
        assert scan.status == ScanStatus.COMPLETED
        assert scan.items_removed == 0
        assert catalog.count_items(library.id) == 2

    def test_tv_hierarchy_is_linked(self, scanner, catalog, create_library, media_root, make_files) -> None:
        # Given
        make_files(media_root, ["Show (2010)/Season 1/Show.S01E01.Pilot.mkv"])
        library = create_library(LibraryType.TV_SHOWS, media_root)

        # When
        _run_scan(scanner, library)

        # Then
        rows = {row["metadata_type"]: row for row in catalog.list_items(library.id)}
        assert set(rows) == {"show", "season", "episode"}
        assert rows["show"]["parent_uuid"] is None
        assert rows["season"]["parent_uuid"] == rows["show"]["uuid"]
        assert rows["episode"]["parent_uuid"] == rows["season"]["uuid"]
        assert rows["episode"]["title"] == "Pilot"

    def test_broken_sidecar_does_not_fail_the_scan(
        self, scanner, catalog, create_library, media_root, make_files
    ) -> None:
        # Given
        [movie] = make_files(media_root, ["Alien (1979)/Alien.mkv"])
        (movie.parent / "Alien.nfo").write_text("<movie>", encoding="utf-8")
        library = create_library(LibraryType.MOVIES, media_root)

        # When
        scan = _run_scan(scanner, library)

        # Then
        assert scan.status == ScanStatus.COMPLETED
        assert catalog.get_item_by_path(library.id, normalize_path(movie))["title"] == "Alien"

    def test_inserted_items_are_queued_for_enrichment(
        self, scanner, enrichment_queue, create_library, media_root, make_files
    ) -> None:
        # Given
        [movie] = make_files(media_root, ["Alien (1979)/Alien.mkv"])
        library = create_library(LibraryType.MOVIES, media_root)

        # When
        _run_scan(scanner, library)

        # Then
        assert enrichment_queue.requested == [path_identifier(library.id, normalize_path(movie))]

    def test_finished_callback_receives_the_scan(
        self, build_scanner, create_library, media_root, make_files, mocker
    ) -> None:
        # Given
        callback = mocker.Mock()
        scanner = build_scanner(on_scan_finished=callback)
        make_files(media_root, ["A.mkv"])
        library = create_library(LibraryType.MOVIES, media_root)

        # When
        scan = _run_scan(scanner, library)

        # Then
        callback.assert_called_once()
        finished = callback.call_args.args[0]
        assert (finished.id, finished.status) == (scan.id, ScanStatus.COMPLETED)

    def test_history_is_newest_first(self, scanner, create_library, media_root, make_files) -> None:
        # Given
        make_files(media_root, ["A.mkv"])
        library = create_library(LibraryType.MOVIES, media_root)
        first = _run_scan(scanner, library)
        second = _run_scan(scanner, library)

        # When
        history = list(scanner.get_scan_history(library.id))
        latest = list(scanner.get_scan_history(library.id, limit=1))

        # Then
        assert [scan.id for scan in history] == [second.id, first.id]
        assert [scan.id for scan in latest] == [second.id]


class TestScanFailures:
    """Terminal Failed and Cancelled states."""

    def test_unknown_library_is_rejected(self, scanner) -> None:
        with pytest.raises(DomainError) as exc_info:
            scanner.start_scan(404)
        assert exc_info.value.code == ErrorCode.LIBRARY_NOT_FOUND

    @pytest.mark.parametrize(
        ("error", "message"),
        [
            (create_catalog_error("disk full"), "CATALOG_ERROR: disk full"),
            (RuntimeError("disk on fire"), "RuntimeError: disk on fire"),
        ],
    )
    def test_failure_is_recorded_with_a_message(
        self, scanner, catalog, create_library, media_root, make_files, mocker, error, message
    ) -> None:
        # Given
        make_files(media_root, ["A.mkv"])
        library = create_library(LibraryType.MOVIES, media_root)
        mocker.patch.object(catalog, "upsert_items", side_effect=error)

        # When
        scan = _run_scan(scanner, library)

        # Then
        assert scan.status == ScanStatus.FAILED
        assert scan.error_message == message
        assert scan.completed_at is not None
        assert scan.resume_cursor is None
        assert catalog.get_active_scan(library.id) is None

    def test_cancellation_ends_the_scan_cancelled(
        self, build_scanner, catalog, create_library, media_root, make_files, mocker
    ) -> None:
        # Given
        queue = _CancellingQueue()
        scanner = build_scanner(enrichment_queue=queue)
        queue.scanner = scanner
        unregister = mocker.spy(scanner.scan_manager, "unregister")
        make_files(media_root, [f"Movie {index}.mkv" for index in range(6)])
        library = create_library(LibraryType.MOVIES, media_root)

        # When
        scan = _run_scan(scanner, library)

        # Then
        assert scan.status == ScanStatus.CANCELLED
        assert scan.error_message is None
        assert scan.resume_cursor is None
        assert catalog.load_seen_paths(scan.id) == set()
        assert catalog.count_items(library.id) < 6
        unregister.assert_called_once_with(scan.id)
        assert not scanner.scan_manager.is_running(scan.id)


class TestScanConcurrency:
    """At most one active scan per library."""

    def test_start_returns_the_active_scan(
        self, build_scanner, deferred_job_runner, create_library, media_root, make_files
    ) -> None:
        # Given
        scanner = build_scanner(deferred_job_runner)
        runner = deferred_job_runner
        make_files(media_root, ["A.mkv"])
        library = create_library(LibraryType.MOVIES, media_root)

        # When
        first = scanner.start_scan(library.id)
        second = scanner.start_scan(library.id)

        # Then
        assert first == second
        assert runner.enqueued == [first]
        assert scanner.get_scan_status(first).status == ScanStatus.PENDING

        # When
        runner.run_pending()

        # Then
        assert scanner.get_scan_status(first).status == ScanStatus.COMPLETED

    def test_concurrent_starts_share_one_scan(
        self, build_scanner, deferred_job_runner, create_library, media_root
    ) -> None:
        # Given
        scanner = build_scanner(deferred_job_runner)
        runner = deferred_job_runner
        library = create_library(LibraryType.MOVIES, media_root)
        barrier = threading.Barrier(4)
        results: list[int] = []

        def _start() -> None:
            barrier.wait()
            results.append(scanner.start_scan(library.id))

        threads = [threading.Thread(target=_start) for _ in range(4)]

        # When
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=5)

        # Then
        assert len(results) == 4
        assert len(set(results)) == 1
        assert len(runner.enqueued) == 1


class TestScanResume:
    """Resuming a scan interrupted after a checkpoint."""

    def test_interrupted_scan_resumes_from_checkpoint(
        self, build_scanner, catalog, create_library, media_root, make_files
    ) -> None:
        # Given
        queue = _InterruptingQueue(interrupt_on_call=3)
        scanner = build_scanner(
            settings=ScanSettings(batch_size=2, checkpoint_item_threshold=2),
            enrichment_queue=queue,
        )
        make_files(media_root, ["a.mkv", "b.mkv", "c.mkv", "d.mkv", "e.mkv"])
        library = create_library(LibraryType.MOVIES, media_root)

        # When
        with pytest.raises(KeyboardInterrupt):
            scanner.start_scan(library.id)

        # Then
        interrupted = catalog.get_active_scan(library.id)
        assert interrupted.status == ScanStatus.RUNNING
        assert interrupted.resume_cursor is not None
        assert interrupted.items_added == 2
        assert [scan.id for scan in scanner.get_interrupted_scans()] == [interrupted.id]

        # When
        assert scanner.resume_scan(interrupted.id) is True
        resumed = scanner.get_scan_status(interrupted.id)

        # Then
        assert resumed.status == ScanStatus.COMPLETED
        assert resumed.total_files == 5
        assert resumed.items_added == 3
        assert resumed.items_removed == 0
        assert catalog.count_items(library.id) == 5
        assert scanner.get_interrupted_scans() == []

    def test_resume_of_unknown_scan(self, scanner) -> None:
        with pytest.raises(DomainError) as exc_info:
            scanner.resume_scan(404)
        assert exc_info.value.code == ErrorCode.SCAN_NOT_FOUND

    def test_resume_of_finished_scan(self, scanner, create_library, media_root) -> None:
        # Given
        library = create_library(LibraryType.MOVIES, media_root)
        scan = _run_scan(scanner, library)

        # When / Then
        with pytest.raises(DomainError) as exc_info:
            scanner.resume_scan(scan.id)
        assert exc_info.value.code == ErrorCode.SCAN_NOT_RESUMABLE

    def test_resume_of_queued_scan_is_a_no_op(
        self, build_scanner, deferred_job_runner, create_library, media_root
    ) -> None:
        # Given
        scanner = build_scanner(deferred_job_runner)
        runner = deferred_job_runner
        library = create_library(LibraryType.MOVIES, media_root)
        scan_id = scanner.start_scan(library.id)

        # When / Then
        assert scanner.resume_scan(scan_id) is False
        assert runner.enqueued == [scan_id]


class TestMusicScans:
    """Artist and album trees, first and incremental scans."""

    def test_album_tree_is_stored_under_its_artist(
        self, scanner, catalog, create_library, media_root, make_files
    ) -> None:
        # Given
        make_files(
            media_root, ["Pink Floyd/Animals (1977)/01 - Pigs.flac", "Pink Floyd/Animals (1977)/02 - Dogs.flac"]
        )
        library = create_library(LibraryType.MUSIC, media_root)

        # When
        scan = _run_scan(scanner, library)

        # Then
        types = sorted(row["metadata_type"] for row in catalog.list_items(library.id))
        assert types == sorted(
            [MetadataType.ARTIST.value, MetadataType.ALBUM.value, MetadataType.MEDIUM.value, "track", "track"]
        )
        assert scan.items_added == 5
        artist = catalog.get_item_by_path(library.id, normalize_path(media_root / "Pink Floyd"))
        album = catalog.get_item_by_path(library.id, normalize_path(media_root / "Pink Floyd" / "Animals (1977)"))
        assert artist["parent_uuid"] is None
        assert album["parent_uuid"] == artist["uuid"]

    def test_track_added_to_an_existing_disc_folder_is_cataloged(
        self, scanner, catalog, create_library, media_root, make_files
    ) -> None:
        # Given
        album_dir = media_root / "Pink Floyd" / "The Wall"
        make_files(album_dir, ["CD1/01 - In the Flesh.flac", "CD2/01 - Hey You.flac"])
        for path in (media_root / "Pink Floyd", album_dir, album_dir / "CD1", album_dir / "CD2"):
            os.utime(path, (1_000_000, 1_000_000))
        library = create_library(LibraryType.MUSIC, media_root)
        first = _run_scan(scanner, library)

        [new_track] = make_files(album_dir, ["CD1/02 - Thin Ice.flac"])
        os.utime(album_dir / "CD1", (2_000_000, 2_000_000))

        # When
        second = _run_scan(scanner, library)

        # Then
        assert first.items_added == 6
        assert (second.items_added, second.items_removed) == (1, 0)
        row = catalog.get_item_by_path(library.id, normalize_path(new_track))
        assert row is not None
        assert row["metadata_type"] == "track"
        assert row["parent_uuid"] == path_identifier(library.id, normalize_path(album_dir / "CD1"))
        assert catalog.count_items(library.id) == 7

    def test_retagged_track_of_an_unchanged_album_is_updated(
        self, scanner, catalog, create_library, media_root, make_files
    ) -> None:
        # Given
        album_dir = media_root / "Pink Floyd" / "Animals (1977)"
        [track] = make_files(album_dir, ["01 - Pigs.flac"])
        library = create_library(LibraryType.MUSIC, media_root)
        _run_scan(scanner, library)
        track.write_bytes(b"longer payload")

        # When
        scan = _run_scan(scanner, library)

        # Then
        assert (scan.items_added, scan.items_updated) == (0, 1)
        assert catalog.get_item_by_path(library.id, normalize_path(track))["size"] == len(b"longer payload")
