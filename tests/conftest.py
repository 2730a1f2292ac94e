"""
Pytest configuration and shared fixtures for MediaVault tests.

Provides temporary directories, a catalog backed by a temporary sqlite
file, media tree builders and a scanner wired with an inline job runner.
"""

from __future__ import annotations

import tempfile
from collections.abc import Callable, Generator, Iterable
from pathlib import Path
from typing import Any

import pytest

from mediavault.config.models import ScanSettings
from mediavault.core.ignore import IgnoreRuleSet
from mediavault.core.local_metadata import default_extractors
from mediavault.core.models import LibrarySection, LibraryType
from mediavault.core.pipeline import ScanPipelineFactory
from mediavault.core.resolvers import ResolverChain, default_resolver_chain
from mediavault.services import (
    CatalogDB,
    LibraryScannerService,
    LoggingEnrichmentQueue,
    ScanManager,
)


class InlineJobRunner:
    """Job runner stand-in that runs jobs on the calling thread.

    With ``defer=True`` jobs are queued until ``run_pending()`` is called,
    and count as in flight until then.
    """

    def __init__(self, *, defer: bool = False) -> None:
        self.defer = defer
        self.enqueued: list[int] = []
        self.pending: list[tuple[int, Callable[[int], Any]]] = []

    def enqueue(self, scan_id: int, job: Callable[[int], Any]) -> None:
        self.enqueued.append(scan_id)
        if self.defer:
            self.pending.append((scan_id, job))
            return
        job(scan_id)

    def run_pending(self) -> None:
        while self.pending:
            scan_id, job = self.pending.pop(0)
            job(scan_id)

    def is_inflight(self, scan_id: int) -> bool:
        return any(pending_id == scan_id for pending_id, _ in self.pending)

    def shutdown(self, wait: bool = True) -> None:
        self.pending.clear()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to the temporary directory.
    """
    with tempfile.TemporaryDirectory() as temp_path:
        yield Path(temp_path)


@pytest.fixture
def media_root(temp_dir: Path) -> Path:
    """Empty library root, kept apart from the catalog file."""
    root = temp_dir / "media"
    root.mkdir()
    return root


@pytest.fixture
def make_files() -> Callable[..., list[Path]]:
    """Return a helper creating files (and parent folders) below a root."""

    def _make_files(root: Path, relative_paths: Iterable[str], content: bytes = b"data") -> list[Path]:
        created = []
        for relative in relative_paths:
            path = root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)
            created.append(path)
        return created

    return _make_files


@pytest.fixture
def catalog(temp_dir: Path) -> Generator[CatalogDB, None, None]:
    """Catalog in a temporary sqlite file."""
    db = CatalogDB(temp_dir / "catalog.db")
    yield db
    db.close()


@pytest.fixture
def create_library(catalog: CatalogDB) -> Callable[..., LibrarySection]:
    """Return a helper registering a library over one or more roots."""

    def _create_library(
        library_type: LibraryType,
        *roots: Path,
        name: str | None = None,
    ) -> LibrarySection:
        return catalog.create_library(
            name or f"{library_type.value}-library",
            library_type,
            [str(root) for root in roots],
        )

    return _create_library


@pytest.fixture
def scan_settings() -> ScanSettings:
    """Small batches and chunks so tests cross every boundary."""
    return ScanSettings(
        batch_size=2,
        delete_chunk_size=2,
        prefetch_queue_size=4,
        checkpoint_item_threshold=2,
    )


@pytest.fixture
def job_runner() -> InlineJobRunner:
    return InlineJobRunner()


@pytest.fixture
def deferred_job_runner() -> InlineJobRunner:
    """Runner that holds jobs until ``run_pending()``."""
    return InlineJobRunner(defer=True)


@pytest.fixture
def enrichment_queue() -> LoggingEnrichmentQueue:
    return LoggingEnrichmentQueue()


@pytest.fixture
def build_scanner(
    catalog: CatalogDB,
    scan_settings: ScanSettings,
    enrichment_queue: LoggingEnrichmentQueue,
) -> Callable[..., LibraryScannerService]:
    """Return a factory for scanner services sharing the test catalog."""

    def _build_scanner(
        job_runner: InlineJobRunner | None = None,
        *,
        settings: ScanSettings | None = None,
        resolver_chain: ResolverChain | None = None,
        **kwargs: Any,
    ) -> LibraryScannerService:
        settings = settings or scan_settings
        factory = ScanPipelineFactory(
            snapshot_source=catalog,
            resolver_chain=resolver_chain or default_resolver_chain(),
            extractors=default_extractors(),
            ignore_rules=IgnoreRuleSet(),
            settings=settings,
        )
        kwargs.setdefault("enrichment_queue", enrichment_queue)
        return LibraryScannerService(
            catalog=catalog,
            scan_manager=ScanManager(),
            job_runner=job_runner or InlineJobRunner(),
            pipeline_factory=factory,
            settings=settings,
            **kwargs,
        )

    return _build_scanner


@pytest.fixture
def scanner(
    build_scanner: Callable[..., LibraryScannerService],
    job_runner: InlineJobRunner,
) -> LibraryScannerService:
    """Scanner whose scans run to completion inside ``start_scan``."""
    return build_scanner(job_runner)
