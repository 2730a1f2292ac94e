"""Dependency Injection container for MediaVault.

This module provides a centralized DI container using dependency-injector
to wire the scan services together.

The container manages:
- Settings (Singleton)
- Catalog database (Singleton)
- Scan manager and job runner (Singletons)
- Enrichment queue, dedup cache and scan finished notifier
- Resolver chain, extractors, ignore rules and pipeline factory (Factories)
- Scanner and recovery services (Singletons)
"""

from __future__ import annotations

from dependency_injector import containers, providers

from mediavault.config.loader import load_settings
from mediavault.core.ignore import IgnoreRuleSet
from mediavault.core.local_metadata import default_extractors
from mediavault.core.pipeline import ScanPipelineFactory
from mediavault.core.resolvers import default_resolver_chain
from mediavault.services import (
    CatalogDB,
    LibraryScannerService,
    LoggingEnrichmentQueue,
    NullDeduplicationCache,
    ScanJobRunner,
    ScanManager,
    ScanRecoveryService,
    log_scan_finished,
)


class Container(containers.DeclarativeContainer):
    """Dependency Injection container for MediaVault services.

    Example:
        >>> container = Container()
        >>> scanner = container.scanner_service()
        >>> scan_id = scanner.start_scan(library_id=1)
    """

    # Configuration
    config = providers.Singleton(load_settings)

    scan_settings = providers.Callable(lambda config: config.scan, config=config)

    # Catalog
    catalog = providers.Singleton(
        CatalogDB,
        db_path=providers.Callable(lambda config: config.database.path, config=config),
    )

    # Execution
    scan_manager = providers.Singleton(ScanManager)

    job_runner = providers.Singleton(
        ScanJobRunner,
        max_workers=providers.Callable(
            lambda config: int(config.jobs.max_concurrent_scans),
            config=config,
        ),
    )

    # Collaborators
    enrichment_queue = providers.Singleton(LoggingEnrichmentQueue)
    dedup_cache = providers.Singleton(NullDeduplicationCache)
    scan_finished_notifier = providers.Object(log_scan_finished)

    # Pipeline building blocks
    ignore_rules = providers.Factory(
        lambda config: IgnoreRuleSet.from_settings(
            config.scan.filter_config.extra_ignored_directories,
            config.scan.filter_config.extra_ignored_files,
            honor_dot_ignore=config.scan.filter_config.honor_dot_ignore,
        ),
        config=config,
    )

    resolver_chain = providers.Factory(default_resolver_chain)

    extractors = providers.Factory(default_extractors)

    pipeline_factory = providers.Factory(
        ScanPipelineFactory,
        snapshot_source=catalog,
        resolver_chain=resolver_chain,
        extractors=extractors,
        ignore_rules=ignore_rules,
        settings=scan_settings,
    )

    # Services
    scanner_service = providers.Singleton(
        LibraryScannerService,
        catalog=catalog,
        scan_manager=scan_manager,
        job_runner=job_runner,
        pipeline_factory=pipeline_factory,
        settings=scan_settings,
        enrichment_queue=enrichment_queue,
        dedup_cache=dedup_cache,
        on_scan_finished=scan_finished_notifier,
    )

    recovery_service = providers.Singleton(ScanRecoveryService, scanner=scanner_service)
