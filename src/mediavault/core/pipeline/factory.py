"""Assembly of the standard scan pipeline."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from mediavault.config.models import ScanSettings
from mediavault.core.ignore import IgnoreRuleSet
from mediavault.core.local_metadata import LocalMetadataExtractor
from mediavault.core.models import LibrarySection, SectionLocation
from mediavault.core.pipeline.base import PipelineStage, ScanPipeline
from mediavault.core.pipeline.components import (
    BufferedStage,
    ChangeDetectionStage,
    DirectoryTraversalStage,
    FileSnapshotSource,
    ItemResolutionStage,
    LocalMetadataStage,
)
from mediavault.core.pipeline.work_item import ScanWorkItem
from mediavault.core.resolvers import ResolverChain


@dataclass
class ScanStages:
    """The stages of one scan run, kept so the orchestrator can query and release them."""

    traversal: DirectoryTraversalStage
    prefetch: BufferedStage
    change_detection: ChangeDetectionStage
    resolution: ItemResolutionStage
    local_metadata: LocalMetadataStage
    pipeline: ScanPipeline[ScanWorkItem]

    @property
    def all(self) -> list[PipelineStage]:
        return [
            self.traversal,
            self.prefetch,
            self.change_detection,
            self.resolution,
            self.local_metadata,
        ]

    def release(self) -> None:
        for stage in self.all:
            stage.release()


class ScanPipelineFactory:
    """Build fresh, scan-scoped stages for every run.

    Args:
        snapshot_source: Catalog access for change detection
        resolver_chain: Resolvers used by the resolution stage
        extractors: Local metadata extractors, in order
        ignore_rules: Traversal ignore rules
        settings: Scan tuning values
    """

    def __init__(
        self,
        snapshot_source: FileSnapshotSource,
        resolver_chain: ResolverChain,
        extractors: Sequence[LocalMetadataExtractor],
        ignore_rules: IgnoreRuleSet,
        settings: ScanSettings,
    ) -> None:
        self.snapshot_source = snapshot_source
        self.resolver_chain = resolver_chain
        self.extractors = list(extractors)
        self.ignore_rules = ignore_rules
        self.settings = settings

    def create(self, library: LibrarySection) -> ScanStages:
        traversal = DirectoryTraversalStage(self.ignore_rules)
        prefetch = BufferedStage(capacity=self.settings.prefetch_queue_size)
        change_detection = ChangeDetectionStage(self.snapshot_source)
        resolution = ItemResolutionStage(self.resolver_chain, self.settings.prune_interval)
        local_metadata = LocalMetadataStage(self.extractors)

        locations: list[SectionLocation] = list(library.locations)
        pipeline: ScanPipeline[ScanWorkItem] = (
            ScanPipeline.from_source(locations)
            .then(traversal)
            .then(prefetch)
            .then(change_detection)
            .then(resolution)
            .then(local_metadata)
        )
        return ScanStages(
            traversal=traversal,
            prefetch=prefetch,
            change_detection=change_detection,
            resolution=resolution,
            local_metadata=local_metadata,
            pipeline=pipeline,
        )
