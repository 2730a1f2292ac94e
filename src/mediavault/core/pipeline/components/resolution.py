"""Item resolution stage.

Runs the resolver chain over every entry that needs classification and
keeps resolved directories in the ancestor cache so that their
descendants receive the ancestor chain and the nearest resolved parent.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

from mediavault.core.models import normalize_path
from mediavault.core.pipeline.base import CancellationToken, PipelineStage
from mediavault.core.pipeline.components.ancestor_cache import AncestorCache
from mediavault.core.pipeline.context import ScanContext
from mediavault.core.pipeline.utils import ResolutionStatistics
from mediavault.core.pipeline.work_item import ScanWorkItem
from mediavault.core.resolvers.base import ItemResolveArgs, ResolverChain
from mediavault.shared.constants import PipelineStages, ScanDefaults

logger = logging.getLogger(__name__)


class ItemResolutionStage(PipelineStage[ScanWorkItem, ScanWorkItem]):
    """Classify entries with a first-match resolver chain.

    Unchanged files pass through without resolution. Directories are
    always resolved, unchanged or replayed ones included, because their
    descendants need them as ancestors. Resolvers are told when the nearest
    cached ancestor was unchanged, since its tree is not stored this run.
    Entries no resolver claims are dropped.

    Args:
        resolver_chain: Ordered resolvers
        prune_interval: Items between ancestor cache sweeps
        stats: Optional statistics collector
    """

    name = PipelineStages.RESOLVE_ITEMS

    def __init__(
        self,
        resolver_chain: ResolverChain,
        prune_interval: int = ScanDefaults.PRUNE_INTERVAL,
        stats: ResolutionStatistics | None = None,
    ) -> None:
        self.resolver_chain = resolver_chain
        self.ancestor_cache = AncestorCache(prune_interval)
        self.stats = stats or ResolutionStatistics()

    def run(
        self,
        items: Iterator[ScanWorkItem],
        context: ScanContext,
        cancel: CancellationToken,
    ) -> Iterator[ScanWorkItem]:
        library = context.library
        for item in items:
            cancel.raise_if_cancelled(self.name)

            root = normalize_path(item.location.root_path)
            self.ancestor_cache.mark_active(item.path, root)
            evicted = self.ancestor_cache.tick()
            if evicted:
                self.stats.record_prune(evicted)

            if item.is_unchanged and not item.is_directory:
                self.stats.increment_skipped_unchanged()
                yield item
                continue

            cached = self.ancestor_cache.ancestors_of(item.path, root)
            ancestors = [entry.metadata for entry in cached]
            item.ancestors = ancestors
            item.resolved_parent = ancestors[-1] if ancestors else None

            errors_before = self.resolver_chain.error_count
            item.resolved = self.resolver_chain.resolve(
                ItemResolveArgs(
                    file=item.file,
                    library_type=library.library_type,
                    location_id=item.location.id,
                    library_id=library.id,
                    location_root=root,
                    children=item.children,
                    is_root=item.is_root,
                    ancestors=tuple(ancestors),
                    resolved_parent=item.resolved_parent,
                    siblings=item.siblings,
                    parent_unchanged=cached[-1].unchanged if cached else False,
                )
            )
            if self.resolver_chain.error_count != errors_before:
                self.stats.increment_resolver_errors()

            if item.resolved is None:
                self.stats.increment_unresolved()
                logger.debug("No resolver claimed %s", item.path)
                continue

            self.stats.increment_resolved()
            if item.is_directory:
                self.ancestor_cache.put(
                    item.file,
                    item.resolved,
                    unchanged=item.is_unchanged or item.replayed,
                )
            yield item

    def release(self) -> None:
        self.ancestor_cache.clear()
