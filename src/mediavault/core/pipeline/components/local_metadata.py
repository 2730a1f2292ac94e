"""Local metadata extraction stage."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator, Sequence

from mediavault.core.local_metadata.base import (
    LocalMetadataExtractor,
    LocalMetadataResult,
    apply_local_metadata,
)
from mediavault.core.models import FileEntry, MetadataItem, path_key
from mediavault.core.pipeline.base import CancellationToken, PipelineStage
from mediavault.core.pipeline.context import ScanContext
from mediavault.core.pipeline.work_item import ScanWorkItem
from mediavault.shared.constants import PipelineStages
from mediavault.shared.errors import MediaVaultError
from mediavault.shared.logging import log_operation_error

logger = logging.getLogger(__name__)


class LocalMetadataStage(PipelineStage[ScanWorkItem, ScanWorkItem]):
    """Enrich resolved files from sidecar and embedded sources.

    File items are enriched directly. A resolved directory that carries a
    tree (an album and its tracks) has its file-backed descendants
    enriched instead. A failing extractor is logged and skipped; the item
    keeps whatever the resolver and the other extractors produced.
    """

    name = PipelineStages.LOCAL_METADATA

    def __init__(self, extractors: Sequence[LocalMetadataExtractor] = ()) -> None:
        self.extractors = list(extractors)

    def run(
        self,
        items: Iterator[ScanWorkItem],
        context: ScanContext,
        cancel: CancellationToken,
    ) -> Iterator[ScanWorkItem]:
        for item in items:
            cancel.raise_if_cancelled(self.name)
            if self._needs_enrichment(item):
                self._enrich_item(item)
            yield item

    def _needs_enrichment(self, item: ScanWorkItem) -> bool:
        return (
            bool(self.extractors)
            and item.resolved is not None
            and not item.is_unchanged
            and not item.replayed
        )

    def _enrich_item(self, item: ScanWorkItem) -> None:
        resolved = item.resolved
        if resolved is None:
            return
        if not item.is_directory:
            merged = self._enrich(resolved, item.file, item.siblings or [])
            if merged is not None:
                item.local_metadata = merged
            return

        children = item.children or []
        for node in resolved.iter_tree():
            if node is resolved or node.is_directory or node.path is None:
                continue
            file = FileEntry(
                path=node.path,
                name=os.path.basename(node.path),
                is_directory=False,
                size=node.size or 0,
                mtime=node.mtime or 0.0,
            )
            siblings = children if path_key(file.parent) == path_key(item.path) else []
            self._enrich(node, file, siblings)

    def _enrich(
        self,
        target: MetadataItem,
        file: FileEntry,
        siblings: Sequence[FileEntry],
    ) -> LocalMetadataResult | None:
        """Run every applicable extractor and apply the merged result to ``target``."""
        merged = LocalMetadataResult()
        for extractor in self.extractors:
            if not extractor.applies_to(target):
                continue
            try:
                result = extractor.extract(target, file, siblings)
            except MediaVaultError as e:
                log_operation_error(
                    logger,
                    e,
                    operation="extract_local_metadata",
                    additional_context={"extractor": extractor.name, "path": file.path},
                )
                continue
            except (OSError, ValueError) as e:
                logger.warning(
                    "Extractor '%s' failed on %s: %s",
                    extractor.name,
                    file.path,
                    e,
                )
                continue
            if result is not None and result.applied:
                merged.merge(result)

        if not merged.applied:
            return None
        apply_local_metadata(target, merged)
        return merged
