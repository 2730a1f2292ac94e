"""Resolver contract and first-match resolver chain."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from mediavault.core.models import FileEntry, LibraryType, MetadataItem, MetadataType
from mediavault.shared.errors import ErrorCode, ErrorContext, MediaVaultError
from mediavault.shared.logging import log_operation_error

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ItemResolveArgs:
    """Everything a resolver may look at to classify one entry.

    Attributes:
        file: The entry being classified
        library_type: Type of the owning library
        location_id: Owning location
        library_id: Owning library
        location_root: Root path of the owning location
        children: Visible entries of a directory, None for files
        is_root: True for the location root
        ancestors: Resolved ancestors, root first
        resolved_parent: Nearest resolved ancestor
        siblings: Entries of the parent directory
        parent_unchanged: The nearest resolved ancestor matched the catalog
            snapshot, so its own tree was not stored by this scan
    """

    file: FileEntry
    library_type: LibraryType
    location_id: int
    library_id: int
    location_root: str
    children: Sequence[FileEntry] | None = None
    is_root: bool = False
    ancestors: Sequence[MetadataItem] = field(default_factory=tuple)
    resolved_parent: MetadataItem | None = None
    siblings: Sequence[FileEntry] | None = None
    parent_unchanged: bool = False

    def parent_of_type(self, metadata_type: MetadataType) -> MetadataItem | None:
        """Nearest resolved ancestor of the given type."""
        for ancestor in reversed(self.ancestors):
            if ancestor.metadata_type == metadata_type:
                return ancestor
        return None


class ItemResolver(ABC):
    """Classifies an entry into a metadata item.

    Attributes:
        name: Resolver name used in diagnostics
        order: Lower values run first
        library_types: Library types the resolver applies to
    """

    name: str = "resolver"
    order: int = 100
    library_types: frozenset[LibraryType] = frozenset()

    def supports(self, library_type: LibraryType) -> bool:
        return library_type in self.library_types

    @abstractmethod
    def resolve(self, args: ItemResolveArgs) -> MetadataItem | None:
        """Return a resolved item, or None when the entry is not claimed."""


class ResolverChain:
    """Ordered resolver list with first-match dispatch.

    Resolvers are kept sorted by ``order``; ties keep registration order.
    A resolver that raises is logged and treated as no-match for that
    entry so one bad file never fails a scan.
    """

    def __init__(self, resolvers: Iterable[ItemResolver] = ()) -> None:
        self._resolvers: list[ItemResolver] = []
        for resolver in resolvers:
            self.register(resolver)
        self.error_count = 0

    def register(self, resolver: ItemResolver) -> None:
        self._resolvers.append(resolver)
        # sort() is stable, so equal orders keep registration order
        self._resolvers.sort(key=lambda r: r.order)

    @property
    def resolvers(self) -> list[ItemResolver]:
        return list(self._resolvers)

    def resolve(self, args: ItemResolveArgs) -> MetadataItem | None:
        for resolver in self._resolvers:
            if not resolver.supports(args.library_type):
                continue
            try:
                result = resolver.resolve(args)
            except MediaVaultError as e:
                self.error_count += 1
                log_operation_error(logger, e, operation="resolve_item")
                continue
            except Exception as e:  # noqa: BLE001
                self.error_count += 1
                error = MediaVaultError(
                    ErrorCode.RESOLVER_ERROR,
                    f"Resolver '{resolver.name}' failed on {args.file.path}",
                    ErrorContext(
                        file_path=args.file.path,
                        operation="resolve_item",
                        additional_data={"resolver": resolver.name},
                    ),
                    original_error=e,
                )
                log_operation_error(logger, error)
                continue
            if result is not None:
                return result
        return None
