"""Metadata item tree produced by resolvers.

Resolvers return a ``MetadataItem`` that may carry nested children (an
album holds media which hold tracks). Before insertion the tree is
flattened and every node receives a deterministic identifier.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# Namespace for identifiers derived from "<library_id>:<path>"
ITEM_NAMESPACE = uuid.UUID("6f1c8a52-3d5e-4b8f-9a47-2c0e5d7b1a93")


class MetadataType(str, Enum):
    """Type of a catalog item."""

    MOVIE = "movie"
    SHOW = "show"
    SEASON = "season"
    EPISODE = "episode"
    EXTRA = "extra"
    ARTIST = "artist"
    ALBUM = "album"
    MEDIUM = "medium"
    TRACK = "track"
    PHOTO = "photo"


@dataclass
class PersonCredit:
    """A credited person from a local sidecar."""

    name: str
    role: str = "actor"
    character: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "role": self.role, "character": self.character}


@dataclass(eq=False)
class MetadataItem:
    """A typed catalog item, possibly with nested children.

    Attributes:
        metadata_type: Item type
        title: Display title
        path: Backing file or directory; None for virtual nodes (e.g. a medium
            without its own disc folder)
        parent: Resolved parent node, usually taken from the ancestor cache;
            only its identifier is persisted
        children: Nested nodes owned by this item, inserted together with it
        uuid: Stable identifier, assigned at flatten time when missing
    """

    metadata_type: MetadataType
    title: str
    sort_title: str | None = None
    original_title: str | None = None
    summary: str | None = None
    year: int | None = None
    index: int | None = None
    path: str | None = None
    size: int | None = None
    mtime: float | None = None
    is_directory: bool = False
    library_id: int | None = None
    uuid: str | None = None
    parent_uuid: str | None = None
    parent: MetadataItem | None = field(default=None, repr=False)
    children: list[MetadataItem] = field(default_factory=list, repr=False)
    thumb_uri: str | None = None
    art_uri: str | None = None
    genres: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    people: list[PersonCredit] = field(default_factory=list)
    groups: list[str] = field(default_factory=list)
    extra_fields: dict[str, Any] = field(default_factory=dict)

    def add_child(self, child: MetadataItem) -> MetadataItem:
        child.parent = self
        self.children.append(child)
        return child

    def iter_tree(self) -> Iterator[MetadataItem]:
        """Yield this node and all nested children in pre-order."""
        yield self
        for child in self.children:
            yield from child.iter_tree()


def path_identifier(library_id: int, path: str) -> str:
    """Identifier of a node backed by ``path`` in library ``library_id``."""
    return str(uuid.uuid5(ITEM_NAMESPACE, f"{library_id}:{path}"))


def assign_identifier(item: MetadataItem, library_id: int) -> str:
    """Give ``item`` (and, recursively, its parent) a stable identifier.

    Path-backed nodes derive their identifier from the library and path, so
    a re-scan yields the same value. Virtual nodes derive it from their
    parent's identifier plus type, index and title.

    Returns:
        The item's identifier
    """
    if item.uuid is not None:
        return item.uuid

    if item.path is not None:
        item.uuid = path_identifier(library_id, item.path)
    else:
        parent_uuid = assign_identifier(item.parent, library_id) if item.parent else None
        namespace = uuid.UUID(parent_uuid) if parent_uuid else ITEM_NAMESPACE
        item.uuid = str(
            uuid.uuid5(namespace, f"{item.metadata_type.value}:{item.index}:{item.title}")
        )
    return item.uuid


def flatten_items(items: Iterable[MetadataItem], library_id: int) -> list[MetadataItem]:
    """Flatten item trees into a parent-first list ready for insertion.

    Missing identifiers are assigned and ``parent_uuid``/``library_id`` are
    filled in. Duplicate identifiers keep the last occurrence.
    """
    flattened: dict[str, MetadataItem] = {}
    for root in items:
        for node in root.iter_tree():
            node.library_id = library_id
            node_uuid = assign_identifier(node, library_id)
            if node.parent is not None:
                node.parent_uuid = assign_identifier(node.parent, library_id)
            flattened.pop(node_uuid, None)
            flattened[node_uuid] = node
    return list(flattened.values())
