"""Photo resolver."""

from __future__ import annotations

import os

from mediavault.core.models import LibraryType, MetadataItem, MetadataType, path_key
from mediavault.core.resolvers.base import ItemResolveArgs, ItemResolver
from mediavault.shared.constants import ImageFormats


class PhotoResolver(ItemResolver):
    name = "photo"
    order = 30
    library_types = frozenset({LibraryType.PHOTOS})

    def resolve(self, args: ItemResolveArgs) -> MetadataItem | None:
        file = args.file
        if args.is_root or file.is_directory or file.extension not in ImageFormats.EXTENSIONS:
            return None

        item = MetadataItem(
            metadata_type=MetadataType.PHOTO,
            title=file.stem,
            path=file.path,
            size=file.size,
            mtime=file.mtime,
        )
        if path_key(file.parent) != path_key(args.location_root):
            item.extra_fields["album"] = os.path.basename(file.parent)
        return item
