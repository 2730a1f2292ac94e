"""Item resolvers.

``default_resolver_chain()`` returns the chain used by a standard scan.
Each resolver declares the library types it applies to, so a single
chain serves every library.
"""

from mediavault.core.resolvers.base import ItemResolveArgs, ItemResolver, ResolverChain
from mediavault.core.resolvers.extras import ExtrasResolver
from mediavault.core.resolvers.movie import MovieResolver
from mediavault.core.resolvers.music import MusicAlbumResolver, MusicArtistResolver
from mediavault.core.resolvers.photo import PhotoResolver
from mediavault.core.resolvers.tv import EpisodeResolver, SeasonResolver, ShowResolver


def default_resolvers() -> list[ItemResolver]:
    return [
        ShowResolver(),
        SeasonResolver(),
        EpisodeResolver(),
        MovieResolver(),
        ExtrasResolver(),
        MusicAlbumResolver(),
        MusicArtistResolver(),
        PhotoResolver(),
    ]


def default_resolver_chain() -> ResolverChain:
    return ResolverChain(default_resolvers())


__all__ = [
    "EpisodeResolver",
    "ExtrasResolver",
    "ItemResolveArgs",
    "ItemResolver",
    "MovieResolver",
    "MusicAlbumResolver",
    "MusicArtistResolver",
    "PhotoResolver",
    "ResolverChain",
    "SeasonResolver",
    "ShowResolver",
    "default_resolver_chain",
    "default_resolvers",
]
