"""Service layer modules grouping business logic by concern.

This module provides convenience re-exports so that callers can simply do for
example `from escale_events.services import DiscoveryGateway` without having to
know which underlying module provides the symbol.
"""

from .backends import DiscoveryError, OpenAIBackend, PerplexityBackend, get_backend  # noqa: F401
from .discovery import DiscoveryGateway, discover_events, parse_discovery_reply  # noqa: F401
from .favorites import Favorites, FavoritesStore, is_favorited  # noqa: F401
from .filtering import FilterOptions, compute_display_list  # noqa: F401
from .sharing import SharePayload, build_share_payload  # noqa: F401
from .storage import LocalFileStorage, MemoryStorage, MongoStorage, get_storage  # noqa: F401

__all__ = [
    "DiscoveryError",
    "OpenAIBackend",
    "PerplexityBackend",
    "get_backend",
    "DiscoveryGateway",
    "discover_events",
    "parse_discovery_reply",
    "Favorites",
    "FavoritesStore",
    "is_favorited",
    "FilterOptions",
    "compute_display_list",
    "SharePayload",
    "build_share_payload",
    "LocalFileStorage",
    "MemoryStorage",
    "MongoStorage",
    "get_storage",
]
