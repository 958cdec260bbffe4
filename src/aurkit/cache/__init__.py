"""Two-tier caching for AUR operations.

This package provides :class:`CacheWrapper`, the facade used by the AUR
clients, and the pieces it is built from:

* :class:`MemoryCache` -- bounded, thread-safe LRU table with TTL expiry.
* :class:`DiskCache` -- one JSON file per entry under the user cache
  directory, published with atomic renames.
* Key builders (:func:`cache_key_search` and friends) that normalise
  requests so equivalent calls share an entry.

Caching is controlled per operation by :class:`~aurkit.models.CacheConfig`.
"""

from aurkit.cache.base import Cache
from aurkit.cache.disk import DiskCache
from aurkit.cache.keys import (
    cache_key_comments,
    cache_key_info,
    cache_key_pkgbuild,
    cache_key_search,
)
from aurkit.cache.memory import MemoryCache
from aurkit.cache.wrapper import PROMOTION_TTL, CacheWrapper

__all__ = [
    "Cache",
    "CacheWrapper",
    "DiskCache",
    "MemoryCache",
    "PROMOTION_TTL",
    "cache_key_comments",
    "cache_key_info",
    "cache_key_pkgbuild",
    "cache_key_search",
]
