"""aurkit -- Query the Arch User Repository with a two-tier response cache.

This package is a client library for AUR package metadata (search, info,
comments, and PKGBUILD text) with an optional caching layer that keeps
results in a bounded in-memory LRU table and, when enabled, in JSON files
under the user's cache directory.

Typical usage::

    from aurkit import AurClient, CacheConfig

    config = CacheConfig.builder().enable_search(True).build()
    with AurClient(cache_config=config) as client:
        packages = client.search("yay")

Modules:
    cache: Memory tier, disk tier, and the facade that combines them.
    client: Blocking and asyncio HTTP clients for the AUR.
    aur: Response parsing for the AUR RPC and package pages.
    models: Pydantic models shared across the package.
    config: XDG-aware configuration and environment overrides.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting for the ``aurkit`` CLI.
"""

__version__ = "0.1.0"

from aurkit.client import AsyncAurClient, AurClient  # noqa: E402
from aurkit.models import CacheConfig, CacheConfigBuilder  # noqa: E402

__all__ = ["AurClient", "AsyncAurClient", "CacheConfig", "CacheConfigBuilder", "__version__"]
