"""HTTP clients for the Arch User Repository.

Provides synchronous and asynchronous clients that wrap :mod:`httpx`,
parse responses into :mod:`aurkit.models` instances, and consult an
optional :class:`~aurkit.cache.CacheWrapper`.

Classes:
    :class:`AurClient` -- blocking client backed by :class:`httpx.Client`.
    :class:`AsyncAurClient` -- non-blocking client backed by :class:`httpx.AsyncClient`.

Example::

    from aurkit.client import AurClient

    with AurClient() as client:
        pkgbuild = client.pkgbuild("yay")
"""

from aurkit.client.async_client import AsyncAurClient
from aurkit.client.sync_client import AurClient

__all__ = ["AurClient", "AsyncAurClient"]
