"""Cache facade combining the memory tier with an optional disk tier.

:class:`CacheWrapper` is the single cache object the AUR clients talk to.

* **Read-through** -- ``get`` tries memory first, then disk. A disk hit is
  promoted into memory so the next read stays in-process.
* **Write-through** -- ``set`` writes memory, then disk. Memory errors
  propagate; disk errors are logged and swallowed.
* ``invalidate`` and ``clear`` follow the same rule as ``set``.

A promoted entry lives in memory for :data:`PROMOTION_TTL` seconds, or
for the remaining lifetime of the disk entry when that is shorter, so a
promotion never keeps a value alive past its disk expiry.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

from aurkit.cache.base import TTL
from aurkit.cache.disk import DiskCache
from aurkit.cache.memory import MemoryCache
from aurkit.exceptions import CacheError
from aurkit.models import CacheConfig

logger = logging.getLogger(__name__)

PROMOTION_TTL = 300.0
"""Upper bound, in seconds, on how long a promoted disk hit stays in memory."""


class CacheWrapper:
    """Two-tier cache driven by a :class:`~aurkit.models.CacheConfig`.

    Args:
        config: Cache policy. ``memory_cache_size`` sizes the memory tier
            and ``enable_disk_cache`` decides whether a disk tier exists.
        cache_dir: Root for the disk tier. Defaults to
            :func:`~aurkit.config.get_cache_dir`.

    Raises:
        CacheIOError: If the disk tier is enabled but its directory cannot
            be created.

    Example::

        cache = CacheWrapper(CacheConfig(enable_search=True))
        cache.set(cache_key_search("yay"), packages, ttl=300)
        cache.get(cache_key_search("yay"), list[AurPackage])
    """

    def __init__(self, config: CacheConfig, cache_dir: Optional[str | Path] = None) -> None:
        self._config = config
        self._memory = MemoryCache(config.memory_cache_size)
        self._disk: Optional[DiskCache] = None
        if config.enable_disk_cache:
            self._disk = DiskCache(cache_dir)
            logger.debug("Disk cache enabled at %s", self._disk.cache_dir)

    @property
    def config(self) -> CacheConfig:
        return self._config

    @property
    def memory(self) -> MemoryCache:
        return self._memory

    @property
    def disk(self) -> Optional[DiskCache]:
        return self._disk

    def get(self, key: str, type_: Any = None) -> Optional[Any]:
        """Return the cached value for *key*, consulting memory then disk.

        Args:
            key: A key from one of the :mod:`aurkit.cache.keys` builders.
            type_: Optional type to validate the value into.

        Returns:
            The value, or ``None`` on a miss in both tiers.
        """
        value = self._memory.get(key, type_)
        if value is not None:
            return value
        if self._disk is None:
            return None

        hit = self._disk.get_entry(key, type_)
        if hit is None:
            return None
        value, remaining = hit
        try:
            self._memory.set(key, value, min(PROMOTION_TTL, remaining))
        except CacheError as exc:
            logger.debug("Could not promote %s to memory: %s", key, exc)
        return value

    def set(self, key: str, value: Any, ttl: TTL) -> None:
        """Store *value* in memory and, when enabled, on disk.

        Raises:
            CacheSerializationError: If *value* cannot be encoded.
        """
        self._memory.set(key, value, ttl)
        if self._disk is not None:
            try:
                self._disk.set(key, value, ttl)
            except CacheError as exc:
                logger.warning("Disk cache write failed for %s: %s", key, exc)

    def invalidate(self, key: str) -> None:
        self._memory.invalidate(key)
        if self._disk is not None:
            try:
                self._disk.invalidate(key)
            except CacheError as exc:
                logger.warning("Disk cache invalidation failed for %s: %s", key, exc)

    def clear(self) -> None:
        self._memory.clear()
        if self._disk is not None:
            try:
                self._disk.clear()
            except CacheError as exc:
                logger.warning("Disk cache clear failed: %s", exc)

    def cleanup_expired(self) -> int:
        """Sweep expired entries from both tiers and return the total removed."""
        removed = self._memory.cleanup_expired()
        if self._disk is not None:
            removed += self._disk.cleanup_expired()
        return removed

    def stats(self) -> dict[str, Any]:
        """Return a summary of both tiers suitable for display."""
        result: dict[str, Any] = {"memory": self._memory.stats(), "disk": {"enabled": False}}
        if self._disk is not None:
            result["disk"] = {"enabled": True, **self._disk.stats()}
        return result
