"""File-backed cache tier that survives process restarts.

Each entry is one JSON file::

    <cache_root>/<operation>/<name>.json
    {"data": "<JSON-encoded value>", "cached_at": 1700000000, "ttl_seconds": 300}

``<operation>`` comes from the key prefix (``search``, ``info``,
``comments``, ``pkgbuild``; anything else is filed under ``search``).
``<name>`` is the rest of the key with every character other than
alphanumerics, ``-``, ``_`` and ``.`` replaced by ``_``; when that is
longer than 200 bytes the SHA-256 hex digest of the full key is used
instead.

Writes go to ``<name>.<random>.tmp`` in the same directory and are
published with :func:`os.replace`, so readers see either the previous
file or the complete new one. A crash mid-write can leave a stray
``.tmp`` file, which :meth:`DiskCache.clear` also removes.

An entry expires once ``cached_at + ttl_seconds < now`` in whole Unix
seconds, so a disk entry can be served for up to one second past its
TTL. Promotion into memory is capped at the remaining disk lifetime.

There is no in-process lock. Concurrent writers to one key each publish
a complete file and the last rename wins.
"""

from __future__ import annotations

import hashlib
import json
import logging
import math
import time
from pathlib import Path
from typing import Any, Optional

from aurkit.cache.base import TTL, Cache, decode_value, encode_value, ttl_seconds
from aurkit.cache.keys import split_key
from aurkit.config import atomic_write, get_cache_dir
from aurkit.exceptions import CacheError, CacheIOError
from aurkit.models import CACHE_OPERATIONS

logger = logging.getLogger(__name__)

MAX_FILENAME_BYTES = 200


def _unix_now() -> int:
    now = time.time()
    if now < 0:
        raise CacheError("System time error: clock is before the Unix epoch")
    return int(now)


def _safe_filename(key_part: str) -> str:
    return "".join(c if c.isalnum() or c in "-_." else "_" for c in key_part)


class DiskCache(Cache):
    """Persistent cache storing one JSON file per key.

    Args:
        cache_dir: Root directory for cache files. Defaults to
            :func:`~aurkit.config.get_cache_dir`, resolved once here.

    Raises:
        CacheIOError: If the root or any operation subdirectory cannot be
            created.
    """

    def __init__(self, cache_dir: Optional[str | Path] = None) -> None:
        try:
            root = Path(cache_dir) if cache_dir is not None else get_cache_dir()
        except (OSError, RuntimeError) as exc:
            raise CacheIOError(f"Cannot determine cache directory: {exc}") from exc
        try:
            root.mkdir(parents=True, exist_ok=True)
            for operation in CACHE_OPERATIONS:
                (root / operation).mkdir(exist_ok=True)
        except OSError as exc:
            raise CacheIOError(f"Cannot create cache directory {root}: {exc}") from exc
        self._cache_dir = root

    @property
    def cache_dir(self) -> Path:
        return self._cache_dir

    def path_for(self, key: str) -> Path:
        """Return the file path that stores *key*."""
        operation, key_part = split_key(key, CACHE_OPERATIONS)
        filename = _safe_filename(key_part)
        if len(filename.encode("utf-8")) > MAX_FILENAME_BYTES:
            filename = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self._cache_dir / operation / f"{filename}.json"

    # ------------------------------------------------------------------ #
    # Cache interface
    # ------------------------------------------------------------------ #

    def get(self, key: str, type_: Any = None) -> Optional[Any]:
        hit = self.get_entry(key, type_)
        return hit[0] if hit is not None else None

    def get_entry(self, key: str, type_: Any = None) -> Optional[tuple[Any, float]]:
        """Like :meth:`get`, but also return the entry's remaining lifetime in seconds.

        Returns:
            ``(value, remaining_seconds)`` on a hit, ``None`` otherwise.
            Expired files are deleted as they are found.
        """
        path = self.path_for(key)
        record = self._read_record(path)
        if record is None:
            return None
        data, cached_at, ttl = record
        now = time.time()
        if cached_at + ttl < int(now):
            self._remove_quietly(path)
            return None
        value = decode_value(data, type_)
        if value is None:
            return None
        return value, max(cached_at + ttl - now, 0.0)

    def set(self, key: str, value: Any, ttl: TTL) -> None:
        path = self.path_for(key)
        data = encode_value(value).decode("utf-8")
        record = {
            "data": data,
            "cached_at": _unix_now(),
            "ttl_seconds": math.floor(ttl_seconds(ttl)),
        }
        try:
            atomic_write(path, json.dumps(record), prefix=f"{path.stem}.")
        except OSError as exc:
            raise CacheIOError(f"Cannot write cache file {path}: {exc}") from exc

    def invalidate(self, key: str) -> None:
        path = self.path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise CacheIOError(f"Cannot remove cache file {path}: {exc}") from exc

    def clear(self) -> None:
        for path in list(self._iter_files(("*.json", "*.tmp"))):
            try:
                path.unlink(missing_ok=True)
            except OSError as exc:
                raise CacheIOError(f"Cannot remove cache file {path}: {exc}") from exc

    # ------------------------------------------------------------------ #
    # Maintenance
    # ------------------------------------------------------------------ #

    def cleanup_expired(self) -> int:
        """Delete every expired entry file and return how many were removed.

        Files that cannot be read or parsed are skipped, not deleted.
        """
        now = int(time.time())
        removed = 0
        for path in list(self._iter_files(("*.json",))):
            record = self._read_record(path)
            if record is None:
                continue
            _, cached_at, ttl = record
            if cached_at + ttl < now and self._remove_quietly(path):
                removed += 1
        if removed:
            logger.debug("Removed %d expired disk cache entries", removed)
        return removed

    def stats(self) -> dict[str, Any]:
        """Return the number of entry files per operation and the root directory."""
        counts = {
            op: sum(1 for _ in (self._cache_dir / op).glob("*.json"))
            for op in CACHE_OPERATIONS
        }
        return {"directory": str(self._cache_dir), "files": counts}

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _iter_files(self, patterns: tuple[str, ...]):
        for operation in CACHE_OPERATIONS:
            directory = self._cache_dir / operation
            if not directory.is_dir():
                continue
            for pattern in patterns:
                yield from directory.glob(pattern)

    @staticmethod
    def _read_record(path: Path) -> Optional[tuple[str, int, int]]:
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            data = raw["data"]
            cached_at = int(raw["cached_at"])
            ttl = int(raw["ttl_seconds"])
        except FileNotFoundError:
            return None
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.debug("Skipping unreadable cache file %s: %s", path, exc)
            return None
        if not isinstance(data, str):
            return None
        return data, cached_at, ttl

    @staticmethod
    def _remove_quietly(path: Path) -> bool:
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            logger.debug("Could not remove cache file %s: %s", path, exc)
            return False
        return True
