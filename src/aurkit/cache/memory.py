"""In-memory LRU cache tier with per-entry TTL.

:class:`MemoryCache` keeps serialised payloads in an
:class:`~collections.OrderedDict` ordered from least to most recently
used. Both ``get`` and ``set`` move a key to the most-recent end;
inserting a new key into a full table evicts from the other end.

Expiry is checked against :func:`time.monotonic`, so wall-clock changes
do not affect it. Every ``get`` also sweeps all expired entries, which
bounds the memory held by keys nobody asks for again.

All table access happens under a single :class:`threading.Lock`.
Encoding and decoding run outside the lock. The ``with`` block releases
the lock even when the holder raises, and the table is only mutated
through single ``OrderedDict`` calls, so a failed caller leaves the
table usable for everyone else.
"""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Optional

from aurkit.cache.base import TTL, Cache, decode_value, encode_value, ttl_seconds


@dataclass(frozen=True)
class _Entry:
    value: bytes
    expires_at: float


class MemoryCache(Cache):
    """Bounded, thread-safe LRU cache with TTL expiration.

    Args:
        capacity: Maximum number of entries. Values below 1 are raised to 1.

    Example::

        cache = MemoryCache(capacity=2)
        cache.set("search:yay", ["yay"], ttl=60)
        cache.get("search:yay")  # ['yay']
    """

    def __init__(self, capacity: int = 100) -> None:
        self._capacity = max(int(capacity), 1)
        self._entries: OrderedDict[str, _Entry] = OrderedDict()
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        """Report whether a live entry exists, without touching recency."""
        with self._lock:
            entry = self._entries.get(key)  # type: ignore[arg-type]
            return entry is not None and time.monotonic() < entry.expires_at

    def get(self, key: str, type_: Any = None) -> Optional[Any]:
        with self._lock:
            now = time.monotonic()
            self._sweep(now)
            entry = self._entries.get(key)
            if entry is None:
                return None
            self._entries.move_to_end(key)
            payload = entry.value
        return decode_value(payload, type_)

    def set(self, key: str, value: Any, ttl: TTL) -> None:
        payload = encode_value(value)
        entry = _Entry(value=payload, expires_at=time.monotonic() + ttl_seconds(ttl))
        with self._lock:
            if key in self._entries:
                self._entries.move_to_end(key)
            elif len(self._entries) >= self._capacity:
                self._entries.popitem(last=False)
            self._entries[key] = entry

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def cleanup_expired(self) -> int:
        """Remove every expired entry and return how many were dropped."""
        with self._lock:
            return self._sweep(time.monotonic())

    def stats(self) -> dict[str, int]:
        """Return ``size`` (live and not-yet-swept entries) and ``capacity``."""
        with self._lock:
            return {"size": len(self._entries), "capacity": self._capacity}

    def _sweep(self, now: float) -> int:
        # Caller holds the lock.
        expired = [k for k, e in self._entries.items() if e.expires_at <= now]
        for k in expired:
            del self._entries[k]
        return len(expired)
