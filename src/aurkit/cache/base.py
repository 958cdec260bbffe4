"""Abstract cache interface and the JSON codec shared by both tiers.

:class:`Cache` is the capability set every storage tier implements:
``get``, ``set``, ``invalidate`` and ``clear``. Values are encoded with
:func:`pydantic_core.to_json`, so Pydantic models (and lists or dicts of
them) can be cached directly. On the way out, passing ``type_`` to
``get`` validates the stored JSON back into that type through a
:class:`pydantic.TypeAdapter`; without it, plain JSON data is returned.

Reads never raise. A payload that fails to decode is reported as a miss.
"""

from __future__ import annotations

import abc
import logging
from datetime import timedelta
from functools import lru_cache
from typing import Any, Optional, Union

import pydantic_core
from pydantic import TypeAdapter, ValidationError

from aurkit.exceptions import CacheSerializationError

logger = logging.getLogger(__name__)

TTL = Union[timedelta, float, int]
"""A time-to-live given either as a :class:`~datetime.timedelta` or in seconds."""


def ttl_seconds(ttl: TTL) -> float:
    """Normalise *ttl* to a number of seconds (never negative)."""
    if isinstance(ttl, timedelta):
        seconds = ttl.total_seconds()
    else:
        seconds = float(ttl)
    return max(seconds, 0.0)


def encode_value(value: Any) -> bytes:
    """Serialise *value* to JSON bytes.

    Raises:
        CacheSerializationError: If the value has no JSON representation.
    """
    try:
        return pydantic_core.to_json(value)
    except (pydantic_core.PydanticSerializationError, TypeError, ValueError) as exc:
        raise CacheSerializationError(f"Cache serialization error: {exc}") from exc


@lru_cache(maxsize=64)
def _adapter(type_: Any) -> TypeAdapter:
    return TypeAdapter(type_)


def decode_value(data: Union[bytes, str], type_: Any = None) -> Optional[Any]:
    """Deserialise JSON *data*, returning ``None`` when it cannot be decoded.

    Args:
        data: JSON payload as produced by :func:`encode_value`.
        type_: Optional target type (e.g. ``list[AurPackage]``). When
            given, the payload is validated into that type.
    """
    try:
        if type_ is None:
            return pydantic_core.from_json(data)
        return _adapter(type_).validate_json(data)
    except (ValueError, ValidationError, TypeError) as exc:
        logger.debug("Discarding undecodable cache payload: %s", exc)
        return None


class Cache(abc.ABC):
    """Capability set shared by every cache tier.

    Implementations must be safe to share between threads without
    external locking.
    """

    @abc.abstractmethod
    def get(self, key: str, type_: Any = None) -> Optional[Any]:
        """Return the live value stored under *key*, or ``None``.

        Never raises: missing, expired, and undecodable entries all read
        as a miss.
        """

    @abc.abstractmethod
    def set(self, key: str, value: Any, ttl: TTL) -> None:
        """Store *value* under *key* for *ttl*.

        Raises:
            CacheSerializationError: If *value* cannot be encoded.
            CacheIOError: If a persistent tier cannot write the entry.
        """

    @abc.abstractmethod
    def invalidate(self, key: str) -> None:
        """Remove *key* if present. Absent keys are not an error."""

    @abc.abstractmethod
    def clear(self) -> None:
        """Remove every entry."""
