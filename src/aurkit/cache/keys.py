"""Cache key builders, one per cached AUR operation.

Keys take the form ``"<operation>:<normalized-payload>"``. The disk tier
derives file paths from them, so the normalisation here is part of the
on-disk format: changing it orphans every persisted entry.
"""

from __future__ import annotations

from collections.abc import Iterable


def cache_key_search(query: str) -> str:
    """Key for a search: the query with surrounding whitespace removed."""
    return f"search:{query.strip()}"


def cache_key_info(names: Iterable[str]) -> str:
    """Key for an info lookup: package names sorted ascending, comma-joined."""
    return "info:" + ",".join(sorted(names))


def cache_key_comments(pkgname: str) -> str:
    return f"comments:{pkgname}"


def cache_key_pkgbuild(package: str) -> str:
    return f"pkgbuild:{package}"


def split_key(key: str, operations: Iterable[str]) -> tuple[str, str]:
    """Split *key* into ``(operation, payload)``.

    Keys without a recognised ``"<operation>:"`` prefix are filed under
    ``search`` with the whole key as payload.
    """
    for operation in operations:
        prefix = f"{operation}:"
        if key.startswith(prefix):
            return operation, key[len(prefix):]
    return "search", key
