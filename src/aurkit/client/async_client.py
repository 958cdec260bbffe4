"""Asynchronous AUR client -- mirrors :class:`~aurkit.client.sync_client.AurClient` API.

This module provides :class:`AsyncAurClient`, the non-blocking counterpart
to :class:`~aurkit.client.sync_client.AurClient`. It wraps
:class:`httpx.AsyncClient` and offers the same operations as coroutines.

The cache facade is synchronous and its disk tier does file I/O, so every
cache call is run in a worker thread through :func:`asyncio.to_thread`.
The facade is thread-safe, so one instance can be shared between this
client, a blocking client, and other threads.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any, Optional

import httpx

from aurkit.aur import parse_comments_html, parse_info_results, parse_search_results
from aurkit.cache import (
    CacheWrapper,
    cache_key_comments,
    cache_key_info,
    cache_key_pkgbuild,
    cache_key_search,
)
from aurkit.client import common
from aurkit.exceptions import AurkitError, CacheError, NetworkError
from aurkit.models import (
    AurComment,
    AurPackage,
    AurPackageDetails,
    CacheConfig,
    HealthStatus,
    RequestConfig,
)

logger = logging.getLogger(__name__)


class AsyncAurClient:
    """Asynchronous client for the Arch User Repository.

    Accepts the same arguments as
    :class:`~aurkit.client.sync_client.AurClient`, except that
    *http_client* must be an :class:`httpx.AsyncClient`.

    Example::

        async with AsyncAurClient() as client:
            details = await client.info(["yay", "paru"])
    """

    def __init__(
        self,
        config: Optional[RequestConfig] = None,
        cache: Optional[CacheWrapper] = None,
        cache_config: Optional[CacheConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._config = config or RequestConfig()
        if cache is None and cache_config is not None:
            cache = CacheWrapper(cache_config)
        self._cache = cache
        self._client = http_client
        self._owns_client = http_client is None

    @property
    def config(self) -> RequestConfig:
        return self._config

    @property
    def cache(self) -> Optional[CacheWrapper]:
        return self._cache

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> AsyncAurClient:
        self._http()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the transport if this client created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------ #
    # AUR operations
    # ------------------------------------------------------------------ #

    async def search(self, query: str) -> list[AurPackage]:
        """Search AUR packages by name. See :meth:`AurClient.search`."""
        query = query.strip()
        if not query:
            return []

        key = cache_key_search(query)
        cached = await self._cache_get("search", key, list[AurPackage])
        if cached is not None:
            logger.debug("Cache hit: %s", key)
            return cached

        url, params = common.search_request(self._config, query)
        response = await self._get(url, params)
        packages = parse_search_results(common.decode_json(response))
        await self._cache_set("search", key, packages)
        return packages

    async def info(self, names: Iterable[str]) -> list[AurPackageDetails]:
        """Fetch metadata for one or more packages. See :meth:`AurClient.info`."""
        names = list(names)
        if not names:
            return []

        key = cache_key_info(names)
        cached = await self._cache_get("info", key, list[AurPackageDetails])
        if cached is not None:
            logger.debug("Cache hit: %s", key)
            return cached

        url, params = common.info_request(self._config, names)
        response = await self._get(url, params)
        details = parse_info_results(common.decode_json(response))
        await self._cache_set("info", key, details)
        return details

    async def comments(self, pkgname: str) -> list[AurComment]:
        """Scrape a package's comments. See :meth:`AurClient.comments`."""
        key = cache_key_comments(pkgname)
        cached = await self._cache_get("comments", key, list[AurComment])
        if cached is not None:
            logger.debug("Cache hit: %s", key)
            return cached

        response = await self._get(common.comments_url(self._config, pkgname))
        comments = parse_comments_html(response.text, pkgname, self._config.base_url)
        await self._cache_set("comments", key, comments)
        return comments

    async def pkgbuild(self, package: str) -> str:
        """Fetch the raw PKGBUILD text. See :meth:`AurClient.pkgbuild`."""
        key = cache_key_pkgbuild(package)
        cached = await self._cache_get("pkgbuild", key, str)
        if cached is not None:
            logger.debug("Cache hit: %s", key)
            return cached

        url, params = common.pkgbuild_request(self._config, package)
        text = (await self._get(url, params)).text
        await self._cache_set("pkgbuild", key, text)
        return text

    async def check_health(self, timeout: Optional[float] = None) -> HealthStatus:
        """Check the AUR RPC API. See :meth:`AurClient.check_health`."""
        url = common.health_request(self._config)
        checked_at = datetime.now(timezone.utc)
        start = time.monotonic()
        try:
            response = await self._get(url, timeout=timeout or common.HEALTH_CHECK_TIMEOUT)
        except AurkitError as exc:
            return common.health_from_error(exc, time.monotonic() - start, checked_at)
        return common.health_from_response(response, time.monotonic() - start, checked_at)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._config.timeout,
                follow_redirects=True,
            )
            self._owns_client = True
        return self._client

    async def _get(
        self,
        url: str,
        params: Optional[list[tuple[str, str]]] = None,
        timeout: Optional[float] = None,
    ) -> httpx.Response:
        logger.debug("GET %s %s", url, params or "")
        kwargs: dict[str, Any] = {} if timeout is None else {"timeout": timeout}
        try:
            response = await self._http().get(
                url, params=params, headers=common.default_headers(self._config), **kwargs
            )
        except httpx.TransportError as exc:
            raise NetworkError(f"Request to {url} failed: {exc}") from exc
        common.map_response_error(response)
        return response

    async def _cache_get(self, operation: str, key: str, type_: Any) -> Optional[Any]:
        if self._cache is None or not self._cache.config.is_enabled(operation):
            return None
        return await asyncio.to_thread(self._cache.get, key, type_)

    async def _cache_set(self, operation: str, key: str, value: Any) -> None:
        if self._cache is None or not self._cache.config.is_enabled(operation):
            return
        ttl = self._cache.config.ttl_for(operation)
        try:
            await asyncio.to_thread(self._cache.set, key, value, ttl)
        except CacheError as exc:
            logger.warning("Failed to cache %s: %s", key, exc)
