"""Synchronous AUR client with an optional two-tier response cache.

This module provides :class:`AurClient`, the blocking client used by the
``aurkit`` CLI. It wraps :class:`httpx.Client` and layers on:

- **Typed results** -- RPC and HTML responses are parsed into
  :mod:`aurkit.models` instances by :mod:`aurkit.aur`.
- **Response caching** -- when a :class:`~aurkit.cache.CacheWrapper` is
  attached and the operation is enabled in its
  :class:`~aurkit.models.CacheConfig`, results are read from and written
  back to the cache. A failed cache write never fails the request.
- **Error mapping** -- HTTP 404 raises
  :class:`~aurkit.exceptions.NotFoundError`, other error statuses raise
  :class:`~aurkit.exceptions.ServerError`, and transport failures raise
  :class:`~aurkit.exceptions.NetworkError`.
- **Health check** -- :meth:`AurClient.check_health` times a minimal RPC
  request and reports a :class:`~aurkit.models.HealthStatus` instead of
  raising.

See Also:
    :class:`~aurkit.client.async_client.AsyncAurClient` for the
    equivalent non-blocking implementation.
"""

from __future__ import annotations

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


class AurClient:
    """Synchronous client for the Arch User Repository.

    Can be used as a context manager, which closes the underlying
    transport on exit. Used without ``with``, the transport is opened on
    the first request and released by :meth:`close`.

    Args:
        config: Request settings (timeout, User-Agent, endpoint URLs).
            Defaults to :class:`~aurkit.models.RequestConfig`.
        cache: Cache facade to consult. Takes precedence over
            *cache_config*.
        cache_config: Convenience for building a
            :class:`~aurkit.cache.CacheWrapper` from a policy. Ignored when
            *cache* is given; when both are ``None`` nothing is cached.
        http_client: Pre-built :class:`httpx.Client` (e.g. with a mock
            transport). The caller keeps ownership and must close it.

    Example::

        with AurClient(cache_config=CacheConfig(enable_search=True)) as client:
            for pkg in client.search("yay"):
                print(pkg.name, pkg.version)
    """

    def __init__(
        self,
        config: Optional[RequestConfig] = None,
        cache: Optional[CacheWrapper] = None,
        cache_config: Optional[CacheConfig] = None,
        http_client: Optional[httpx.Client] = None,
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
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> AurClient:
        self._http()
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the transport if this client created it."""
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # AUR operations
    # ------------------------------------------------------------------ #

    def search(self, query: str) -> list[AurPackage]:
        """Search AUR packages by name.

        Args:
            query: Search term. Surrounding whitespace is ignored.

        Returns:
            Up to 200 matching packages. An empty query returns ``[]``
            without contacting the AUR.

        Raises:
            NotFoundError: On HTTP 404.
            ServerError: On other HTTP error statuses.
            NetworkError: On transport failures.
            ParseError: If the response is not a valid RPC payload.
        """
        query = query.strip()
        if not query:
            return []

        key = cache_key_search(query)
        cached = self._cache_get("search", key, list[AurPackage])
        if cached is not None:
            logger.debug("Cache hit: %s", key)
            return cached

        url, params = common.search_request(self._config, query)
        response = self._get(url, params)
        packages = parse_search_results(common.decode_json(response))
        self._cache_set("search", key, packages)
        return packages

    def info(self, names: Iterable[str]) -> list[AurPackageDetails]:
        """Fetch full metadata for one or more packages in a single request.

        Args:
            names: Package names. Packages unknown to the AUR are simply
                absent from the result.

        Returns:
            Details for every package the AUR knows about. An empty
            *names* returns ``[]`` without contacting the AUR.

        Raises:
            NotFoundError: On HTTP 404.
            ServerError: On other HTTP error statuses.
            NetworkError: On transport failures.
            ParseError: If the response is not a valid RPC payload.
        """
        names = list(names)
        if not names:
            return []

        key = cache_key_info(names)
        cached = self._cache_get("info", key, list[AurPackageDetails])
        if cached is not None:
            logger.debug("Cache hit: %s", key)
            return cached

        url, params = common.info_request(self._config, names)
        response = self._get(url, params)
        details = parse_info_results(common.decode_json(response))
        self._cache_set("info", key, details)
        return details

    def comments(self, pkgname: str) -> list[AurComment]:
        """Scrape the comments from a package's AUR page.

        Returns:
            Pinned comments first, then the rest, each newest first.

        Raises:
            NotFoundError: If the package page does not exist.
            ServerError: On other HTTP error statuses.
            NetworkError: On transport failures.
        """
        key = cache_key_comments(pkgname)
        cached = self._cache_get("comments", key, list[AurComment])
        if cached is not None:
            logger.debug("Cache hit: %s", key)
            return cached

        response = self._get(common.comments_url(self._config, pkgname))
        comments = parse_comments_html(response.text, pkgname, self._config.base_url)
        self._cache_set("comments", key, comments)
        return comments

    def pkgbuild(self, package: str) -> str:
        """Fetch the raw PKGBUILD text from the AUR cgit mirror.

        Raises:
            NotFoundError: On HTTP 404.
            ServerError: On other HTTP error statuses.
            NetworkError: On transport failures.
        """
        key = cache_key_pkgbuild(package)
        cached = self._cache_get("pkgbuild", key, str)
        if cached is not None:
            logger.debug("Cache hit: %s", key)
            return cached

        url, params = common.pkgbuild_request(self._config, package)
        text = self._get(url, params).text
        self._cache_set("pkgbuild", key, text)
        return text

    def check_health(self, timeout: Optional[float] = None) -> HealthStatus:
        """Check that the AUR RPC API answers, and how fast.

        Sends an ``info`` request with no package names and times the
        round trip. Never raises: failures are reported in the result.

        Args:
            timeout: Seconds to wait. Defaults to
                :data:`~aurkit.client.common.HEALTH_CHECK_TIMEOUT`.

        Returns:
            ``HEALTHY`` under 2 s, ``DEGRADED`` at 2 s or more or when the
            body is not an RPC payload, ``TIMEOUT`` when the request timed
            out, and ``UNREACHABLE`` on any other failure.
        """
        url = common.health_request(self._config)
        checked_at = datetime.now(timezone.utc)
        start = time.monotonic()
        try:
            response = self._get(url, timeout=timeout or common.HEALTH_CHECK_TIMEOUT)
        except AurkitError as exc:
            return common.health_from_error(exc, time.monotonic() - start, checked_at)
        return common.health_from_response(response, time.monotonic() - start, checked_at)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _http(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                timeout=self._config.timeout,
                follow_redirects=True,
            )
            self._owns_client = True
        return self._client

    def _get(
        self,
        url: str,
        params: Optional[list[tuple[str, str]]] = None,
        timeout: Optional[float] = None,
    ) -> httpx.Response:
        logger.debug("GET %s %s", url, params or "")
        kwargs: dict[str, Any] = {} if timeout is None else {"timeout": timeout}
        try:
            response = self._http().get(
                url, params=params, headers=common.default_headers(self._config), **kwargs
            )
        except httpx.TransportError as exc:
            raise NetworkError(f"Request to {url} failed: {exc}") from exc
        common.map_response_error(response)
        return response

    def _cache_get(self, operation: str, key: str, type_: Any) -> Optional[Any]:
        if self._cache is None or not self._cache.config.is_enabled(operation):
            return None
        return self._cache.get(key, type_)

    def _cache_set(self, operation: str, key: str, value: Any) -> None:
        if self._cache is None or not self._cache.config.is_enabled(operation):
            return
        try:
            self._cache.set(key, value, self._cache.config.ttl_for(operation))
        except CacheError as exc:
            logger.warning("Failed to cache %s: %s", key, exc)
