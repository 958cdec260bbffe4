"""Canonical Pydantic models shared across all aurkit modules.

The models fall into three groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`RequestConfig`, :class:`CacheConfig`, and :class:`GlobalConfig`.
    :class:`CacheConfigBuilder` produces a :class:`CacheConfig` fluently.

**AUR data models** -- produced by :mod:`aurkit.aur` and stored in the cache:
    :class:`AurPackage`, :class:`AurPackageDetails`, and :class:`AurComment`.

**Health models** -- returned by ``check_health`` on both clients:
    :class:`ServiceStatus` and :class:`HealthStatus`.

All models use Pydantic v2. :class:`CacheConfig` is frozen: once built it
is an immutable policy snapshot owned by the cache facade.
"""

from __future__ import annotations

import enum
from datetime import datetime, timedelta
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

CACHE_OPERATIONS: tuple[str, ...] = ("search", "info", "comments", "pkgbuild")
"""Operation kinds that have their own cache policy and disk subdirectory."""


# --- Request Config ---


class RequestConfig(BaseModel):
    """HTTP settings applied to every AUR request."""

    timeout: float = Field(default=30, description="Request timeout in seconds")
    user_agent: str = Field(
        default="aurkit", description="User-Agent header sent with every request"
    )
    base_url: str = Field(
        default="https://aur.archlinux.org", description="AUR web root (package pages, cgit)"
    )
    rpc_url: str = Field(
        default="https://aur.archlinux.org/rpc/v5", description="AUR RPC v5 endpoint root"
    )


# --- Cache Config ---


class CacheConfig(BaseModel):
    """Per-operation cache policy consumed by :class:`~aurkit.cache.CacheWrapper`.

    Every operation is disabled by default, as is the disk tier. TTL
    fields accept a :class:`~datetime.timedelta` or a number of seconds.
    ``memory_cache_size`` counts entries, not bytes, and is never below 1.

    Example::

        CacheConfig(enable_search=True, search_ttl=60, memory_cache_size=50)
    """

    model_config = ConfigDict(frozen=True)

    enable_search: bool = Field(default=False, description="Cache search results")
    search_ttl: timedelta = Field(default=timedelta(minutes=5))
    enable_info: bool = Field(default=False, description="Cache package details")
    info_ttl: timedelta = Field(default=timedelta(minutes=15))
    enable_comments: bool = Field(default=False, description="Cache package comments")
    comments_ttl: timedelta = Field(default=timedelta(minutes=10))
    enable_pkgbuild: bool = Field(default=False, description="Cache PKGBUILD text")
    pkgbuild_ttl: timedelta = Field(default=timedelta(hours=1))
    memory_cache_size: int = Field(default=100, description="Memory tier capacity (entries)")
    enable_disk_cache: bool = Field(default=False, description="Persist entries to disk")

    @field_validator("memory_cache_size", mode="after")
    @classmethod
    def _coerce_capacity(cls, value: int) -> int:
        return max(value, 1)

    @classmethod
    def builder(cls) -> CacheConfigBuilder:
        """Return a :class:`CacheConfigBuilder` seeded with the defaults."""
        return CacheConfigBuilder()

    def is_enabled(self, operation: str) -> bool:
        """Return whether caching is enabled for *operation* (``search``, ``info``, ...)."""
        return bool(getattr(self, f"enable_{operation}", False))

    def ttl_for(self, operation: str) -> timedelta:
        """Return the configured TTL for *operation*.

        Raises:
            ValueError: If *operation* is not one of :data:`CACHE_OPERATIONS`.
        """
        if operation not in CACHE_OPERATIONS:
            raise ValueError(f"Unknown cache operation: {operation}")
        return getattr(self, f"{operation}_ttl")

    @property
    def any_enabled(self) -> bool:
        """``True`` when at least one operation has caching turned on."""
        return any(self.is_enabled(op) for op in CACHE_OPERATIONS)


class CacheConfigBuilder:
    """Fluent builder for :class:`CacheConfig`.

    Each setter returns the builder so calls can be chained; :meth:`build`
    validates the collected fields and returns the frozen configuration.

    Example::

        config = (
            CacheConfigBuilder()
            .enable_search(True)
            .search_ttl(timedelta(minutes=10))
            .memory_cache_size(200)
            .build()
        )
    """

    def __init__(self) -> None:
        self._fields: dict[str, Any] = {}

    def _set(self, name: str, value: Any) -> CacheConfigBuilder:
        self._fields[name] = value
        return self

    def enable_search(self, enable: bool = True) -> CacheConfigBuilder:
        return self._set("enable_search", enable)

    def search_ttl(self, ttl: timedelta | float) -> CacheConfigBuilder:
        return self._set("search_ttl", ttl)

    def enable_info(self, enable: bool = True) -> CacheConfigBuilder:
        return self._set("enable_info", enable)

    def info_ttl(self, ttl: timedelta | float) -> CacheConfigBuilder:
        return self._set("info_ttl", ttl)

    def enable_comments(self, enable: bool = True) -> CacheConfigBuilder:
        return self._set("enable_comments", enable)

    def comments_ttl(self, ttl: timedelta | float) -> CacheConfigBuilder:
        return self._set("comments_ttl", ttl)

    def enable_pkgbuild(self, enable: bool = True) -> CacheConfigBuilder:
        return self._set("enable_pkgbuild", enable)

    def pkgbuild_ttl(self, ttl: timedelta | float) -> CacheConfigBuilder:
        return self._set("pkgbuild_ttl", ttl)

    def memory_cache_size(self, size: int) -> CacheConfigBuilder:
        return self._set("memory_cache_size", size)

    def enable_disk_cache(self, enable: bool = True) -> CacheConfigBuilder:
        return self._set("enable_disk_cache", enable)

    def build(self) -> CacheConfig:
        """Validate the collected settings and return an immutable :class:`CacheConfig`."""
        return CacheConfig(**self._fields)


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/aurkit/config.json``.

    Loaded and saved by :func:`~aurkit.config.load_global_config` and
    :func:`~aurkit.config.save_global_config`. Environment variables
    override file values; see :func:`~aurkit.config.resolve_config`.
    """

    request: RequestConfig = Field(default_factory=RequestConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)


# --- AUR Data Models ---


class AurPackage(BaseModel):
    """A single AUR search result.

    ``orphaned`` is ``True`` when the package has no maintainer.
    ``out_of_date`` is the Unix timestamp at which the package was
    flagged, or ``None`` when it is current.
    """

    name: str
    version: str = ""
    description: str = ""
    popularity: Optional[float] = None
    out_of_date: Optional[int] = None
    orphaned: bool = False
    maintainer: Optional[str] = None


class AurPackageDetails(BaseModel):
    """Full package metadata returned by the AUR ``info`` endpoint."""

    name: str
    version: str = ""
    description: str = ""
    url: str = ""
    licenses: list[str] = Field(default_factory=list)
    groups: list[str] = Field(default_factory=list)
    provides: list[str] = Field(default_factory=list)
    depends: list[str] = Field(default_factory=list)
    make_depends: list[str] = Field(default_factory=list)
    opt_depends: list[str] = Field(default_factory=list)
    conflicts: list[str] = Field(default_factory=list)
    replaces: list[str] = Field(default_factory=list)
    maintainer: Optional[str] = None
    first_submitted: Optional[int] = None
    last_modified: Optional[int] = None
    popularity: Optional[float] = None
    num_votes: Optional[int] = None
    out_of_date: Optional[int] = None
    orphaned: bool = False


class AurComment(BaseModel):
    """A comment scraped from an AUR package page.

    ``date`` is the display string from the page (``YYYY-MM-DD HH:MM (UTC)``)
    and ``date_timestamp`` its parsed Unix time, used for ordering.
    """

    id: Optional[str] = None
    author: str
    date: str = ""
    date_timestamp: Optional[int] = None
    date_url: Optional[str] = None
    content: str = ""
    pinned: bool = False


# --- Health ---


class ServiceStatus(str, enum.Enum):
    """Outcome of a health check against the AUR RPC API."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNREACHABLE = "unreachable"
    TIMEOUT = "timeout"

    @property
    def is_operational(self) -> bool:
        """``True`` for ``HEALTHY`` and ``DEGRADED``."""
        return self in (ServiceStatus.HEALTHY, ServiceStatus.DEGRADED)


class HealthStatus(BaseModel):
    """Result of :meth:`~aurkit.client.AurClient.check_health`.

    ``latency`` is the request round trip in seconds, measured for failed
    checks too. ``checked_at`` is the UTC time the check started.
    """

    aur_api: ServiceStatus
    latency: Optional[float] = None
    checked_at: datetime

    @property
    def is_healthy(self) -> bool:
        return self.aur_api.is_operational
