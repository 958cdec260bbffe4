"""Request building and response handling shared by both AUR clients.

:class:`~aurkit.client.sync_client.AurClient` and
:class:`~aurkit.client.async_client.AsyncAurClient` differ only in how
they wait on I/O. Everything that does not wait lives here: endpoint
URLs and query parameters, the default headers, HTTP status to
exception mapping, JSON decoding, and health-check classification.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from datetime import datetime
from typing import Any

import httpx

from aurkit.exceptions import AurkitError, NotFoundError, ParseError, ServerError
from aurkit.models import HealthStatus, RequestConfig, ServiceStatus

logger = logging.getLogger(__name__)

PKGBUILD_PATH = "/cgit/aur.git/plain/PKGBUILD"

HEALTH_CHECK_TIMEOUT = 5.0
"""Default timeout, in seconds, for a health check."""

DEGRADED_LATENCY = 2.0
"""Round trip, in seconds, at or above which a healthy answer counts as degraded."""


def default_headers(config: RequestConfig) -> dict[str, str]:
    return {"User-Agent": config.user_agent}


def search_request(config: RequestConfig, query: str) -> tuple[str, list[tuple[str, str]]]:
    """Return the URL and query parameters for a name search."""
    return f"{config.rpc_url.rstrip('/')}/search", [("by", "name"), ("arg", query)]


def info_request(
    config: RequestConfig, names: Sequence[str]
) -> tuple[str, list[tuple[str, str]]]:
    """Return the URL and the repeated ``arg[]`` parameters for an info lookup."""
    return f"{config.rpc_url.rstrip('/')}/info", [("arg[]", name) for name in names]


def health_request(config: RequestConfig) -> str:
    """Return the URL of the minimal RPC request used for a health check (info with no names)."""
    return f"{config.rpc_url.rstrip('/')}/info"


def comments_url(config: RequestConfig, pkgname: str) -> str:
    return f"{config.base_url.rstrip('/')}/packages/{pkgname}"


def pkgbuild_request(config: RequestConfig, package: str) -> tuple[str, list[tuple[str, str]]]:
    return f"{config.base_url.rstrip('/')}{PKGBUILD_PATH}", [("h", package)]


def map_response_error(response: httpx.Response) -> None:
    """Raise a typed exception for error HTTP status codes.

    Raises:
        NotFoundError: On 404.
        ServerError: On any other status >= 400.
    """
    status = response.status_code
    if status < 400:
        return

    msg = response.reason_phrase or ""
    full_msg = f"HTTP {status}: {msg}" if msg else f"HTTP {status}"
    full_msg = f"{full_msg} ({response.request.url})"

    if status == 404:
        raise NotFoundError(full_msg)
    raise ServerError(full_msg)


def decode_json(response: httpx.Response) -> Any:
    """Decode a JSON response body.

    Raises:
        ParseError: If the body is not valid JSON.
    """
    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ParseError(f"Invalid JSON from {response.request.url}: {exc}") from exc


def health_from_response(
    response: httpx.Response, latency: float, checked_at: datetime
) -> HealthStatus:
    """Classify a successful health-check response.

    A body that is not an RPC payload (no ``version`` and ``type``) counts
    as degraded, as does a round trip of :data:`DEGRADED_LATENCY` or more.
    """
    status = ServiceStatus.HEALTHY
    try:
        payload = decode_json(response)
    except ParseError as exc:
        logger.debug("Health check returned invalid JSON: %s", exc)
        status = ServiceStatus.DEGRADED
    else:
        if not isinstance(payload, dict) or "version" not in payload or "type" not in payload:
            logger.debug("Health check response is missing RPC fields")
            status = ServiceStatus.DEGRADED
        elif latency >= DEGRADED_LATENCY:
            status = ServiceStatus.DEGRADED
    logger.debug("Health check: %s in %.3fs", status.value, latency)
    return HealthStatus(aur_api=status, latency=latency, checked_at=checked_at)


def health_from_error(exc: AurkitError, latency: float, checked_at: datetime) -> HealthStatus:
    """Classify a failed health check: timeouts apart, every failure is unreachable."""
    if isinstance(exc.__cause__, httpx.TimeoutException):
        status = ServiceStatus.TIMEOUT
    else:
        status = ServiceStatus.UNREACHABLE
    logger.debug("Health check failed (%s): %s", status.value, exc)
    return HealthStatus(aur_api=status, latency=latency, checked_at=checked_at)
