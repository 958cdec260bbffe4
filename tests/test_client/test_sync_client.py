"""Tests for the synchronous AUR client."""

from __future__ import annotations

import time
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import patch

import httpx
import pytest

from aurkit.cache import CacheWrapper, DiskCache
from aurkit.client import AurClient, common
from aurkit.exceptions import CacheIOError, NetworkError, NotFoundError, ParseError, ServerError
from aurkit.models import AurPackage, CacheConfig, RequestConfig, ServiceStatus


SEARCH = "/rpc/v5/search"
INFO = "/rpc/v5/info"
PKGBUILD = "/cgit/aur.git/plain/PKGBUILD"


def _all_enabled(**extra) -> CacheConfig:
    return CacheConfig(
        enable_search=True,
        enable_info=True,
        enable_comments=True,
        enable_pkgbuild=True,
        **extra,
    )


# ---------------------------------------------------------------------------
# Context manager
# ---------------------------------------------------------------------------


class TestContextManager:
    def test_enter_creates_and_exit_closes_owned_client(self) -> None:
        client = AurClient()
        assert client._client is None
        with client:
            assert isinstance(client._client, httpx.Client)
        assert client._client is None

    def test_injected_client_is_not_closed(self, make_http) -> None:
        http, _ = make_http({})
        with AurClient(http_client=http):
            pass
        assert not http.is_closed

    def test_cache_config_builds_wrapper(self) -> None:
        client = AurClient(cache_config=CacheConfig(enable_search=True))
        assert isinstance(client.cache, CacheWrapper)
        assert client.cache.config.enable_search

    def test_explicit_cache_wins(self) -> None:
        cache = CacheWrapper(CacheConfig())
        client = AurClient(cache=cache, cache_config=_all_enabled())
        assert client.cache is cache


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class TestSearch:
    def test_search_request_and_result(self, make_http, search_payload) -> None:
        http, handler = make_http({SEARCH: search_payload})
        packages = AurClient(http_client=http).search("  yay ")

        assert [p.name for p in packages] == ["yay", "yay-bin"]
        [request] = handler.requests
        assert request.url.host == "aur.archlinux.org"
        assert request.url.params["by"] == "name"
        assert request.url.params["arg"] == "yay"
        assert request.headers["User-Agent"] == "aurkit"

    def test_empty_query_makes_no_request(self, make_http) -> None:
        http, handler = make_http({})
        assert AurClient(http_client=http).search("   ") == []
        assert handler.requests == []

    def test_custom_user_agent_and_rpc_url(self, make_http, search_payload) -> None:
        http, handler = make_http({"/custom/search": search_payload})
        config = RequestConfig(user_agent="tester/2", rpc_url="https://mirror.test/custom")
        AurClient(config=config, http_client=http).search("yay")
        assert handler.requests[0].url.host == "mirror.test"
        assert handler.requests[0].headers["User-Agent"] == "tester/2"

    def test_invalid_json_raises_parse_error(self, make_http) -> None:
        http, _ = make_http({SEARCH: lambda r: httpx.Response(200, text="<html>oops")})
        with pytest.raises(ParseError):
            AurClient(http_client=http).search("yay")


class TestInfo:
    def test_repeated_arg_params(self, make_http, info_payload) -> None:
        http, handler = make_http({INFO: info_payload})
        details = AurClient(http_client=http).info(["yay", "paru"])

        assert [d.name for d in details] == ["yay"]
        assert handler.requests[0].url.params.get_list("arg[]") == ["yay", "paru"]

    def test_empty_names_makes_no_request(self, make_http) -> None:
        http, handler = make_http({})
        assert AurClient(http_client=http).info([]) == []
        assert handler.requests == []


class TestCommentsAndPkgbuild:
    def test_comments_scraped_from_package_page(self, make_http, comments_html) -> None:
        http, handler = make_http({"/packages/yay": comments_html})
        comments = AurClient(http_client=http).comments("yay")
        assert [c.author for c in comments] == ["maintainer", "carol", "bob"]
        assert handler.requests[0].url.path == "/packages/yay"

    def test_pkgbuild_text(self, make_http) -> None:
        http, handler = make_http({PKGBUILD: "pkgname=yay\npkgver=12.3.5\n"})
        text = AurClient(http_client=http).pkgbuild("yay")
        assert text.startswith("pkgname=yay")
        assert handler.requests[0].url.params["h"] == "yay"


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------


class TestErrorMapping:
    def test_404_raises_not_found(self, make_http) -> None:
        http, _ = make_http({})
        with pytest.raises(NotFoundError):
            AurClient(http_client=http).comments("does-not-exist")

    @pytest.mark.parametrize("status", [400, 429, 500, 503])
    def test_other_errors_raise_server_error(self, make_http, status: int) -> None:
        http, _ = make_http({PKGBUILD: lambda r: httpx.Response(status)})
        with pytest.raises(ServerError, match=str(status)):
            AurClient(http_client=http).pkgbuild("yay")

    def test_transport_failure_raises_network_error(self) -> None:
        def _fail(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        http = httpx.Client(transport=httpx.MockTransport(_fail))
        with pytest.raises(NetworkError):
            AurClient(http_client=http).search("yay")
        http.close()

    def test_no_retry_on_server_error(self, make_http) -> None:
        http, handler = make_http({SEARCH: lambda r: httpx.Response(502)})
        with pytest.raises(ServerError):
            AurClient(http_client=http).search("yay")
        assert len(handler.requests) == 1


# ---------------------------------------------------------------------------
# Caching
# ---------------------------------------------------------------------------


class TestCaching:
    def test_second_search_is_served_from_cache(self, make_http, search_payload) -> None:
        http, handler = make_http({SEARCH: search_payload})
        client = AurClient(cache_config=_all_enabled(), http_client=http)

        first = client.search("yay")
        second = client.search(" yay ")

        assert second == first
        assert isinstance(second[0], AurPackage)
        assert len(handler.requests) == 1

    def test_info_key_ignores_name_order(self, make_http, info_payload) -> None:
        http, handler = make_http({INFO: info_payload})
        client = AurClient(cache_config=_all_enabled(), http_client=http)
        client.info(["yay", "paru"])
        client.info(["paru", "yay"])
        assert len(handler.requests) == 1

    def test_disabled_operation_is_not_cached(self, make_http) -> None:
        http, handler = make_http({PKGBUILD: "pkgname=yay"})
        client = AurClient(cache_config=CacheConfig(enable_search=True), http_client=http)
        client.pkgbuild("yay")
        client.pkgbuild("yay")
        assert len(handler.requests) == 2
        assert len(client.cache.memory) == 0

    def test_written_with_operation_ttl(self, make_http) -> None:
        http, _ = make_http({PKGBUILD: "pkgname=yay"})
        config = CacheConfig(enable_pkgbuild=True, pkgbuild_ttl=42)
        client = AurClient(cache_config=config, http_client=http)
        with patch.object(client.cache, "set", wraps=client.cache.set) as spy:
            client.pkgbuild("yay")
        spy.assert_called_once()
        assert spy.call_args.args[0] == "pkgbuild:yay"
        assert spy.call_args.args[2] == config.pkgbuild_ttl

    def test_cache_failure_does_not_fail_request(self, make_http, search_payload) -> None:
        http, _ = make_http({SEARCH: search_payload})
        client = AurClient(cache_config=_all_enabled(), http_client=http)
        with patch.object(CacheWrapper, "set", side_effect=CacheIOError("boom")):
            packages = client.search("yay")
        assert len(packages) == 2

    def test_errors_are_not_cached(self, make_http) -> None:
        http, handler = make_http({})
        client = AurClient(cache_config=_all_enabled(), http_client=http)
        for _ in range(2):
            with pytest.raises(NotFoundError):
                client.comments("ghost")
        assert len(handler.requests) == 2

    def test_disk_cache_survives_new_client(
        self, tmp_path: Path, make_http, search_payload
    ) -> None:
        config = _all_enabled(enable_disk_cache=True)
        http, handler = make_http({SEARCH: search_payload})
        AurClient(cache=CacheWrapper(config, cache_dir=tmp_path), http_client=http).search("yay")

        fresh = AurClient(cache=CacheWrapper(config, cache_dir=tmp_path), http_client=http)
        packages = fresh.search("yay")

        assert [p.name for p in packages] == ["yay", "yay-bin"]
        assert len(handler.requests) == 1
        assert DiskCache(tmp_path).path_for("search:yay").exists()


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------


HEALTH_OK = {"version": 5, "type": "multiinfo", "resultcount": 0, "results": []}


class TestHealth:
    def test_healthy(self, make_http) -> None:
        http, handler = make_http({INFO: HEALTH_OK})
        health = AurClient(http_client=http).check_health()

        assert health.aur_api is ServiceStatus.HEALTHY
        assert health.is_healthy
        assert 0 <= health.latency < common.DEGRADED_LATENCY
        assert health.checked_at.tzinfo is not None
        [request] = handler.requests
        assert len(request.url.params) == 0
        assert request.extensions["timeout"]["read"] == common.HEALTH_CHECK_TIMEOUT

    def test_custom_timeout(self, make_http) -> None:
        http, handler = make_http({INFO: HEALTH_OK})
        AurClient(http_client=http).check_health(timeout=1.5)
        assert handler.requests[0].extensions["timeout"]["read"] == 1.5

    def test_slow_answer_is_degraded(self, make_http, monkeypatch) -> None:
        monkeypatch.setattr(common, "DEGRADED_LATENCY", 0.05)

        def slow(request: httpx.Request) -> httpx.Response:
            time.sleep(0.1)
            return httpx.Response(200, json=HEALTH_OK)

        http, _ = make_http({INFO: slow})
        health = AurClient(http_client=http).check_health()
        assert health.aur_api is ServiceStatus.DEGRADED
        assert health.latency >= 0.1
        assert health.is_healthy

    @pytest.mark.parametrize("body", [{"results": []}, "<html>maintenance</html>"])
    def test_unexpected_body_is_degraded(self, make_http, body) -> None:
        http, _ = make_http({INFO: body})
        assert AurClient(http_client=http).check_health().aur_api is ServiceStatus.DEGRADED

    @pytest.mark.parametrize("status", [404, 500, 503])
    def test_error_status_is_unreachable(self, make_http, status: int) -> None:
        http, _ = make_http({INFO: lambda r: httpx.Response(status)})
        health = AurClient(http_client=http).check_health()
        assert health.aur_api is ServiceStatus.UNREACHABLE
        assert not health.is_healthy

    def test_connection_failure_is_unreachable(self) -> None:
        def _fail(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with httpx.Client(transport=httpx.MockTransport(_fail)) as http:
            health = AurClient(http_client=http).check_health()
        assert health.aur_api is ServiceStatus.UNREACHABLE
        assert health.latency is not None

    def test_timeout(self) -> None:
        def _timeout(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with httpx.Client(transport=httpx.MockTransport(_timeout)) as http:
            health = AurClient(http_client=http).check_health()
        assert health.aur_api is ServiceStatus.TIMEOUT
        assert not health.is_healthy

    @pytest.mark.parametrize(
        ("latency", "expected"),
        [(1.99, ServiceStatus.HEALTHY), (2.0, ServiceStatus.DEGRADED), (3.5, ServiceStatus.DEGRADED)],
    )
    def test_latency_threshold(self, latency: float, expected: ServiceStatus) -> None:
        request = httpx.Request("GET", "https://aur.archlinux.org/rpc/v5/info")
        response = httpx.Response(200, json=HEALTH_OK, request=request)
        now = datetime.now(timezone.utc)
        assert common.health_from_response(response, latency, now).aur_api is expected
