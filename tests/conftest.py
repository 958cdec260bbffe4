"""Shared test fixtures for aurkit.

Provides fixtures for isolated config environments, RPC payloads,
mocked HTTP transports, output state, and running CLI commands. These
fixtures are automatically discovered by pytest and available to all
test modules without explicit imports.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
import pytest

from aurkit.output import OutputFormat, OutputManager, reset_output, set_output


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration and cache directories to tmp_path.

    Sets XDG_CONFIG_HOME and XDG_CACHE_HOME to subdirectories of tmp_path,
    forces the XDG layout regardless of host platform, and clears every
    AURKIT_* environment variable.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setattr("aurkit.config._is_xdg_platform", lambda: True)

    for var in [
        "AURKIT_TIMEOUT",
        "AURKIT_USER_AGENT",
        "AURKIT_CACHE_SIZE",
        "AURKIT_CACHE_DISK",
    ]:
        monkeypatch.delenv(var, raising=False)

    return tmp_path


# ---------------------------------------------------------------------------
# AUR payload fixtures
# ---------------------------------------------------------------------------


def _rpc_package(name: str, **fields: Any) -> dict[str, Any]:
    """Build one RPC result object with realistic defaults."""
    pkg: dict[str, Any] = {
        "ID": 1,
        "Name": name,
        "PackageBase": name,
        "Version": "1.0.0-1",
        "Description": f"{name} description",
        "URL": f"https://example.org/{name}",
        "NumVotes": 10,
        "Popularity": 0.5,
        "OutOfDate": None,
        "Maintainer": "alice",
        "FirstSubmitted": 1500000000,
        "LastModified": 1700000000,
    }
    pkg.update(fields)
    return pkg


def _rpc_response(results: list[dict[str, Any]], type_: str = "search") -> dict[str, Any]:
    return {
        "version": 5,
        "type": type_,
        "resultcount": len(results),
        "results": results,
    }


@pytest.fixture
def search_payload() -> dict[str, Any]:
    return _rpc_response(
        [
            _rpc_package("yay", Version="12.3.5-1", Popularity=25.1),
            _rpc_package("yay-bin", Maintainer=None, OutOfDate=1710000000),
        ]
    )


@pytest.fixture
def info_payload() -> dict[str, Any]:
    return _rpc_response(
        [
            _rpc_package(
                "yay",
                License=["GPL-3.0-or-later"],
                Depends=["pacman>5", "git"],
                MakeDepends=["go"],
                OptDepends=["sudo: privilege elevation"],
                Conflicts=["yay-bin"],
                Provides=["yay"],
            )
        ],
        type_="multiinfo",
    )


@pytest.fixture
def rpc_package():
    """Factory for one RPC result object: ``rpc_package("yay", Version="2-1")``."""
    return _rpc_package


@pytest.fixture
def rpc_response():
    """Factory wrapping result objects in an RPC response envelope."""
    return _rpc_response


COMMENTS_HTML = """
<html><body>
<div class="comments package-comments">
  <div class="comments-header"><h3><span class="text">Pinned Comments</span></h3></div>
  <h4 id="comment-900" class="comment-header">
    maintainer commented on <a href="#comment-900" class="date">2023-05-01 10:00 (UTC)</a>
  </h4>
  <div id="comment-900-content" class="article-content">
    <div><p>Please read the wiki before reporting bugs.</p></div>
  </div>
</div>
<div class="comments package-comments">
  <div class="comments-header"><h3><span class="text">Latest Comments</span></h3></div>
  <h4 id="comment-1001" class="comment-header">
    bob commented on <a href="#comment-1001" class="date">2024-01-02 08:30 (UTC)</a>
  </h4>
  <div id="comment-1001-content" class="article-content">
    <div><p>Builds fine<br>on current toolchain.</p></div>
  </div>
  <h4 id="comment-1002" class="comment-header">
    carol commented on <a href="/packages/yay#comment-1002" class="date">2024-03-15 21:45 (UTC)</a>
  </h4>
  <div id="comment-1002-content" class="article-content">
    <div><p>Thanks for the update.</p></div>
  </div>
</div>
</body></html>
"""


@pytest.fixture
def comments_html() -> str:
    return COMMENTS_HTML


# ---------------------------------------------------------------------------
# HTTP fixtures
# ---------------------------------------------------------------------------


class RecordingHandler:
    """MockTransport handler that records requests and serves canned responses.

    ``routes`` maps a URL path to either an :class:`httpx.Response`
    factory or a plain payload (dict/list become JSON, str becomes text).
    Unknown paths answer 404.
    """

    def __init__(self, routes: dict[str, Any]) -> None:
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, text="Not Found")
        if callable(route):
            return route(request)
        if isinstance(route, (dict, list)):
            return httpx.Response(200, json=route)
        return httpx.Response(200, text=route)


@pytest.fixture
def make_http() -> Callable[[dict[str, Any]], tuple[httpx.Client, RecordingHandler]]:
    """Factory returning an ``httpx.Client`` wired to a :class:`RecordingHandler`."""
    clients: list[httpx.Client] = []

    def _make(routes: dict[str, Any]) -> tuple[httpx.Client, RecordingHandler]:
        handler = RecordingHandler(routes)
        client = httpx.Client(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client, handler

    yield _make
    for client in clients:
        client.close()


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a quiet PLAIN-format OutputManager for the duration of a test."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
