"""Tests for cache key builders."""

from __future__ import annotations

from aurkit.cache import (
    cache_key_comments,
    cache_key_info,
    cache_key_pkgbuild,
    cache_key_search,
)
from aurkit.cache.keys import split_key
from aurkit.models import CACHE_OPERATIONS


class TestKeyBuilders:
    def test_search_key_strips_whitespace(self) -> None:
        assert cache_key_search("  yay  ") == "search:yay"
        assert cache_key_search("yay") == cache_key_search("\tyay\n")

    def test_info_key_is_order_independent(self) -> None:
        assert cache_key_info(["yay", "paru"]) == "info:paru,yay"
        assert cache_key_info(["paru", "yay"]) == cache_key_info(["yay", "paru"])

    def test_info_key_accepts_any_iterable(self) -> None:
        assert cache_key_info(iter(["b", "a"])) == "info:a,b"

    def test_comments_and_pkgbuild_keys(self) -> None:
        assert cache_key_comments("yay") == "comments:yay"
        assert cache_key_pkgbuild("yay") == "pkgbuild:yay"


class TestSplitKey:
    def test_known_prefixes(self) -> None:
        assert split_key("info:a,b", CACHE_OPERATIONS) == ("info", "a,b")
        assert split_key("pkgbuild:yay", CACHE_OPERATIONS) == ("pkgbuild", "yay")

    def test_unknown_prefix_defaults_to_search(self) -> None:
        assert split_key("other:thing", CACHE_OPERATIONS) == ("search", "other:thing")
        assert split_key("plain", CACHE_OPERATIONS) == ("search", "plain")
