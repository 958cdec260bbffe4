"""Parsing for AUR RPC responses and package pages.

The functions here are pure: the HTTP clients in :mod:`aurkit.client`
fetch the payloads and hand them over for conversion into
:mod:`aurkit.models` instances.
"""

from aurkit.aur.parse import (
    MAX_SEARCH_RESULTS,
    parse_comment_date,
    parse_comments_html,
    parse_info_results,
    parse_search_results,
)

__all__ = [
    "MAX_SEARCH_RESULTS",
    "parse_comment_date",
    "parse_comments_html",
    "parse_info_results",
    "parse_search_results",
]
