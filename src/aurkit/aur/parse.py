"""Parsers for AUR RPC responses and package-page comments.

The RPC (``/rpc/v5``) answers ``search`` and ``info`` requests with a JSON
object whose ``results`` array holds one object per package, keyed with
CamelCase field names. Comments are not exposed by the RPC, so
:func:`parse_comments_html` scrapes them from the package page with
:mod:`bs4`.

All functions here are pure: they take decoded payloads and return
:mod:`aurkit.models` instances.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from bs4 import BeautifulSoup, NavigableString, Tag

from aurkit.exceptions import ParseError
from aurkit.models import AurComment, AurPackage, AurPackageDetails

logger = logging.getLogger(__name__)

MAX_SEARCH_RESULTS = 200
"""The AUR caps search responses; extra entries are ignored."""

AUR_BASE_URL = "https://aur.archlinux.org"


# ------------------------------------------------------------------ #
# JSON field helpers
# ------------------------------------------------------------------ #


def _str(pkg: dict[str, Any], key: str) -> str:
    value = pkg.get(key)
    return value if isinstance(value, str) else ""


def _str_list(pkg: dict[str, Any], *keys: str) -> list[str]:
    """Return the first array found under *keys*, keeping only string items."""
    for key in keys:
        value = pkg.get(key)
        if isinstance(value, list):
            return [item for item in value if isinstance(item, str)]
    return []


def _positive_int(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value if value > 0 else None


def _count(pkg: dict[str, Any], *keys: str) -> Optional[int]:
    """Read a non-negative count that may arrive as an int or a numeric string."""
    for key in keys:
        if key not in pkg:
            continue
        value = pkg[key]
        if isinstance(value, bool):
            continue
        if isinstance(value, int):
            if value >= 0:
                return value
            continue
        if isinstance(value, str):
            try:
                parsed = int(value)
            except ValueError:
                continue
            if parsed >= 0:
                return parsed
    return None


def _float(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _results(payload: Any) -> list[dict[str, Any]]:
    if not isinstance(payload, dict):
        raise ParseError("AUR RPC response is not a JSON object")
    if payload.get("type") == "error":
        raise ParseError(f"AUR RPC error: {payload.get('error', 'unknown error')}")
    results = payload.get("results")
    if not isinstance(results, list):
        return []
    return [r for r in results if isinstance(r, dict)]


# ------------------------------------------------------------------ #
# RPC parsers
# ------------------------------------------------------------------ #


def parse_search_results(payload: Any) -> list[AurPackage]:
    """Convert an RPC ``search`` response into :class:`AurPackage` objects.

    Entries without a ``Name`` are skipped and at most
    :data:`MAX_SEARCH_RESULTS` packages are returned.

    Raises:
        ParseError: If *payload* is not an RPC response object or reports
            an error.
    """
    packages: list[AurPackage] = []
    for pkg in _results(payload)[:MAX_SEARCH_RESULTS]:
        name = _str(pkg, "Name")
        if not name:
            continue
        maintainer = _str(pkg, "Maintainer") or None
        packages.append(
            AurPackage(
                name=name,
                version=_str(pkg, "Version"),
                description=_str(pkg, "Description"),
                popularity=_float(pkg.get("Popularity")),
                out_of_date=_positive_int(pkg.get("OutOfDate")),
                orphaned=maintainer is None,
                maintainer=maintainer,
            )
        )
    return packages


def parse_info_results(payload: Any) -> list[AurPackageDetails]:
    """Convert an RPC ``info`` response into :class:`AurPackageDetails` objects.

    Raises:
        ParseError: If *payload* is not an RPC response object or reports
            an error.
    """
    details: list[AurPackageDetails] = []
    for pkg in _results(payload):
        name = _str(pkg, "Name")
        if not name:
            continue
        maintainer = _str(pkg, "Maintainer") or None
        details.append(
            AurPackageDetails(
                name=name,
                version=_str(pkg, "Version"),
                description=_str(pkg, "Description"),
                url=_str(pkg, "URL"),
                licenses=_str_list(pkg, "License", "Licenses"),
                groups=_str_list(pkg, "Groups", "Group"),
                provides=_str_list(pkg, "Provides"),
                depends=_str_list(pkg, "Depends"),
                make_depends=_str_list(pkg, "MakeDepends"),
                opt_depends=_str_list(pkg, "OptDepends"),
                conflicts=_str_list(pkg, "Conflicts"),
                replaces=_str_list(pkg, "Replaces"),
                maintainer=maintainer,
                first_submitted=_positive_int(pkg.get("FirstSubmitted")),
                last_modified=_positive_int(pkg.get("LastModified")),
                popularity=_float(pkg.get("Popularity")),
                num_votes=_count(pkg, "NumVotes", "Votes"),
                out_of_date=_positive_int(pkg.get("OutOfDate")),
                orphaned=maintainer is None,
            )
        )
    return details


# ------------------------------------------------------------------ #
# Comments
# ------------------------------------------------------------------ #


def parse_comment_date(text: str) -> Optional[int]:
    """Parse an AUR comment date such as ``2024-01-31 18:05 (UTC)`` to a Unix timestamp.

    The time is read as UTC; the parenthesised zone label is ignored.
    Returns ``None`` when the text does not match.
    """
    stamp = text.strip()
    if "(" in stamp:
        stamp = stamp[: stamp.rfind("(")].strip()
    try:
        parsed = datetime.strptime(stamp, "%Y-%m-%d %H:%M")
    except ValueError:
        return None
    return int(parsed.replace(tzinfo=timezone.utc).timestamp())


def _absolute_url(href: str, pkgname: str, base_url: str) -> str:
    if href.startswith(("http://", "https://")):
        return href
    if href.startswith("#"):
        return f"{base_url}/packages/{pkgname}{href}"
    return f"{base_url}{href}"


def _element_text(element: Tag) -> str:
    """Flatten a comment body to text, keeping paragraph and line breaks."""
    parts: list[str] = []
    for node in element.descendants:
        if isinstance(node, NavigableString):
            parts.append(str(node))
        elif isinstance(node, Tag) and node.name == "br":
            parts.append("\n")
        elif isinstance(node, Tag) and node.name == "p" and parts:
            parts.append("\n\n")
    lines = [line.strip() for line in "".join(parts).splitlines()]
    text = "\n".join(lines)
    while "\n\n\n" in text:
        text = text.replace("\n\n\n", "\n\n")
    return text.strip()


def _sort_key(comment: AurComment) -> tuple[int, int, str]:
    if comment.date_timestamp is not None:
        return (0, -comment.date_timestamp, "")
    return (1, 0, comment.date)


def parse_comments_html(
    html: str, pkgname: str, base_url: str = AUR_BASE_URL
) -> list[AurComment]:
    """Extract comments from an AUR package page.

    Each comment is an ``h4.comment-header`` (author and ``a.date`` link)
    followed by a ``div#comment-<id>-content`` body. When the page has a
    "Pinned Comments" section, comments whose header appears before the
    "Latest Comments" heading are marked pinned.

    Returns:
        Pinned comments first, then the rest; each group newest first,
        with undated comments last. Duplicate ids are dropped.
    """
    soup = BeautifulSoup(html, "html.parser")

    has_pinned_section = any(
        "Pinned Comments" in heading.get_text()
        for heading in soup.find_all(["h2", "h3", "h4"])
    )
    latest_pos = html.lower().find("latest comments")

    seen: set[str] = set()
    comments: list[AurComment] = []
    for index, header in enumerate(soup.select("h4.comment-header")):
        comment_id = header.get("id")
        if isinstance(comment_id, list):
            comment_id = " ".join(comment_id)
        if comment_id:
            if comment_id in seen:
                continue
            seen.add(comment_id)

        header_text = header.get_text()
        if " commented on " in header_text:
            author = header_text.split(" commented on ", 1)[0].strip()
        else:
            words = header_text.split()
            author = words[0] if words else "Unknown"

        date_text = ""
        date_url: Optional[str] = None
        date_link = header.select_one("a.date")
        if date_link is not None:
            date_text = date_link.get_text().strip()
            href = date_link.get("href")
            if isinstance(href, str):
                date_url = _absolute_url(href, pkgname, base_url.rstrip("/"))

        content = ""
        if comment_id and comment_id.startswith("comment-"):
            body = soup.find("div", id=f"{comment_id}-content")
            if isinstance(body, Tag):
                content = _element_text(body)

        if not content and author == "Unknown":
            continue

        timestamp = parse_comment_date(date_text)
        if timestamp is None and date_text:
            logger.debug("Unparseable comment date %r on %s", date_text, pkgname)

        pinned = False
        if has_pinned_section and latest_pos >= 0:
            position = html.find(comment_id) if comment_id else -1
            pinned = position < latest_pos if position >= 0 else index < 10

        comments.append(
            AurComment(
                id=comment_id or date_url,
                author=author,
                date=date_text,
                date_timestamp=timestamp,
                date_url=date_url,
                content=content,
                pinned=pinned,
            )
        )

    pinned_comments = sorted((c for c in comments if c.pinned), key=_sort_key)
    regular_comments = sorted((c for c in comments if not c.pinned), key=_sort_key)
    return pinned_comments + regular_comments
