"""Package commands -- search, inspect, and read AUR packages.

Registered directly on the root app by :func:`aurkit.app.main`:

* ``aurkit search QUERY`` -- name search, one row per package.
* ``aurkit info NAME...`` -- full metadata for one or more packages.
* ``aurkit comments NAME`` -- comments from the package page.
* ``aurkit pkgbuild NAME`` -- raw PKGBUILD text.
* ``aurkit health`` -- reachability and latency of the AUR RPC API.

Every command builds an :class:`~aurkit.client.AurClient` from the
resolved configuration (see :func:`~aurkit.config.resolve_config`) and
the ``--no-cache`` / ``--disk-cache`` root flags.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional

import typer

from aurkit.output import OutputFormat, get_output

if TYPE_CHECKING:
    from aurkit.client import AurClient
    from aurkit.models import CacheConfig, GlobalConfig


def _cache_config(ctx: typer.Context, config: GlobalConfig) -> Optional[CacheConfig]:
    """Return the cache policy for this invocation, or ``None`` for no cache.

    ``--no-cache`` wins. ``--disk-cache`` turns on the disk tier and every
    operation, since a memory-only cache does not outlive one command.
    Otherwise the policy from the config file is used as is.
    """
    from aurkit.models import CACHE_OPERATIONS

    obj = ctx.obj or {}
    if obj.get("no_cache"):
        return None
    cache = config.cache
    if obj.get("disk_cache"):
        updates: dict[str, Any] = {f"enable_{op}": True for op in CACHE_OPERATIONS}
        updates["enable_disk_cache"] = True
        cache = cache.model_copy(update=updates)
    return cache if cache.any_enabled else None


def _open_client(ctx: typer.Context) -> AurClient:
    from aurkit.cache import CacheWrapper
    from aurkit.client import AurClient
    from aurkit.config import resolve_config

    config = resolve_config()
    cache_config = _cache_config(ctx, config)
    cache = CacheWrapper(cache_config) if cache_config is not None else None
    return AurClient(config=config.request, cache=cache)


def _fmt_timestamp(value: Optional[int]) -> str:
    if value is None:
        return ""
    return datetime.fromtimestamp(value, tz=timezone.utc).strftime("%Y-%m-%d %H:%M")


def _status(out_of_date: Optional[int], orphaned: bool) -> str:
    flags = []
    if out_of_date is not None:
        flags.append("out-of-date")
    if orphaned:
        flags.append("orphaned")
    return ",".join(flags)


def search_command(
    ctx: typer.Context,
    query: str = typer.Argument(help="Package name or part of it."),
) -> None:
    """Search the AUR by package name.

    Example::

        aurkit search yay
        aurkit --json search paru
    """
    output = get_output()
    with _open_client(ctx) as client:
        packages = client.search(query)

    if output.format == OutputFormat.JSON:
        output.format_response([p.model_dump(mode="json") for p in packages])
        return
    if not packages:
        output.info(f"No packages found for '{query.strip()}'.")
        return

    rows = [
        [
            p.name,
            p.version,
            f"{p.popularity:.2f}" if p.popularity is not None else "",
            _status(p.out_of_date, p.orphaned),
            p.description,
        ]
        for p in packages
    ]
    output.print_table(
        ["Name", "Version", "Popularity", "Status", "Description"],
        rows,
        title=f"AUR search: {query.strip()}",
    )


def info_command(
    ctx: typer.Context,
    names: list[str] = typer.Argument(help="One or more package names."),
) -> None:
    """Show full metadata for AUR packages.

    Raises:
        NotFoundError: If none of the packages exist.

    Example::

        aurkit info yay paru
    """
    from aurkit.exceptions import NotFoundError

    output = get_output()
    with _open_client(ctx) as client:
        details = client.info(names)

    if not details:
        raise NotFoundError(f"No AUR package found: {', '.join(names)}")

    found = {d.name for d in details}
    missing = [n for n in names if n not in found]
    for name in missing:
        output.warning(f"Package not found: {name}")

    if output.format == OutputFormat.JSON:
        output.format_response([d.model_dump(mode="json") for d in details])
        return

    for d in details:
        rows = [
            ["Name", d.name],
            ["Version", d.version],
            ["Description", d.description],
            ["URL", d.url],
            ["Licenses", " ".join(d.licenses)],
            ["Groups", " ".join(d.groups)],
            ["Provides", " ".join(d.provides)],
            ["Depends", " ".join(d.depends)],
            ["Make Depends", " ".join(d.make_depends)],
            ["Optional Depends", "\n".join(d.opt_depends)],
            ["Conflicts", " ".join(d.conflicts)],
            ["Replaces", " ".join(d.replaces)],
            ["Maintainer", d.maintainer or "(orphaned)"],
            ["Votes", "" if d.num_votes is None else str(d.num_votes)],
            ["Popularity", "" if d.popularity is None else f"{d.popularity:.2f}"],
            ["First Submitted", _fmt_timestamp(d.first_submitted)],
            ["Last Modified", _fmt_timestamp(d.last_modified)],
            ["Out Of Date", _fmt_timestamp(d.out_of_date)],
        ]
        output.print_table(["Field", "Value"], rows, title=d.name)


def comments_command(
    ctx: typer.Context,
    name: str = typer.Argument(help="Package name."),
    limit: Optional[int] = typer.Option(
        None, "--limit", "-l", min=1, help="Show at most this many comments."
    ),
) -> None:
    """Show comments from a package's AUR page, pinned first.

    Example::

        aurkit comments yay --limit 5
    """
    output = get_output()
    with _open_client(ctx) as client:
        comments = client.comments(name)
    if limit is not None:
        comments = comments[:limit]

    if output.format == OutputFormat.JSON:
        output.format_response([c.model_dump(mode="json") for c in comments])
        return
    if not comments:
        output.info(f"No comments on {name}.")
        return

    for c in comments:
        pin = " [pinned]" if c.pinned else ""
        output.print_data(f"{c.author} -- {c.date}{pin}")
        if c.content:
            output.print_data(c.content)
        output.print_data("")


def pkgbuild_command(
    ctx: typer.Context,
    name: str = typer.Argument(help="Package name."),
) -> None:
    """Print a package's PKGBUILD.

    Example::

        aurkit pkgbuild yay > PKGBUILD
    """
    with _open_client(ctx) as client:
        text = client.pkgbuild(name)
    get_output().print_source(text)


def health_command(
    ctx: typer.Context,
    timeout: Optional[float] = typer.Option(
        None, "--timeout", min=0.1, help="Seconds to wait (default 5)."
    ),
) -> None:
    """Check that the AUR RPC API is reachable and how fast it answers.

    Exits with the network error code when the API is unreachable or the
    check times out. A degraded API still exits 0.

    Example::

        aurkit health
        aurkit --json health --timeout 2
    """
    from aurkit.exit_codes import EXIT_NETWORK_ERROR

    output = get_output()
    with _open_client(ctx) as client:
        health = client.check_health(timeout)

    if output.format == OutputFormat.JSON:
        output.format_response(health.model_dump(mode="json"))
    else:
        latency = "" if health.latency is None else f"{health.latency * 1000:.0f} ms"
        output.print_table(
            ["Service", "Status", "Latency"],
            [["AUR RPC", health.aur_api.value, latency]],
            title="AUR health",
        )

    if not health.is_healthy:
        raise typer.Exit(code=EXIT_NETWORK_ERROR)
