"""Cache commands -- inspect and clean the on-disk response cache.

Provides the ``aurkit cache`` sub-command group. The commands always
operate on the disk tier under :func:`~aurkit.config.get_cache_dir`,
whether or not ``enable_disk_cache`` is set in the config file: the
memory tier does not outlive a single command.
"""

from __future__ import annotations

import typer

from aurkit.output import OutputFormat, get_output


cache_app = typer.Typer(no_args_is_help=True)


def _open_cache():
    from aurkit.cache import CacheWrapper
    from aurkit.config import resolve_config

    config = resolve_config().cache.model_copy(update={"enable_disk_cache": True})
    return CacheWrapper(config)


@cache_app.command("clear")
def cache_clear() -> None:
    """Delete every cached entry, including leftover temporary files.

    Example::

        aurkit cache clear
    """
    cache = _open_cache()
    cache.clear()
    get_output().success(f"Cleared cache at {cache.disk.cache_dir}")


@cache_app.command("cleanup")
def cache_cleanup() -> None:
    """Delete expired entries and keep live ones.

    Example::

        aurkit cache cleanup
    """
    removed = _open_cache().cleanup_expired()
    noun = "entry" if removed == 1 else "entries"
    get_output().success(f"Removed {removed} expired {noun}")


@cache_app.command("stats")
def cache_stats() -> None:
    """Show where the cache lives and how many entries each operation holds.

    Example::

        aurkit cache stats
        aurkit --json cache stats
    """
    output = get_output()
    disk = _open_cache().stats()["disk"]

    if output.format == OutputFormat.JSON:
        output.format_response(disk)
        return

    output.info(f"Cache directory: {disk['directory']}")
    rows = [[op, str(count)] for op, count in disk["files"].items()]
    output.print_table(["Operation", "Entries"], rows, title="Disk cache")
