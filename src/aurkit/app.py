"""Typer application and CLI entry point for aurkit.

This module wires together the top-level Typer application, registers the
package commands (``search``, ``info``, ``comments``, ``pkgbuild``,
``health``) and the ``cache`` group, and maps
:class:`~aurkit.exceptions.AurkitError` to process exit codes.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``.

See Also:
    :mod:`aurkit.config`: Configuration resolution and env overrides.
    :mod:`aurkit.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import logging
import signal
import sys
from typing import Any

import typer

from aurkit import __version__
from aurkit.commands.cache import cache_app
from aurkit.commands.packages import (
    comments_command,
    health_command,
    info_command,
    pkgbuild_command,
    search_command,
)
from aurkit.exceptions import AurkitError, InvalidUsageError
from aurkit.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="aurkit",
    help="Query the Arch User Repository: search, info, comments, and PKGBUILDs.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command("search")(search_command)
app.command("info")(info_command)
app.command("comments")(comments_command)
app.command("pkgbuild")(pkgbuild_command)
app.command("health")(health_command)
app.add_typer(cache_app, name="cache", help="Manage the on-disk response cache.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"aurkit {__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool, console: Any) -> None:
    """Route library log records to stderr through Rich when ``--verbose`` is set."""
    from rich.logging import RichHandler

    root = logging.getLogger("aurkit")
    for handler in list(root.handlers):
        root.removeHandler(handler)
    if verbose:
        handler = RichHandler(console=console, show_path=False, markup=False)
        handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
        root.addHandler(handler)
        root.setLevel(logging.DEBUG)
    else:
        root.setLevel(logging.WARNING)


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
    no_cache: bool = typer.Option(
        False, "--no-cache", help="Bypass the response cache."
    ),
    disk_cache: bool = typer.Option(
        False, "--disk-cache", help="Cache every operation on disk for this run."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~aurkit.output.OutputManager` and
    logging from CLI flags, and stores the cache flags in ``ctx.obj``
    for the package commands.

    Raises:
        InvalidUsageError: If ``--no-cache`` and ``--disk-cache`` are both given.
    """
    from aurkit.output import OutputFormat, OutputManager, set_output

    if no_cache and disk_cache:
        raise InvalidUsageError("--no-cache and --disk-cache are mutually exclusive")

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    output = OutputManager(
        format=fmt,
        no_color=no_color,
        quiet=quiet,
        verbose=verbose,
    )
    set_output(output)
    _configure_logging(verbose, output.stderr_console)

    ctx.ensure_object(dict)
    ctx.obj["no_cache"] = no_cache
    ctx.obj["disk_cache"] = disk_cache
    ctx.obj["verbose"] = verbose


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """CLI entry point invoked by the ``aurkit`` console script.

    :class:`~aurkit.exceptions.AurkitError` instances cause a clean exit
    with the error's ``exit_code``. Any other exception is reported with
    a generic failure exit; ``--verbose`` adds the traceback.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from aurkit.output import get_output

        output = get_output()
        if isinstance(exc, AurkitError):
            output.error(str(exc))
            sys.exit(exc.exit_code)
        logging.getLogger(__name__).debug("Unhandled exception", exc_info=True)
        output.error(f"Unexpected error: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)
