"""Typer application and CLI entry point for fingerbank.

This module wires together the top-level Typer application: the root
callback that initialises output and collects config overrides, the API
commands from :mod:`fingerbank.commands.query`, and the ``cache`` and
``config`` sub-command groups.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs signal handlers and invokes the Typer app.
:class:`~fingerbank.exceptions.FingerbankError` exits with its exit code;
any other exception is written to a crash log under the data directory.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from fingerbank import __version__
from fingerbank.commands.cache import cache_app
from fingerbank.commands.config import config_app
from fingerbank.commands.query import (
    account_command,
    base_info_command,
    device_command,
    download_command,
    interrogate_command,
)
from fingerbank.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="fingerbank",
    help="Query the Fingerbank device-fingerprinting API.",
    no_args_is_help=True,
    add_completion=True,
    rich_markup_mode="rich",
)

app.command("interrogate")(interrogate_command)
app.command("device")(device_command)
app.command("base-info")(base_info_command)
app.command("account")(account_command)
app.command("download")(download_command)
app.add_typer(cache_app, name="cache", help="Response cache management.")
app.add_typer(config_app, name="config", help="Configuration management.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"fingerbank {__version__}")
        raise typer.Exit()


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
    base_url: Optional[str] = typer.Option(
        None, "--base-url", help="Override the API base URL."
    ),
    no_cache: bool = typer.Option(
        False, "--no-cache", help="Bypass the response cache."
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
        False, "--verbose", "-v", help="Enable debug output (cache hits, retries)."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~fingerbank.output.OutputManager` and stores
    the config overrides in ``ctx.obj`` for the commands to pass to
    :func:`~fingerbank.config.resolve_config`.
    """
    from fingerbank.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    cli_format: Optional[str] = None
    if json_output:
        fmt = OutputFormat.JSON
        cli_format = fmt.value
    elif plain_output:
        fmt = OutputFormat.PLAIN
        cli_format = fmt.value

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))

    ctx.ensure_object(dict)
    ctx.obj["config_overrides"] = {
        "cli_base_url": base_url,
        "cli_format": cli_format,
        "cli_no_cache": no_cache,
    }


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write version, argv and traceback to a crash log; return its path.

    argv never carries the API key; it is read from its configured source.
    """
    from fingerbank.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_path = logs_dir / f"crash-{datetime.now():%Y%m%d-%H%M%S}.log"
    header = f"fingerbank {__version__}\nargv: {' '.join(sys.argv)}\n\n"
    tb = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    log_path.write_text(header + tb, encoding="utf-8")
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``fingerbank`` console script.

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
        from fingerbank.exceptions import CacheError, FingerbankError
        from fingerbank.output import error, info

        if isinstance(exc, FingerbankError):
            error(str(exc))
            if isinstance(exc, CacheError):
                info("Retry, or run 'fingerbank cache clear' or pass --no-cache.")
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
