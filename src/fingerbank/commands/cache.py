"""Cache commands -- inspect and empty the local response cache.

Only the disk backend persists between invocations, so ``stats`` and
``clear`` act on the ``responses/`` directory under the cache directory.
"""

from __future__ import annotations

import typer

from fingerbank.output import info, print_table, success


cache_app = typer.Typer(no_args_is_help=True)


@cache_app.command("stats")
def cache_stats(ctx: typer.Context) -> None:
    """Show cache settings and the number of stored responses."""
    from fingerbank.cache import DiskStore, create_store
    from fingerbank.commands.query import context_config
    from fingerbank.config import get_cache_dir

    config = context_config(ctx)
    settings = config.cache
    rows = [
        ["enabled", str(settings.enabled).lower()],
        ["backend", settings.backend],
        ["ttl_seconds", str(settings.ttl_seconds)],
        ["marker_header", settings.marker_header or "(disabled)"],
    ]

    store = create_store(settings, get_cache_dir())
    if isinstance(store, DiskStore):
        with store:
            rows.append(["directory", str(store.directory)])
            rows.append(["entries", str(len(store))])

    print_table(["setting", "value"], rows, title="Response cache")


@cache_app.command("clear")
def cache_clear() -> None:
    """Delete every stored response from the disk cache."""
    from pathlib import Path

    from fingerbank.cache import DiskStore
    from fingerbank.config import get_cache_dir

    directory: Path = get_cache_dir() / "responses"
    if not directory.exists():
        info("Cache is empty.")
        return

    with DiskStore(directory) as store:
        removed = store.clear()
    success(f"Removed {removed} cached response(s).")
