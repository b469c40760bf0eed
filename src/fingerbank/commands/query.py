"""API commands -- query Fingerbank from the command line.

Each command resolves the effective configuration, reads the API key from
its configured source, opens a :class:`~fingerbank.client.FingerbankClient`
wired to the configured cache, and renders the response with
:func:`~fingerbank.client.response.format_api_response`.

Example::

    $ fingerbank interrogate --dhcp "1,15,3,6,44,46,47,31,33,121,249,43"
    $ fingerbank --verbose device 33
    $ fingerbank base-info --field id --field name --json > devices.json
"""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import typer

from fingerbank.client import FingerbankClient
from fingerbank.client.response import format_api_response
from fingerbank.models import GlobalConfig
from fingerbank.output import debug, success


def context_config(ctx: typer.Context) -> GlobalConfig:
    """Resolve the configuration using the root callback's overrides."""
    from fingerbank.config import resolve_config

    overrides = (ctx.obj or {}).get("config_overrides", {})
    return resolve_config(**overrides)


@contextmanager
def client_session(config: GlobalConfig) -> Iterator[FingerbankClient]:
    """Open a client for *config* and close its cache store afterwards."""
    from fingerbank.cache import CacheSettings, DiskStore, create_store
    from fingerbank.config import get_cache_dir, resolve_credential

    api_key = resolve_credential(config.api_key_source)
    store = create_store(config.cache, get_cache_dir()) if config.cache.enabled else None
    settings = CacheSettings.from_config(config.cache, store)
    debug(f"Cache {'enabled (' + config.cache.backend + ')' if store else 'disabled'}")

    try:
        with FingerbankClient(
            api_key,
            base_url=config.base_url,
            user_agent=config.user_agent,
            request_config=config.request,
            cache=settings,
        ) as client:
            yield client
    finally:
        if isinstance(store, DiskStore):
            store.close()


def interrogate_command(
    ctx: typer.Context,
    dhcp: Optional[str] = typer.Option(
        None, "--dhcp", help="DHCP fingerprint (option 55 list, e.g. '1,15,3,6')."
    ),
    dhcp6: Optional[str] = typer.Option(None, "--dhcp6", help="DHCPv6 fingerprint."),
    dhcp6_enterprise: Optional[str] = typer.Option(
        None, "--dhcp6-enterprise", help="DHCPv6 enterprise number."
    ),
    dhcp_vendor: Optional[str] = typer.Option(
        None, "--dhcp-vendor", help="DHCP vendor class (option 60)."
    ),
    user_agent: Optional[list[str]] = typer.Option(
        None, "--user-agent", "-u", help="HTTP user agent seen for the device (repeatable)."
    ),
    mac: Optional[str] = typer.Option(None, "--mac", help="MAC address of the device."),
) -> None:
    """Identify a device from the attributes observed on the network."""
    config = context_config(ctx)
    with client_session(config) as client:
        response = client.interrogate(
            dhcp_fingerprint=dhcp,
            dhcp6_fingerprint=dhcp6,
            dhcp6_enterprise=dhcp6_enterprise,
            dhcp_vendor=dhcp_vendor,
            user_agents=user_agent or [],
            mac=mac,
        )
    format_api_response(response, config.cache.marker_header)


def device_command(
    ctx: typer.Context,
    device_id: int = typer.Argument(help="Fingerbank device id."),
) -> None:
    """Show one device by id."""
    config = context_config(ctx)
    with client_session(config) as client:
        response = client.device(device_id)
    format_api_response(response, config.cache.marker_header)


def base_info_command(
    ctx: typer.Context,
    field: Optional[list[str]] = typer.Option(
        None,
        "--field",
        help="Field to include: id, name, parent_id, virtual_parent_id, details (repeatable).",
    ),
) -> None:
    """Dump the device catalogue."""
    config = context_config(ctx)
    with client_session(config) as client:
        response = client.devices_base_info(field or None)
    format_api_response(response, config.cache.marker_header)


def account_command(ctx: typer.Context) -> None:
    """Show usage information for the configured API key."""
    config = context_config(ctx)
    with client_session(config) as client:
        response = client.account_info()
    format_api_response(response)


def download_command(
    ctx: typer.Context,
    destination: Path = typer.Argument(
        Path("fingerbank.sqlite"), help="Where to write the SQLite database."
    ),
) -> None:
    """Download the full Fingerbank SQLite database (several hundred MB)."""
    config = context_config(ctx)
    with client_session(config) as client:
        path = client.download_database(destination)
    success(f"Database written to {path}")
