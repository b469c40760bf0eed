"""fingerbank -- Python client for the Fingerbank device-fingerprinting API.

Queries the Fingerbank v2 REST API (DHCP/MAC/user-agent interrogation,
device lookups, the device catalogue) and keeps successful GET responses in
an opt-in local cache so that repeated lookups do not hit the network.

Typical use::

    from fingerbank.cache import CacheSettings, DiskStore
    from fingerbank.client import FingerbankClient

    settings = CacheSettings(store=DiskStore("./cache"), ttl_seconds=3600)
    with FingerbankClient("<api key>", cache=settings) as client:
        response = client.interrogate(dhcp_fingerprint="1,15,3,6,44,46,47")
        print(response.parse_json()["device"]["name"])

Modules:
    app: Typer application and CLI entry point.
    cache: Cache key derivation, stores, and the cache controller.
    client: Endpoint builders and the sync/async HTTP clients.
    models: Pydantic models shared across the entire package.
    config: XDG-aware configuration and credential resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
