"""HTTP clients for the Fingerbank API.

Classes:
    :class:`FingerbankClient` -- blocking client backed by :class:`httpx.Client`.
    :class:`AsyncFingerbankClient` -- non-blocking client backed by
    :class:`httpx.AsyncClient`.
    :class:`Endpoints` -- request builders shared by both clients.

Both clients accept the same arguments: an API key, the base URL, an
optional :class:`~fingerbank.models.RequestConfig`, and optional
:class:`~fingerbank.cache.CacheSettings`.

Example::

    from fingerbank.client import FingerbankClient

    with FingerbankClient(api_key) as client:
        resp = client.device(42)
"""

from fingerbank.client.async_client import AsyncFingerbankClient
from fingerbank.client.endpoints import Endpoints
from fingerbank.client.sync_client import FingerbankClient

__all__ = ["AsyncFingerbankClient", "Endpoints", "FingerbankClient"]
