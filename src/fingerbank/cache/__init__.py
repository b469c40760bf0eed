"""Response caching for fingerbank API calls.

The package is split along the three concerns of the cache:

* :func:`derive_key` -- maps a GET request to a key that ignores the API key.
* :class:`CacheStore` -- the byte store contract, with :class:`MemoryStore`
  and :class:`DiskStore` adapters.
* :class:`CacheController` -- checks the cache before a call and stores the
  response after it, enforcing the freshness window from the ``Date``
  header.

The controller is consumed by :class:`~fingerbank.client.FingerbankClient`
and :class:`~fingerbank.client.AsyncFingerbankClient`, and is configured by
the ``cache`` section of the global configuration
(:class:`~fingerbank.models.CacheConfig`).
"""

from fingerbank.cache.codec import decode_response, encode_response
from fingerbank.cache.controller import (
    DATE_HEADER,
    CacheController,
    CacheSettings,
    format_http_date,
    parse_http_date,
)
from fingerbank.cache.keys import derive_key
from fingerbank.cache.store import CacheStore, DiskStore, MemoryStore, create_store

__all__ = [
    "DATE_HEADER",
    "CacheController",
    "CacheSettings",
    "CacheStore",
    "DiskStore",
    "MemoryStore",
    "create_store",
    "decode_response",
    "derive_key",
    "encode_response",
    "format_http_date",
    "parse_http_date",
]
