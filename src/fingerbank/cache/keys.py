"""Cache key derivation for API requests.

A cache key is the canonical URL of a GET request: the endpoint URL followed
by its query string, with parameters in lexicographic order and the API key
parameter left out. Two requests that differ only in the key used to
authenticate them therefore share one cache slot.
"""

from __future__ import annotations

import httpx

from fingerbank.exceptions import KeyDerivationError, UnsupportedMethodError
from fingerbank.models import AUTH_PARAM, ApiRequest, HTTPMethod


def derive_key(request: ApiRequest, auth_param: str = AUTH_PARAM) -> str:
    """Return the cache key for *request*.

    The request itself is not modified.

    Args:
        request: The request about to be sent.
        auth_param: Name of the query parameter holding the credential.

    Returns:
        The canonical request URL without the credential.

    Raises:
        UnsupportedMethodError: If the request is not a GET.
        KeyDerivationError: If the URL cannot be built.
    """
    if request.method != HTTPMethod.GET:
        raise UnsupportedMethodError(
            f"Cannot cache {request.method.value} requests; only GET is supported"
        )
    if not request.base_url:
        raise KeyDerivationError("Cannot derive a cache key without a base URL")

    params = sorted(
        (name, value)
        for name, value in request.query_params.items()
        if name != auth_param
    )
    try:
        url = httpx.URL(request.base_url, params=params)
    except (httpx.InvalidURL, TypeError, ValueError) as exc:
        raise KeyDerivationError(
            f"Cannot derive a cache key for {request.base_url!r}: {exc}"
        ) from exc
    return str(url)
