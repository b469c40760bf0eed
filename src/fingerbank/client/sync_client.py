"""Synchronous Fingerbank client with response caching and retry.

This module provides :class:`FingerbankClient`, the blocking client used by
the CLI. It wraps :class:`httpx.Client` and layers on:

- **Endpoint methods** -- :meth:`~FingerbankClient.interrogate`,
  :meth:`~FingerbankClient.device`, :meth:`~FingerbankClient.devices_base_info`,
  :meth:`~FingerbankClient.account_info` and
  :meth:`~FingerbankClient.download_database`.
- **Response caching** -- cacheable GET requests go through a
  :class:`~fingerbank.cache.CacheController`: a fresh stored response is
  returned without network I/O, and successful live responses are stored.
- **Retry with backoff** -- retries on 5xx and network errors with
  exponential delay (1 s, 2 s, 4 s, ...).
- **Error mapping** -- error statuses raise typed exceptions.

See Also:
    :class:`~fingerbank.client.async_client.AsyncFingerbankClient` for the
    equivalent non-blocking implementation.
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Any, Iterable, Optional

import httpx

from fingerbank.cache import CacheController, CacheSettings
from fingerbank.client.endpoints import Endpoints, build_interrogate_parameters
from fingerbank.client.response import raise_for_status
from fingerbank.exceptions import CacheError, ConnectionError_, ServerError
from fingerbank.models import (
    DEFAULT_BASE_URL,
    ApiRequest,
    ApiResponse,
    HTTPMethod,
    InterrogateParameters,
    RequestConfig,
)
from fingerbank.output import get_output


class FingerbankClient:
    """Synchronous client for the Fingerbank API.

    Must be used as a context manager so that the underlying transport is
    properly opened and closed.

    Args:
        api_key: Fingerbank API key.
        base_url: API root URL.
        user_agent: ``User-Agent`` header override.
        request_config: Timeout, SSL verification and retry settings.
        cache: Cache wiring. ``None`` (or a settings object without a store)
            disables caching.

    Example::

        settings = CacheSettings(store=MemoryStore(), ttl_seconds=3600)
        with FingerbankClient("secret", cache=settings) as client:
            response = client.interrogate(dhcp_fingerprint="1,15,3,6")
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        user_agent: Optional[str] = None,
        request_config: Optional[RequestConfig] = None,
        cache: Optional[CacheSettings] = None,
    ) -> None:
        self._endpoints = Endpoints(api_key, base_url=base_url, user_agent=user_agent)
        self._request_config = request_config or RequestConfig()
        self._cache = CacheController(cache)
        self._client: Optional[httpx.Client] = None

    @property
    def cache(self) -> CacheController:
        return self._cache

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> FingerbankClient:
        config = self._request_config
        self._client = httpx.Client(
            timeout=config.timeout,
            verify=config.verify_ssl,
            follow_redirects=True,
        )
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # Endpoints
    # ------------------------------------------------------------------ #

    def interrogate(
        self, params: Optional[InterrogateParameters] = None, **attributes: Any
    ) -> ApiResponse:
        """Identify a device from its DHCP fingerprint, MAC, user agents, ...

        Accepts either an :class:`InterrogateParameters` object or its
        fields as keyword arguments.

        Raises:
            InvalidUsageError: If no attribute is given or one is malformed.
            NotFoundError: If Fingerbank does not know the device.
        """
        query = build_interrogate_parameters(params, attributes)
        return self.send(self._endpoints.interrogate(query))

    def device(self, device_id: int) -> ApiResponse:
        """Fetch one device by its Fingerbank id."""
        return self.send(self._endpoints.device(device_id))

    def devices_base_info(self, fields: Optional[Iterable[str]] = None) -> ApiResponse:
        """Fetch the whole device catalogue (a multi-megabyte JSON document)."""
        return self.send(self._endpoints.devices_base_info(fields))

    def account_info(self) -> ApiResponse:
        """Fetch usage information for the API key. Never cached."""
        return self.send(self._endpoints.account_info(), use_cache=False)

    def download_database(self, destination: str | Path, chunk_size: int = 1 << 20) -> Path:
        """Stream the Fingerbank SQLite database to *destination*.

        The file is written next to *destination* and renamed into place
        once complete. Never cached.

        Returns:
            The path of the downloaded file.
        """
        assert self._client is not None, "Client not initialised -- use as context manager"
        request = self._endpoints.download_database()
        dest = Path(destination)
        partial = dest.with_name(dest.name + ".part")
        output = get_output()
        output.debug(f"Downloading database to {dest}")

        try:
            with self._client.stream(
                request.method.value,
                request.base_url,
                headers=request.headers,
                params=request.query_params,
            ) as response:
                if response.status_code != 200:
                    response.read()
                    raise_for_status(ApiResponse.from_httpx(response))
                with open(partial, "wb") as f:
                    for chunk in response.iter_bytes(chunk_size):
                        f.write(chunk)
        except (httpx.ConnectError, httpx.TimeoutException, httpx.NetworkError) as exc:
            partial.unlink(missing_ok=True)
            raise ConnectionError_(f"Database download failed: {exc}") from exc

        partial.replace(dest)
        return dest

    # ------------------------------------------------------------------ #
    # Request pipeline
    # ------------------------------------------------------------------ #

    def send(self, request: ApiRequest, use_cache: bool = True) -> ApiResponse:
        """Send *request*, serving it from the cache when possible.

        Cache lookup failures abort the call. Failures while storing the
        live response are reported as warnings and the live response is
        returned regardless.

        Raises:
            CacheError: If the cache lookup fails.
            AuthError: On 401 / 403.
            NotFoundError: On 404.
            ServerError: On 5xx after all retries are exhausted.
            ConnectionError_: On network / timeout errors after all retries.
        """
        cacheable = use_cache and request.method == HTTPMethod.GET

        if cacheable:
            cached = self._cache.check_cache(request)
            if cached is not None:
                get_output().debug(f"Cache hit: {self._endpoints.describe(request)}")
                return cached

        response = self._execute_with_retry(request)

        if cacheable:
            self._cache_update(request, response)

        raise_for_status(response)
        return response

    def _cache_update(self, request: ApiRequest, response: ApiResponse) -> None:
        """Store *response*; a failure never fails the request."""
        try:
            self._cache.update_cache(request, response)
        except CacheError as exc:
            get_output().warning(f"Could not cache response: {exc}")

    def _execute_with_retry(self, request: ApiRequest) -> ApiResponse:
        """Execute the HTTP request with exponential-backoff retry.

        Retries on 5xx status codes and connection / timeout errors up to
        ``max_retries`` times. The delay doubles each attempt: 1 s, 2 s, 4 s, ...
        """
        assert self._client is not None, "Client not initialised -- use as context manager"

        max_retries = self._request_config.max_retries
        output = get_output()

        for attempt in range(max_retries + 1):
            try:
                output.debug(f"Executing request: {self._endpoints.describe(request)}")
                response = self._client.request(
                    request.method.value,
                    request.base_url,
                    headers=request.headers,
                    params=request.query_params,
                )

                # Only retry on 5xx (server errors)
                if response.status_code >= 500 and attempt < max_retries:
                    delay = 2 ** attempt
                    output.debug(
                        f"Server error {response.status_code}, retrying in {delay}s "
                        f"(attempt {attempt + 1}/{max_retries})"
                    )
                    time.sleep(delay)
                    continue

                return ApiResponse.from_httpx(response)

            except (httpx.ConnectError, httpx.TimeoutException, httpx.NetworkError) as exc:
                if attempt < max_retries:
                    delay = 2 ** attempt
                    output.debug(
                        f"Connection error: {exc}, retrying in {delay}s "
                        f"(attempt {attempt + 1}/{max_retries})"
                    )
                    time.sleep(delay)
                    continue

                raise ConnectionError_(
                    f"Connection failed after {max_retries + 1} attempts: {exc}"
                ) from exc

        raise ServerError("Request failed after all retries")  # pragma: no cover
