"""Asynchronous client -- mirrors :class:`~fingerbank.client.sync_client.FingerbankClient`.

:class:`AsyncFingerbankClient` wraps :class:`httpx.AsyncClient` and offers
the same endpoints, caching, retry and error mapping, but uses ``await`` and
:func:`asyncio.sleep` so it can be used inside an event loop.

The cache controller is synchronous. Its store operations run inline on
the event loop; use a local store (memory or disk) with this client.
"""

from __future__ import annotations

import asyncio
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


class AsyncFingerbankClient:
    """Asynchronous client for the Fingerbank API.

    Takes the same arguments as
    :class:`~fingerbank.client.sync_client.FingerbankClient` and must be
    used as an async context manager.

    Example::

        async with AsyncFingerbankClient("secret", cache=settings) as client:
            responses = await asyncio.gather(
                client.interrogate(mac="00:11:22:33:44:55"),
                client.device(1),
            )
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
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def cache(self) -> CacheController:
        return self._cache

    async def __aenter__(self) -> AsyncFingerbankClient:
        config = self._request_config
        self._client = httpx.AsyncClient(
            timeout=config.timeout,
            verify=config.verify_ssl,
            follow_redirects=True,
        )
        return self

    async def __aexit__(self, *args: object) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def interrogate(
        self, params: Optional[InterrogateParameters] = None, **attributes: Any
    ) -> ApiResponse:
        query = build_interrogate_parameters(params, attributes)
        return await self.send(self._endpoints.interrogate(query))

    async def device(self, device_id: int) -> ApiResponse:
        return await self.send(self._endpoints.device(device_id))

    async def devices_base_info(self, fields: Optional[Iterable[str]] = None) -> ApiResponse:
        return await self.send(self._endpoints.devices_base_info(fields))

    async def account_info(self) -> ApiResponse:
        return await self.send(self._endpoints.account_info(), use_cache=False)

    async def download_database(self, destination: str | Path, chunk_size: int = 1 << 20) -> Path:
        """Stream the SQLite database to *destination*; see the sync client."""
        assert self._client is not None, "Client not initialised -- use as async context manager"
        request = self._endpoints.download_database()
        dest = Path(destination)
        partial = dest.with_name(dest.name + ".part")
        get_output().debug(f"Downloading database to {dest}")

        try:
            async with self._client.stream(
                request.method.value,
                request.base_url,
                headers=request.headers,
                params=request.query_params,
            ) as response:
                if response.status_code != 200:
                    await response.aread()
                    raise_for_status(ApiResponse.from_httpx(response))
                with open(partial, "wb") as f:
                    async for chunk in response.aiter_bytes(chunk_size):
                        f.write(chunk)
        except (httpx.ConnectError, httpx.TimeoutException, httpx.NetworkError) as exc:
            partial.unlink(missing_ok=True)
            raise ConnectionError_(f"Database download failed: {exc}") from exc

        partial.replace(dest)
        return dest

    async def send(self, request: ApiRequest, use_cache: bool = True) -> ApiResponse:
        """Send *request*, serving it from the cache when possible.

        Behaves identically to
        :meth:`~fingerbank.client.sync_client.FingerbankClient.send`.
        """
        cacheable = use_cache and request.method == HTTPMethod.GET

        if cacheable:
            cached = self._cache.check_cache(request)
            if cached is not None:
                get_output().debug(f"Cache hit: {self._endpoints.describe(request)}")
                return cached

        response = await self._execute_with_retry(request)

        if cacheable:
            try:
                self._cache.update_cache(request, response)
            except CacheError as exc:
                get_output().warning(f"Could not cache response: {exc}")

        raise_for_status(response)
        return response

    async def _execute_with_retry(self, request: ApiRequest) -> ApiResponse:
        """Execute with exponential-backoff retry (1 s, 2 s, 4 s, ...)."""
        assert self._client is not None, "Client not initialised -- use as async context manager"

        max_retries = self._request_config.max_retries
        output = get_output()

        for attempt in range(max_retries + 1):
            try:
                output.debug(f"Executing request: {self._endpoints.describe(request)}")
                response = await self._client.request(
                    request.method.value,
                    request.base_url,
                    headers=request.headers,
                    params=request.query_params,
                )

                if response.status_code >= 500 and attempt < max_retries:
                    delay = 2 ** attempt
                    output.debug(
                        f"Server error {response.status_code}, retrying in {delay}s "
                        f"(attempt {attempt + 1}/{max_retries})"
                    )
                    await asyncio.sleep(delay)
                    continue

                return ApiResponse.from_httpx(response)

            except (httpx.ConnectError, httpx.TimeoutException, httpx.NetworkError) as exc:
                if attempt < max_retries:
                    delay = 2 ** attempt
                    output.debug(
                        f"Connection error: {exc}, retrying in {delay}s "
                        f"(attempt {attempt + 1}/{max_retries})"
                    )
                    await asyncio.sleep(delay)
                    continue

                raise ConnectionError_(
                    f"Connection failed after {max_retries + 1} attempts: {exc}"
                ) from exc

        raise ServerError("Request failed after all retries")  # pragma: no cover
