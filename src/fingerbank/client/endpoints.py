"""Request builders for the Fingerbank v2 endpoints.

Each method of :class:`Endpoints` returns a ready-to-send
:class:`~fingerbank.models.ApiRequest`: full endpoint URL, default headers,
and query parameters including the API key. The builders perform no I/O;
the clients send the requests and consult the cache around them.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional

from pydantic import ValidationError

from fingerbank import __version__
from fingerbank.exceptions import InvalidUsageError
from fingerbank.models import (
    AUTH_PARAM,
    DEFAULT_BASE_URL,
    ApiRequest,
    HTTPMethod,
    InterrogateParameters,
)

DEFAULT_USER_AGENT = f"fingerbank-python/{__version__}"

ENDPOINT_INTERROGATE = "/combinations/interrogate"
ENDPOINT_DEVICES = "/devices"
ENDPOINT_DEVICES_BASE_INFO = "/devices/base_info"
ENDPOINT_USERS = "/users"
ENDPOINT_DOWNLOAD_DB = "/download/db"

REDACTED = "***"

BASE_INFO_FIELDS = frozenset({"id", "name", "parent_id", "virtual_parent_id", "details"})
"""Fields accepted by ``/devices/base_info``. The API defaults to ``id,name``."""


class Endpoints:
    """Builds :class:`ApiRequest` objects for one API key and base URL.

    Args:
        api_key: Fingerbank API key, sent as the ``key`` query parameter.
        base_url: API root, without a trailing slash.
        user_agent: ``User-Agent`` header value.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        user_agent: Optional[str] = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._user_agent = user_agent or DEFAULT_USER_AGENT

    @property
    def base_url(self) -> str:
        return self._base_url

    def interrogate(self, params: InterrogateParameters) -> ApiRequest:
        """``GET /combinations/interrogate`` with the attributes as query parameters."""
        return self._get(ENDPOINT_INTERROGATE, params.to_query_params())

    def device(self, device_id: int) -> ApiRequest:
        """``GET /devices/{id}``."""
        if device_id <= 0:
            raise InvalidUsageError(f"Device id must be positive, got {device_id}")
        return self._get(f"{ENDPOINT_DEVICES}/{device_id}")

    def devices_base_info(self, fields: Optional[Iterable[str]] = None) -> ApiRequest:
        """``GET /devices/base_info``, optionally restricted to *fields*.

        Fields are de-duplicated and sorted so that equivalent selections
        share a cache entry.
        """
        params: dict[str, str] = {}
        if fields:
            selected = sorted(set(fields))
            unknown = [f for f in selected if f not in BASE_INFO_FIELDS]
            if unknown:
                raise InvalidUsageError(
                    f"Unknown base_info field(s): {', '.join(unknown)}. "
                    f"Allowed: {', '.join(sorted(BASE_INFO_FIELDS))}"
                )
            params["fields"] = ",".join(selected)
        return self._get(ENDPOINT_DEVICES_BASE_INFO, params)

    def account_info(self) -> ApiRequest:
        """``GET /users/{api_key}`` -- usage and quota of the key itself."""
        return self._get(f"{ENDPOINT_USERS}/{self._api_key}")

    def download_database(self) -> ApiRequest:
        """``GET /download/db`` -- the full SQLite database."""
        return self._get(ENDPOINT_DOWNLOAD_DB)

    def describe(self, request: ApiRequest) -> str:
        """``METHOD url`` for log lines, with the API key masked."""
        url = request.base_url
        if self._api_key:
            url = url.replace(self._api_key, REDACTED)
        return f"{request.method.value} {url}"

    def _get(self, path: str, params: Optional[dict[str, str]] = None) -> ApiRequest:
        query = {AUTH_PARAM: self._api_key}
        query.update(params or {})
        return ApiRequest(
            method=HTTPMethod.GET,
            base_url=f"{self._base_url}{path}",
            headers={"Accept": "application/json", "User-Agent": self._user_agent},
            query_params=query,
        )


def build_interrogate_parameters(
    params: Optional[InterrogateParameters], attributes: dict[str, Any]
) -> InterrogateParameters:
    """Merge an explicit parameter object with keyword attributes.

    Raises:
        InvalidUsageError: If the merged attributes do not validate.
    """
    if params is not None and not attributes:
        return params
    merged = params.model_dump() if params is not None else {}
    merged.update(attributes)
    try:
        return InterrogateParameters.model_validate(merged)
    except ValidationError as exc:
        raise InvalidUsageError(f"Invalid interrogation parameters: {exc}") from exc
