"""Canonical Pydantic models shared across all fingerbank modules.

This is the single source of truth for data shapes in the project. Every other
module imports from here rather than defining its own models. The models fall
into two groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`RequestConfig`, :class:`CacheConfig`, :class:`OutputConfig`, and
    :class:`GlobalConfig`.

**Wire models** -- built by the endpoint layer, consumed by the transport and
the response cache:
    :class:`HTTPMethod`, :class:`ApiRequest`, :class:`ApiResponse`, and
    :class:`InterrogateParameters`.

All models use Pydantic v2 with ``model_config`` where needed.
"""

from __future__ import annotations

import enum
import json
import re
from typing import Any, Literal, Optional

import httpx
from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_BASE_URL = "https://api.fingerbank.org/api/v2"
"""Root of the Fingerbank v2 REST API."""

AUTH_PARAM = "key"
"""Query parameter carrying the API key on every request."""

DEFAULT_MARKER_HEADER = "X-From-Cache"
"""Header stamped on responses served from the local cache."""

DEFAULT_TTL_SECONDS = 86400
"""Default freshness window for cached responses (one day)."""


# --- Configuration models ---


class RequestConfig(BaseModel):
    """Default HTTP request settings applied to every API call."""

    timeout: int = Field(default=30, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    max_retries: int = Field(default=3, ge=0, description="Max retry attempts")


class CacheConfig(BaseModel):
    """HTTP response cache settings stored in :class:`GlobalConfig`."""

    enabled: bool = Field(default=True, description="Enable response caching")
    backend: Literal["disk", "memory"] = Field(
        default="disk", description="Cache store: disk (persistent) or memory"
    )
    ttl_seconds: int = Field(
        default=DEFAULT_TTL_SECONDS, ge=0, description="Freshness window in seconds"
    )
    marker_header: str = Field(
        default=DEFAULT_MARKER_HEADER,
        description="Header added to cache hits; empty string disables it",
    )


class OutputConfig(BaseModel):
    """Default output format preference stored in :class:`GlobalConfig`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/fingerbank/config.json``.

    Loaded and saved by :func:`~fingerbank.config.load_global_config` and
    :func:`~fingerbank.config.save_global_config`. Fields here have the
    lowest precedence and can be overridden by project config, environment
    variables, or CLI flags. See :func:`~fingerbank.config.resolve_config`
    for the full precedence chain.
    """

    api_key_source: str = Field(
        default="env:FINGERBANK_API_KEY",
        description="Credential source: env:VAR, file:/path, prompt",
    )
    base_url: str = Field(default=DEFAULT_BASE_URL, description="API root URL")
    user_agent: Optional[str] = Field(
        default=None, description="Override the User-Agent header"
    )
    request: RequestConfig = Field(default_factory=RequestConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)


# --- Wire models ---


class HTTPMethod(str, enum.Enum):
    """HTTP methods an :class:`ApiRequest` may carry. Only ``GET`` is cacheable."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"


class ApiRequest(BaseModel):
    """A fully constructed API call, before it reaches the transport.

    ``base_url`` is the complete endpoint URL without a query string; the
    query lives in ``query_params`` so that the cache layer can drop the
    API key when deriving a key.

    Example::

        ApiRequest(
            method="GET",
            base_url="https://api.fingerbank.org/api/v2/combinations/interrogate",
            headers={"User-Agent": "fingerbank-python/0.1.0"},
            query_params={"key": "secret", "dhcp_fingerprint": "1,15,3,6"},
        )
    """

    method: HTTPMethod = HTTPMethod.GET
    base_url: str
    headers: dict[str, str] = Field(default_factory=dict)
    query_params: dict[str, str] = Field(default_factory=dict)

    @field_validator("method", mode="before")
    @classmethod
    def _upper_method(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.upper()
        return value


class ApiResponse(BaseModel):
    """A transport-independent HTTP response.

    Headers keep every value the server sent, in order, under the name it
    was sent with. Lookups through :meth:`header_values` ignore case.
    """

    status_code: int
    headers: dict[str, list[str]] = Field(default_factory=dict)
    body: str = ""

    @classmethod
    def from_httpx(cls, response: httpx.Response) -> ApiResponse:
        """Convert an :class:`httpx.Response`, keeping header casing and order."""
        headers: dict[str, list[str]] = {}
        for raw_name, raw_value in response.headers.raw:
            name = raw_name.decode("latin-1")
            headers.setdefault(name, []).append(raw_value.decode("latin-1"))
        return cls(status_code=response.status_code, headers=headers, body=response.text)

    def header_values(self, name: str) -> Optional[list[str]]:
        """Return all values of header *name* (case-insensitive), or ``None``."""
        wanted = name.lower()
        for key, values in self.headers.items():
            if key.lower() == wanted:
                return values
        return None

    def get_header(self, name: str) -> Optional[str]:
        """Return the first value of header *name*, or ``None``."""
        values = self.header_values(name)
        if not values:
            return None
        return values[0]

    def set_header(self, name: str, value: str) -> None:
        """Replace every casing of header *name* with a single value."""
        wanted = name.lower()
        for key in [k for k in self.headers if k.lower() == wanted]:
            del self.headers[key]
        self.headers[name] = [value]

    def parse_json(self) -> Any:
        """Decode the body as JSON."""
        return json.loads(self.body)


_MAC_SEPARATORS = re.compile(r"[\s:.\-]")
_MAC_HEX = re.compile(r"^[0-9a-f]{12}$")


class InterrogateParameters(BaseModel):
    """Query for ``/combinations/interrogate``.

    At least one attribute must be given. The DHCP fingerprint is sent
    without whitespace and the MAC address as twelve lowercase hex digits,
    so equivalent inputs map to the same cache entry.
    """

    dhcp_fingerprint: Optional[str] = None
    dhcp6_fingerprint: Optional[str] = None
    dhcp6_enterprise: Optional[str] = None
    dhcp_vendor: Optional[str] = None
    user_agents: list[str] = Field(default_factory=list)
    mac: Optional[str] = None

    @field_validator("dhcp_fingerprint", "dhcp6_fingerprint", mode="after")
    @classmethod
    def _strip_whitespace(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return "".join(value.split()) or None

    @field_validator("mac", mode="after")
    @classmethod
    def _normalise_mac(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        mac = _MAC_SEPARATORS.sub("", value).lower()
        if not _MAC_HEX.match(mac):
            raise ValueError(f"invalid MAC address: {value!r}")
        return mac

    @model_validator(mode="after")
    def _require_one(self) -> InterrogateParameters:
        if not any(
            (
                self.dhcp_fingerprint,
                self.dhcp6_fingerprint,
                self.dhcp6_enterprise,
                self.dhcp_vendor,
                self.user_agents,
                self.mac,
            )
        ):
            raise ValueError("at least one interrogation attribute is required")
        return self

    def to_query_params(self) -> dict[str, str]:
        """Return the non-empty attributes as query parameters."""
        params: dict[str, str] = {}
        if self.dhcp_fingerprint:
            params["dhcp_fingerprint"] = self.dhcp_fingerprint
        if self.dhcp6_fingerprint:
            params["dhcp6_fingerprint"] = self.dhcp6_fingerprint
        if self.dhcp6_enterprise:
            params["dhcp6_enterprise"] = self.dhcp6_enterprise
        if self.dhcp_vendor:
            params["dhcp_vendor"] = self.dhcp_vendor
        if self.user_agents:
            params["user_agents"] = ",".join(self.user_agents)
        if self.mac:
            params["mac"] = self.mac
        return params
