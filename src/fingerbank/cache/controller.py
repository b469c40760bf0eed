"""Lookup-before-call and store-after-call around API requests.

:class:`CacheController` is driven by the clients: :meth:`~CacheController.check_cache`
runs before a request goes out and may short-circuit it with a stored
response; :meth:`~CacheController.update_cache` runs after a live call and
stores the response when it is cacheable.

Freshness is based on the ``Date`` header of the stored response. An entry
whose age exceeds ``ttl_seconds`` is deleted on lookup (lazy expiry, no
background sweep). Responses without a ``Date`` header get one stamped at
store time.

The controller holds no per-request state and takes no locks; concurrent
callers rely on the store for consistency.

See Also:
    :class:`CacheSettings` -- the immutable configuration.
    :func:`~fingerbank.cache.keys.derive_key` -- how requests map to keys.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from email.utils import format_datetime, parsedate_to_datetime
from typing import Callable, Optional

from pydantic import BaseModel, ConfigDict, Field

from fingerbank.cache.codec import decode_response, encode_response
from fingerbank.cache.keys import derive_key
from fingerbank.cache.store import CacheStore
from fingerbank.exceptions import DeserializationError
from fingerbank.models import (
    AUTH_PARAM,
    DEFAULT_MARKER_HEADER,
    DEFAULT_TTL_SECONDS,
    ApiRequest,
    ApiResponse,
    CacheConfig,
)
from fingerbank.output import debug

DATE_HEADER = "Date"


def format_http_date(moment: datetime) -> str:
    """Format *moment* as an RFC 1123 HTTP date (``Sun, 06 Nov 1994 08:49:37 GMT``)."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return format_datetime(moment.astimezone(timezone.utc), usegmt=True)


def parse_http_date(value: str) -> Optional[datetime]:
    """Parse an HTTP date header into an aware datetime, or ``None`` if malformed."""
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CacheSettings(BaseModel):
    """Immutable cache wiring handed to a client once, at construction.

    Attributes:
        store: Backend holding the entries. ``None`` disables caching.
        ttl_seconds: Freshness window. An entry is fresh while
            ``now - Date <= ttl_seconds``.
        marker_header: Header set to ``"1"`` on cache hits. An empty string
            disables stamping.
        auth_param: Query parameter excluded from cache keys.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    store: Optional[CacheStore] = None
    ttl_seconds: int = Field(default=DEFAULT_TTL_SECONDS, ge=0)
    marker_header: str = DEFAULT_MARKER_HEADER
    auth_param: str = AUTH_PARAM

    @classmethod
    def from_config(cls, config: CacheConfig, store: Optional[CacheStore]) -> CacheSettings:
        """Combine the ``cache`` config section with an opened store."""
        return cls(
            store=store if config.enabled else None,
            ttl_seconds=config.ttl_seconds,
            marker_header=config.marker_header,
        )


class CacheController:
    """Consults and fills the response cache around live API calls.

    Args:
        settings: Cache wiring. Defaults to a disabled cache.
        clock: Returns the current time as an aware datetime. Tests inject
            a fixed clock to exercise expiry.

    Example::

        controller = CacheController(CacheSettings(store=MemoryStore(), ttl_seconds=3600))
        cached = controller.check_cache(request)
        if cached is None:
            live = send(request)
            controller.update_cache(request, live)
    """

    def __init__(
        self,
        settings: Optional[CacheSettings] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._settings = settings or CacheSettings()
        self._clock = clock

    @property
    def settings(self) -> CacheSettings:
        return self._settings

    @property
    def enabled(self) -> bool:
        return self._settings.store is not None

    def check_cache(self, request: ApiRequest) -> Optional[ApiResponse]:
        """Return a fresh cached response for *request*, or ``None`` on a miss.

        Raises:
            UnsupportedMethodError: If *request* is not a GET.
            KeyDerivationError: If no key can be built for *request*.
            DeserializationError: If the stored entry is corrupt. The entry is
                deleted, so the next lookup is a miss.
        """
        debug("Checking cache")
        store = self._settings.store
        if store is None:
            debug("No cache configured")
            return None

        key = derive_key(request, self._settings.auth_param)
        debug(f"Looking up key: {key}")

        data = store.get(key)
        if data is None:
            debug("No cached response found")
            return None

        try:
            response = decode_response(data)
        except DeserializationError:
            debug("Cached response is corrupt, deleting")
            store.delete(key)
            raise

        date = response.get_header(DATE_HEADER)
        if date is None:
            # Age unknown; let the live call refresh the entry.
            debug("Cached response has no Date header")
            return None

        stored_at = parse_http_date(date)
        age = None if stored_at is None else self._clock() - stored_at
        if age is None or age > timedelta(seconds=self._settings.ttl_seconds):
            debug(f"Cached response is stale (Date: {date}), deleting")
            store.delete(key)
            return None

        if self._settings.marker_header:
            response.set_header(self._settings.marker_header, "1")

        debug("Returning cached response")
        return response

    def update_cache(self, request: ApiRequest, response: Optional[ApiResponse]) -> None:
        """Store *response* for *request* when it is a cacheable 200 response.

        The caller's response object is not modified; a missing ``Date``
        header is added to the stored copy only.

        Raises:
            UnsupportedMethodError: If *request* is not a GET.
            KeyDerivationError: If no key can be built for *request*.
            SerializationError: If the response cannot be encoded.
        """
        debug("Updating cache")
        store = self._settings.store
        if store is None:
            debug("No cache configured")
            return
        if response is None:
            return
        if response.status_code != 200:
            debug(f"Not storing response with status code {response.status_code}")
            return

        key = derive_key(request, self._settings.auth_param)

        if response.get_header(DATE_HEADER) is None:
            date = format_http_date(self._clock())
            debug(f"Adding Date header to stored response: {date}")
            response = response.model_copy(deep=True)
            response.set_header(DATE_HEADER, date)

        data = encode_response(response)
        debug(f"Storing response for key: {key}")
        store.set(key, data)

    def invalidate(self, request: ApiRequest) -> None:
        """Drop the entry for *request*, if any."""
        store = self._settings.store
        if store is None:
            return
        store.delete(derive_key(request, self._settings.auth_param))
