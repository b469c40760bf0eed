"""Exception hierarchy for fingerbank.

All exceptions inherit from :class:`FingerbankError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`fingerbank.exit_codes`.
The top-level error handler in :func:`fingerbank.app.main` catches
``FingerbankError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    FingerbankError (exit 1)
    +-- InvalidUsageError        (exit 2)
    +-- AuthError                (exit 3)
    +-- NotFoundError            (exit 4)
    +-- ServerError              (exit 5)
    +-- ConnectionError_         (exit 6)
    +-- ConfigError              (exit 1)
    +-- CacheError               (exit 7)
        +-- UnsupportedMethodError
        +-- KeyDerivationError
        +-- SerializationError
        +-- DeserializationError
"""

from fingerbank.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CACHE_ERROR,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
)


class FingerbankError(Exception):
    """Base exception for all fingerbank errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`fingerbank.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(FingerbankError):
    """Raised for invalid CLI arguments or missing required parameters."""

    exit_code = EXIT_INVALID_USAGE


class AuthError(FingerbankError):
    """Raised when the API rejects the key (HTTP 401 / 403)."""

    exit_code = EXIT_AUTH_FAILURE


class NotFoundError(FingerbankError):
    """Raised when the API returns HTTP 404 (unknown device or resource)."""

    exit_code = EXIT_NOT_FOUND


class ServerError(FingerbankError):
    """Raised when the API returns an HTTP 5xx server error."""

    exit_code = EXIT_SERVER_ERROR


class ConnectionError_(FingerbankError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR


class ConfigError(FingerbankError):
    """Raised for configuration problems (invalid JSON, bad credential sources)."""

    exit_code = EXIT_GENERIC_FAILURE


class CacheError(FingerbankError):
    """Base class for failures inside the response cache layer."""

    exit_code = EXIT_CACHE_ERROR


class UnsupportedMethodError(CacheError):
    """Raised when a request other than GET is used to derive a cache key."""


class KeyDerivationError(CacheError):
    """Raised when the canonical request URL cannot be built."""


class SerializationError(CacheError):
    """Raised when a response cannot be encoded for storage."""


class DeserializationError(CacheError):
    """Raised when a stored cache entry cannot be decoded into a response."""
