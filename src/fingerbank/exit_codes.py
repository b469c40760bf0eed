"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~fingerbank.exceptions.FingerbankError` subclass.
Shell wrappers can inspect the exit code to tell an unknown device (404)
apart from a rejected API key without parsing stderr.

Example::

    $ fingerbank interrogate --dhcp "1,15,3,6"
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- the API key was rejected
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_AUTH_FAILURE = 3
"""The API key is missing, invalid or not allowed to use the endpoint."""

EXIT_NOT_FOUND = 4
"""The API returned HTTP 404 (for interrogation: the device is unknown)."""

EXIT_SERVER_ERROR = 5
"""The remote API returned an HTTP 5xx server error."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_CACHE_ERROR = 7
"""The local response cache could not be read or written."""
