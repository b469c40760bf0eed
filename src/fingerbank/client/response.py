"""Response helpers shared by the clients and the CLI.

* :func:`raise_for_status` maps error status codes to the typed exceptions
  of :mod:`fingerbank.exceptions`.
* :func:`format_api_response` renders a response through the output system:
  status line (and cache provenance) to stderr, body to stdout.
"""

from __future__ import annotations

from typing import Any, Optional

from fingerbank.exceptions import AuthError, FingerbankError, NotFoundError, ServerError
from fingerbank.models import ApiResponse
from fingerbank.output import get_output


def error_for_status(response: ApiResponse) -> Optional[FingerbankError]:
    """Return the exception matching an error *response*, or ``None`` below 400."""
    status = response.status_code
    if status < 400:
        return None

    # Fingerbank reports errors as {"errors": "..."}; accept the usual variants too.
    try:
        detail = response.parse_json()
        if isinstance(detail, dict):
            msg = (
                detail.get("errors")
                or detail.get("message")
                or detail.get("error")
                or detail.get("detail")
                or ""
            )
        else:
            msg = str(detail)
    except ValueError:
        msg = response.body[:200]

    prefix = f"HTTP {status}"
    full_msg = f"{prefix}: {msg}" if msg else prefix

    if status in (401, 403):
        return AuthError(full_msg)
    if status == 404:
        return NotFoundError(full_msg)
    # Other 4xx are reported as server errors with the status attached.
    return ServerError(full_msg)


def raise_for_status(response: ApiResponse) -> None:
    """Raise a typed exception for error HTTP status codes.

    Raises:
        AuthError: On 401 / 403.
        NotFoundError: On 404 (for interrogation: unknown device).
        ServerError: On 5xx and any other 4xx.
    """
    exc = error_for_status(response)
    if exc is not None:
        raise exc


def extract_response_data(response: ApiResponse) -> Any:
    """Return the body decoded as JSON, the raw text, or ``None`` when empty."""
    if not response.body:
        return None
    try:
        return response.parse_json()
    except ValueError:
        return response.body


def format_api_response(response: ApiResponse, marker_header: str = "") -> None:
    """Print *response* using the global output system.

    Args:
        response: The response to render.
        marker_header: Cache marker header name; when present on the
            response the status line notes that it came from the cache.
    """
    output = get_output()

    status_line = f"HTTP {response.status_code}"
    if marker_header and response.get_header(marker_header) == "1":
        status_line += " (cached)"
    output.info(status_line)

    data = extract_response_data(response)
    if data is not None:
        output.format_response(data)
