"""Byte encoding of cached responses.

Entries are stored as a JSON object with exactly three fields::

    {"status_code": 200, "headers": {"Date": ["..."]}, "body": "..."}

Header values keep their order, so a decoded entry compares equal to the
response that was stored.
"""

from __future__ import annotations

from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from fingerbank.exceptions import DeserializationError, SerializationError
from fingerbank.models import ApiResponse


def encode_response(response: ApiResponse) -> bytes:
    """Serialize *response* for storage.

    Raises:
        SerializationError: If the response cannot be encoded.
    """
    try:
        return response.model_dump_json().encode("utf-8")
    except (PydanticSerializationError, UnicodeEncodeError, ValueError, TypeError) as exc:
        raise SerializationError(f"Cannot serialize response: {exc}") from exc


def decode_response(data: bytes) -> ApiResponse:
    """Rebuild a response from stored bytes.

    Raises:
        DeserializationError: If *data* is not a valid encoded response.
    """
    try:
        return ApiResponse.model_validate_json(data)
    except ValidationError as exc:
        raise DeserializationError(f"Cannot deserialize cached response: {exc}") from exc
