"""Input coercion shared by the services."""

import json
from typing import Any

from ..errors import InvalidArgument


def parse_id(value: Any, field: str) -> int:
    """Coerce a record id from a JSON body or form field.

    Accepts ints and digit strings; anything else raises InvalidArgument.
    """
    if value is None or value == "":
        raise InvalidArgument(f"{field} is required")
    if isinstance(value, bool):
        raise InvalidArgument(f"{field} must be an integer id")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise InvalidArgument(f"{field} must be an integer id")


def require_text(value: Any, field: str) -> str:
    """Return the stripped string, raising InvalidArgument when blank."""
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgument(f"{field} is required")
    return value.strip()


def optional_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def parse_json_object(body: bytes) -> dict:
    """Decode a request body that must hold a single JSON object."""
    try:
        data = json.loads(body)
    except (ValueError, UnicodeDecodeError):
        raise InvalidArgument("Request body must be valid JSON")
    if not isinstance(data, dict):
        raise InvalidArgument("Request body must be a JSON object")
    return data
