"""HTML escaping for user-supplied text stored and echoed back by the API"""

import html
import re
from typing import Any, Optional

CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")


def sanitize_string(value: Optional[str]) -> Optional[str]:
    """Escape HTML special characters; non-strings pass through untouched"""
    if not isinstance(value, str):
        return value
    return html.escape(value, quote=True)


def _escape_nested(value: Any, fields: Optional[list[str]]) -> Any:
    if isinstance(value, str):
        return sanitize_string(value)
    if isinstance(value, dict):
        return sanitize_dict(value, fields)
    if isinstance(value, list):
        return [_escape_nested(item, fields) for item in value]
    return value


def sanitize_dict(data: dict[str, Any], fields: Optional[list[str]] = None) -> dict[str, Any]:
    """
    Escape string values of ``data`` (recursing into dicts and lists).
    Only keys listed in ``fields`` are touched when it is given.
    """
    if not data:
        return data
    return {
        key: _escape_nested(value, fields) if fields is None or key in fields else value
        for key, value in data.items()
    }


def validate_and_sanitize_input(value: str, max_length: int = 500) -> str:
    """
    Trim, length-check, strip control characters and escape free text
    (review comments, cancellation reasons, instructions).

    Raises:
        ValueError: If the trimmed input is longer than ``max_length``
    """
    if not value:
        return ""

    value = str(value).strip()
    if len(value) > max_length:
        raise ValueError(f"Input exceeds maximum length of {max_length} characters")

    return html.escape(CONTROL_CHARS.sub("", value), quote=True)


def sanitize_filename_part(value: str) -> str:
    """Reduce a user-supplied label to characters safe inside an object key"""
    cleaned = re.sub(r"[^A-Za-z0-9_-]", "_", value or "").strip("_")
    return cleaned[:50] or "document"
