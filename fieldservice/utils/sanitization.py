import html
from typing import Any, Optional


def sanitize_string(value: Optional[str]) -> Optional[str]:
    """
    Sanitize a string by escaping HTML special characters to prevent XSS.
    Returns None if input is None.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        return value
    return html.escape(value.strip(), quote=True)


def sanitize_fields(data: dict[str, Any], fields: tuple[str, ...]) -> dict[str, Any]:
    """Return a copy of ``data`` with the listed free-text fields escaped"""
    return {
        key: sanitize_string(value) if key in fields and isinstance(value, str) else value
        for key, value in data.items()
    }
