"""Common utility functions."""

from typing import Any


def get_value(obj: Any, key: str, default: Any = None) -> Any:
    """Get value from dict or object attribute, falling back to default."""
    if isinstance(obj, dict):
        value = obj.get(key)
    else:
        value = getattr(obj, key, None)
    return default if value is None else value


def first_present(obj: Any, *keys: str) -> Any:
    """Return the first non-empty value among keys, or None."""
    for key in keys:
        value = get_value(obj, key)
        if value not in (None, "", [], {}):
            return value
    return None
