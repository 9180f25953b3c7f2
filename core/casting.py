from __future__ import annotations

from typing import Any


def safe_int(value: Any, default: int = 0) -> int:
    """Coerce value to int with a default."""
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def coerce_scalar(value: Any) -> Any:
    """Turn numeric strings into ints, leave everything else untouched."""
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.lstrip("-").isdigit():
            return int(stripped)
    return value
