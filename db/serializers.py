"""Serialization utilities for MongoDB documents.

Provides functions for converting MongoDB documents and types to
JSON-serializable formats, and for turning loosely-typed identifiers into
ObjectIds.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from bson import ObjectId
from bson.errors import InvalidId

from date_utils import parse_timestamp


def parse_object_id(value: Any) -> ObjectId | None:
    """Return ``value`` as an ObjectId, or None when it is not one.

    Accepts ObjectId instances and 24-character hex strings. Anything else
    (12-byte strings, numbers, blanks) is rejected.
    """
    if isinstance(value, ObjectId):
        return value
    if not isinstance(value, str):
        return None
    candidate = value.strip()
    if len(candidate) != 24:
        return None
    try:
        return ObjectId(candidate)
    except (InvalidId, TypeError):
        return None


def serialize_datetime(dt: datetime | str | None) -> str | None:
    """Serialize a datetime to ISO format string.

    Handles datetime objects, ISO format strings, and None values.
    Converts +00:00 timezone suffix to Z for consistency.

    Args:
        dt: datetime object, ISO string, or None.

    Returns:
        ISO format string with Z suffix, or None.
    """
    if dt is None:
        return None
    if isinstance(dt, (str, datetime)):
        dt = parse_timestamp(dt)
    if dt is None:
        return None
    return dt.isoformat().replace("+00:00", "Z")


def serialize_for_json(data: Any) -> Any:
    """Recursively serialize MongoDB types for JSON compatibility.

    Converts ObjectId to string and datetime to ISO format.
    Handles nested dicts and lists.
    """
    if isinstance(data, dict):
        return {k: serialize_for_json(v) for k, v in data.items()}
    if isinstance(data, list):
        return [serialize_for_json(item) for item in data]
    if isinstance(data, ObjectId):
        return str(data)
    if isinstance(data, datetime):
        return serialize_datetime(data)
    return data
