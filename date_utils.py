"""
Centralized date and time utilities for trip records.

Trip timestamps (``startDate``, ``endDate``, ``createdAt``, ``updatedAt``)
arrive as ISO 8601 strings, date-only strings or datetime objects. This
module turns them into timezone-aware UTC datetimes for application code and
into naive UTC datetimes for storage and query bounds, which is how BSON
represents dates.
"""

import logging
import re
from datetime import UTC, date, datetime

from dateutil import parser

logger = logging.getLogger(__name__)

DATE_ONLY_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def get_current_utc_time() -> datetime:
    """Return the current time as a timezone-aware datetime object in UTC."""
    return datetime.now(UTC)


def parse_timestamp(ts: str | datetime) -> datetime | None:
    """
    Parse a timestamp string (or datetime object) and ensure it is
    timezone-aware, defaulting to UTC.

    Args:
        ts: The timestamp to parse, either as an ISO 8601 string or a
            datetime object.

    Returns:
        A timezone-aware datetime object, or None if parsing fails.
    """
    if not ts:
        logger.debug("Received empty timestamp; returning None.")
        return None

    if isinstance(ts, datetime):
        if ts.tzinfo is None:
            return ts.replace(tzinfo=UTC)
        return ts

    try:
        parsed_time = parser.isoparse(ts)
        if parsed_time.tzinfo is None:
            return parsed_time.replace(tzinfo=UTC)
        return parsed_time
    except (ValueError, TypeError) as e:
        logger.warning("Failed to parse timestamp '%s': %s", ts, e)
        return None


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Return the datetime as an explicit UTC-aware value."""

    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)

    return dt.astimezone(UTC)


def normalize_to_utc_datetime(value: str | datetime | date | None) -> datetime | None:
    """Normalize arbitrary date/datetime inputs to a UTC-aware datetime."""

    if value is None:
        return None

    if isinstance(value, datetime):
        return ensure_utc(value)

    if isinstance(value, date):
        return datetime.combine(value, datetime.min.time(), tzinfo=UTC)

    if isinstance(value, str):
        parsed = parse_timestamp(value)
        if parsed:
            return ensure_utc(parsed)
        return None

    logger.warning("Unsupported datetime input type '%s'", type(value))
    return None


def is_date_only(value: str | datetime | date | None) -> bool:
    """True for ``YYYY-MM-DD`` style strings and bare ``date`` objects."""
    if isinstance(value, datetime):
        return False
    if isinstance(value, date):
        return True
    if not isinstance(value, str):
        return False
    return DATE_ONLY_PATTERN.match(value.strip()) is not None


def to_storage_datetime(value: str | datetime | date | None) -> datetime | None:
    """Convert a date-like value to the naive UTC datetime stored in MongoDB."""
    normalized = normalize_to_utc_datetime(value)
    if normalized is None:
        return None
    return normalized.replace(tzinfo=None)
