"""
Query building utilities for MongoDB.

Turns loosely-typed request parameters into match predicates, date range
conditions and pagination bounds.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from config import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from core.casting import safe_int
from core.exceptions import ValidationError
from date_utils import is_date_only, to_storage_datetime
from db.serializers import parse_object_id

logger = logging.getLogger(__name__)

PRIMARY_ID_KEY = "_id"
PAGINATION_KEYS = frozenset({"page", "limit"})


def is_identifier_key(key: str) -> bool:
    """True for keys whose values must be ObjectIds (``_id``, ``userId``, ``*Id``)."""
    return key in (PRIMARY_ID_KEY, "userId") or key.endswith("Id")


def build_match_stage(
    params: Mapping[str, Any] | None,
    *,
    strict_ids: bool = False,
) -> dict[str, Any]:
    """
    Build a MongoDB match predicate from raw filter parameters.

    Rules, per key:
        - ``None`` values, and blank values for identifier keys, are dropped.
        - Identifier keys must hold an ObjectId. A malformed value is logged
          and the key dropped, unless ``strict_ids`` is set and the key is
          ``_id``, in which case ``ValidationError`` is raised.
        - Non-blank strings become a case-insensitive substring match. The
          value is escaped, so regex metacharacters match literally.
        - Everything else is matched exactly.

    Args:
        params: Raw filter mapping, typically query string parameters.
        strict_ids: Fail on a malformed ``_id`` instead of dropping it.

    Returns:
        The conjunction of per-key conditions; ``{}`` matches everything.

    Example:
        >>> build_match_stage({"status": "open", "page": "2"})
        {'status': {'$regex': 'open', '$options': 'i'}}
    """
    match: dict[str, Any] = {}
    if not params:
        return match

    for key, value in params.items():
        if value is None or key in PAGINATION_KEYS:
            continue

        if is_identifier_key(key):
            if isinstance(value, str) and not value.strip():
                continue
            object_id = parse_object_id(value)
            if object_id is None:
                if strict_ids and key == PRIMARY_ID_KEY:
                    msg = f"Invalid trip id format: {value!r}"
                    raise ValidationError(msg, {"field": key, "value": str(value)})
                logger.warning(
                    "Dropping filter %s: %r is not a valid ObjectId",
                    key,
                    value,
                )
                continue
            match[key] = object_id
        elif isinstance(value, str) and value.strip():
            match[key] = {"$regex": re.escape(value), "$options": "i"}
        else:
            match[key] = value

    return match


def parse_query_date(
    value: str | datetime | date | None,
    end_of_day: bool = False,
) -> datetime | None:
    """
    Parse a date bound for query filtering into a naive UTC datetime.

    Date-only strings (YYYY-MM-DD) start at midnight, or at 23:59:59.999
    when ``end_of_day`` is set.
    """
    if value is None or value == "":
        return None

    dt = to_storage_datetime(value)
    if dt is None:
        logger.warning("Unable to parse date '%s'; returning None.", value)
        return None

    if is_date_only(value):
        if end_of_day:
            # BSON dates have millisecond precision
            return dt.replace(hour=23, minute=59, second=59, microsecond=999000)
        return dt.replace(hour=0, minute=0, second=0, microsecond=0)

    return dt


def build_date_range_query(
    start_date: str | datetime | date | None,
    end_date: str | datetime | date | None,
    *,
    start_field: str = "startDate",
    end_field: str = "endDate",
) -> dict[str, Any]:
    """
    Build ``{start_field: {$gte: start}, end_field: {$lte: end}}``.

    Both bounds are inclusive and both are required.

    Raises:
        ValidationError: If a bound is missing or cannot be parsed.
    """
    start = parse_query_date(start_date)
    end = parse_query_date(end_date, end_of_day=True)

    invalid = [
        name
        for name, parsed in (("startDate", start), ("endDate", end))
        if parsed is None
    ]
    if invalid:
        msg = f"Invalid or missing date bound(s): {', '.join(invalid)}"
        raise ValidationError(
            msg,
            {"startDate": str(start_date), "endDate": str(end_date)},
        )

    return {start_field: {"$gte": start}, end_field: {"$lte": end}}


@dataclass(frozen=True)
class Pagination:
    """A normalized page request. ``page`` is 1-based."""

    page: int
    limit: int

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    @classmethod
    def from_params(
        cls,
        page: Any = 1,
        limit: Any = DEFAULT_PAGE_LIMIT,
        *,
        max_limit: int = MAX_PAGE_LIMIT,
    ) -> Pagination:
        """Coerce raw page/limit values, clamping them to sane bounds."""
        page_num = max(1, safe_int(page, 1))
        limit_num = safe_int(limit, DEFAULT_PAGE_LIMIT)
        if limit_num < 1:
            limit_num = DEFAULT_PAGE_LIMIT
        return cls(page=page_num, limit=min(limit_num, max_limit))
