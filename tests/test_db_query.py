import re
from datetime import datetime

import pytest
from bson import ObjectId

from config import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from core.exceptions import ValidationError
from db.query import (
    Pagination,
    build_date_range_query,
    build_match_stage,
    is_identifier_key,
    parse_query_date,
)


def test_build_match_stage_empty_input_matches_everything() -> None:
    assert build_match_stage({}) == {}
    assert build_match_stage(None) == {}


def test_build_match_stage_drops_none_values() -> None:
    assert build_match_stage({"status": None, "isBlocked": False}) == {
        "isBlocked": False,
    }


def test_build_match_stage_strings_become_case_insensitive_regex() -> None:
    match = build_match_stage({"name": "hub"})
    assert match == {"name": {"$regex": "hub", "$options": "i"}}

    pattern = re.compile(match["name"]["$regex"], re.IGNORECASE)
    assert pattern.search("North Hub Station")


def test_build_match_stage_escapes_regex_metacharacters() -> None:
    match = build_match_stage({"receiptNo": "R-1.(2)"})
    pattern = re.compile(match["receiptNo"]["$regex"], re.IGNORECASE)

    assert pattern.search("xx r-1.(2) yy")
    assert not pattern.search("R-1x(2)")


def test_build_match_stage_blank_string_is_exact_match() -> None:
    assert build_match_stage({"status": "  "}) == {"status": "  "}


def test_build_match_stage_numbers_are_exact_match() -> None:
    assert build_match_stage({"vehicleDetails.vehid": 42}) == {
        "vehicleDetails.vehid": 42,
    }


def test_build_match_stage_converts_identifier_keys() -> None:
    oid = ObjectId()
    match = build_match_stage({"_id": str(oid), "userId": str(oid), "clientId": oid})

    assert match == {"_id": oid, "userId": oid, "clientId": oid}


def test_build_match_stage_drops_malformed_identifier_keys() -> None:
    match = build_match_stage(
        {"clientId": "not-an-id", "_id": "zzz", "status": "open"},
    )
    assert match == {"status": {"$regex": "open", "$options": "i"}}


def test_build_match_stage_strict_rejects_malformed_primary_id() -> None:
    with pytest.raises(ValidationError):
        build_match_stage({"_id": "not-a-valid-id"}, strict_ids=True)


def test_build_match_stage_strict_still_drops_other_identifier_keys() -> None:
    match = build_match_stage({"userId": "nope"}, strict_ids=True)
    assert match == {}


def test_build_match_stage_ignores_pagination_keys() -> None:
    assert build_match_stage({"page": "2", "limit": "5"}) == {}


def test_is_identifier_key() -> None:
    assert is_identifier_key("_id")
    assert is_identifier_key("userId")
    assert is_identifier_key("sourceHubId")
    assert not is_identifier_key("tripid")
    assert not is_identifier_key("status")


def test_parse_query_date_handles_date_only() -> None:
    assert parse_query_date("2024-01-02") == datetime(2024, 1, 2)
    assert parse_query_date("2024-01-02", end_of_day=True) == datetime(
        2024,
        1,
        2,
        23,
        59,
        59,
        999000,
    )


def test_parse_query_date_converts_offsets_to_naive_utc() -> None:
    parsed = parse_query_date("2024-01-02T12:30:00+02:00")
    assert parsed == datetime(2024, 1, 2, 10, 30)
    assert parsed.tzinfo is None


def test_parse_query_date_returns_none_for_garbage() -> None:
    assert parse_query_date("yesterday-ish") is None
    assert parse_query_date("") is None


def test_build_date_range_query_is_inclusive() -> None:
    query = build_date_range_query("2024-01-01", "2024-01-31")
    assert query == {
        "startDate": {"$gte": datetime(2024, 1, 1)},
        "endDate": {"$lte": datetime(2024, 1, 31, 23, 59, 59, 999000)},
    }


def test_build_date_range_query_rejects_bad_bounds() -> None:
    with pytest.raises(ValidationError) as exc_info:
        build_date_range_query("garbage", None)
    assert "startDate" in exc_info.value.message
    assert "endDate" in exc_info.value.message


def test_pagination_skip() -> None:
    assert Pagination.from_params(1, 10).skip == 0
    assert Pagination.from_params(3, 10).skip == 20


def test_pagination_coerces_and_clamps() -> None:
    assert Pagination.from_params("2", "5") == Pagination(page=2, limit=5)
    assert Pagination.from_params(0, 0) == Pagination(1, DEFAULT_PAGE_LIMIT)
    assert Pagination.from_params("x", None) == Pagination(1, DEFAULT_PAGE_LIMIT)
    assert Pagination.from_params(1, MAX_PAGE_LIMIT + 1).limit == MAX_PAGE_LIMIT


def test_parse_query_date_keeps_time_of_space_separated_values() -> None:
    assert parse_query_date("2024-03-01 12:00:00") == datetime(2024, 3, 1, 12, 0)
    assert parse_query_date("2024-03-31 00:00:00", end_of_day=True) == datetime(
        2024,
        3,
        31,
    )


def test_build_match_stage_treats_blank_identifier_as_absent() -> None:
    assert build_match_stage({"_id": "", "userId": "  "}, strict_ids=True) == {}
