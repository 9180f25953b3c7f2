"""Database package for MongoDB operations.

Modules:
    manager: DatabaseManager owning the Motor client lifetime
    store: DocumentStore capability handed to services
    models: Beanie Document models (collections and indexes)
    query: Filter, date range and pagination builders
    serializers: ObjectId parsing and JSON serialization

Usage:
    from db import DatabaseManager, build_match_stage

    async with DatabaseManager() as manager:
        store = manager.store()
        trips = await store.find("trips", build_match_stage({"status": "open"}))
"""

from __future__ import annotations

from db.manager import DatabaseManager
from db.models import ALL_DOCUMENT_MODELS, Geofence, Trip
from db.query import (
    Pagination,
    build_date_range_query,
    build_match_stage,
    is_identifier_key,
    parse_query_date,
)
from db.serializers import (
    parse_object_id,
    serialize_datetime,
    serialize_for_json,
)
from db.store import DocumentStore

__all__ = [
    "ALL_DOCUMENT_MODELS",
    "DatabaseManager",
    "DocumentStore",
    "Geofence",
    "Pagination",
    "Trip",
    "build_date_range_query",
    "build_match_stage",
    "is_identifier_key",
    "parse_object_id",
    "parse_query_date",
    "serialize_datetime",
    "serialize_for_json",
]
