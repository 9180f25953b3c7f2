"""FastAPI dependencies wiring trip services to the app's document store."""

from __future__ import annotations

from fastapi import Depends, Request

from db.store import DocumentStore
from trips.services.trip_crud_service import TripCrudService
from trips.services.trip_query_service import TripQueryService


def get_store(request: Request) -> DocumentStore:
    """Return the store the application opened on startup."""
    return request.app.state.store


def get_query_service(
    store: DocumentStore = Depends(get_store),
) -> TripQueryService:
    return TripQueryService(store)


def get_crud_service(
    request: Request,
    store: DocumentStore = Depends(get_store),
) -> TripCrudService:
    duplicate_guard = getattr(request.app.state, "duplicate_guard", None)
    if duplicate_guard is None:
        return TripCrudService(store)
    return TripCrudService(store, duplicate_guard=duplicate_guard)
