"""
Trip management package.

This package provides:
- Trip querying, filtering and pagination
- Route hub joins and dynamic vehicle reference resolution
- Trip create, update and delete operations

The package is organized into:
- routes/: API endpoint handlers
- services/: Business logic and data processing
- models.py: Request payload models
"""

from fastapi import APIRouter

from trips.routes import crud, query

# Query routes go first so /api/trips/search etc. win over /api/trips/{trip_id}
router = APIRouter()
router.include_router(query.router, tags=["trips-query"])
router.include_router(crud.router, tags=["trips-crud"])

__all__ = ["router"]
