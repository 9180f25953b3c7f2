"""API routes for trip CRUD operations."""

import logging

from fastapi import APIRouter, Depends, status

from core.api import api_response, api_route
from db.serializers import serialize_for_json
from trips.dependencies import get_crud_service, get_query_service
from trips.models import TripCreate, TripUpdate
from trips.services.trip_crud_service import TripCrudService
from trips.services.trip_query_service import TripQueryService

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post(
    "/api/trips",
    tags=["Trips API"],
    status_code=status.HTTP_201_CREATED,
)
@api_route(logger)
async def create_trip(
    payload: TripCreate,
    service: TripCrudService = Depends(get_crud_service),
):
    trip = await service.create_trip(payload)
    return api_response(
        "Trip created successfully",
        serialize_for_json(trip),
        status_code=status.HTTP_201_CREATED,
    )


@router.get("/api/trips/{trip_id}", tags=["Trips API"])
@api_route(logger)
async def get_single_trip(
    trip_id: str,
    service: TripQueryService = Depends(get_query_service),
):
    """Get a single trip by its ObjectId."""
    trip = await service.find_one(trip_id)
    return api_response("Trip retrieved successfully", serialize_for_json(trip))


@router.patch("/api/trips/{trip_id}", tags=["Trips API"])
@api_route(logger)
async def update_trip(
    trip_id: str,
    payload: TripUpdate,
    service: TripCrudService = Depends(get_crud_service),
):
    trip = await service.update_trip(trip_id, payload)
    return api_response("Trip updated successfully", serialize_for_json(trip))


@router.delete("/api/trips/{trip_id}", tags=["Trips API"])
@api_route(logger)
async def delete_trip(
    trip_id: str,
    service: TripCrudService = Depends(get_crud_service),
):
    trip = await service.delete_trip(trip_id)
    return api_response("Trip deleted successfully", serialize_for_json(trip))
