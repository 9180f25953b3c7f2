"""API routes for trip querying and filtering."""

import logging

from fastapi import APIRouter, Depends, Request

from config import DEFAULT_PAGE_LIMIT
from core.api import api_response, api_route
from db.serializers import serialize_for_json
from trips.dependencies import get_query_service
from trips.services.trip_query_service import TripQueryService

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/trips", tags=["Trips API"])
@api_route(logger)
async def list_trips(
    request: Request,
    page: int = 1,
    limit: int = DEFAULT_PAGE_LIMIT,
    service: TripQueryService = Depends(get_query_service),
):
    """List trips. Any query parameter other than page/limit is a filter."""
    filters = dict(request.query_params)
    data = await service.list_trips(filters, page, limit)
    return api_response("Trips retrieved successfully", serialize_for_json(data))


@router.get("/api/trips/search", tags=["Trips API"])
@api_route(logger)
async def search_trips(
    request: Request,
    page: int = 1,
    limit: int = DEFAULT_PAGE_LIMIT,
    service: TripQueryService = Depends(get_query_service),
):
    """Search trips; a malformed ``_id`` filter is rejected with 400."""
    filters = dict(request.query_params)
    data = await service.search_trips(filters, page, limit)
    return api_response("Trips retrieved successfully", serialize_for_json(data))


@router.get("/api/trips/status/{trip_status}", tags=["Trips API"])
@api_route(logger)
async def find_trips_by_status(
    trip_status: str,
    page: int = 1,
    limit: int = DEFAULT_PAGE_LIMIT,
    service: TripQueryService = Depends(get_query_service),
):
    data = await service.find_by_status(trip_status, page, limit)
    return api_response(
        f"Trips with status {trip_status} retrieved successfully",
        serialize_for_json(data),
    )


@router.get("/api/trips/vehicle/{vehid}", tags=["Trips API"])
@api_route(logger)
async def find_trips_by_vehicle(
    vehid: str,
    page: int = 1,
    limit: int = DEFAULT_PAGE_LIMIT,
    service: TripQueryService = Depends(get_query_service),
):
    data = await service.find_by_vehicle_id(vehid, page, limit)
    return api_response(
        f"Trips for vehicle ID {vehid} retrieved successfully",
        serialize_for_json(data),
    )


@router.get("/api/trips/date-range", tags=["Trips API"])
@api_route(logger)
async def find_trips_by_date_range(
    startDate: str | None = None,
    endDate: str | None = None,
    page: int = 1,
    limit: int = DEFAULT_PAGE_LIMIT,
    service: TripQueryService = Depends(get_query_service),
):
    data = await service.find_by_date_range(startDate, endDate, page, limit)
    return api_response(
        "Trips within date range retrieved successfully",
        serialize_for_json(data),
    )
