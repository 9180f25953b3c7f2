"""Business logic for trip querying and filtering."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from pymongo.errors import PyMongoError

from config import DEFAULT_PAGE_LIMIT
from core.casting import coerce_scalar
from core.exceptions import InternalError, ResourceNotFoundError
from db.query import Pagination, build_date_range_query, build_match_stage
from db.serializers import parse_object_id
from trips.services.hub_resolver import HubResolver
from trips.services.reference_resolver import VehicleReferenceResolver

if TYPE_CHECKING:
    from db.store import DocumentStore

logger = logging.getLogger(__name__)


def build_vehicle_query(vehid: Any) -> dict[str, Any]:
    """Match ``vehicleDetails.vehid`` stored either as a number or a string."""
    value = coerce_scalar(vehid)
    if isinstance(value, int) and not isinstance(value, bool):
        return {"vehicleDetails.vehid": {"$in": [value, str(value)]}}
    return {"vehicleDetails.vehid": value}


class TripQueryService:
    """Service class for trip querying and filtering operations.

    Every paged operation returns ``{"items": [...], "total": int}``. Items
    have their route hubs replaced by geofence documents and their dynamic
    vehicle references resolved.
    """

    def __init__(
        self,
        store: DocumentStore,
        *,
        hub_resolver: HubResolver | None = None,
        reference_resolver: VehicleReferenceResolver | None = None,
    ) -> None:
        self._store = store
        self._hubs = hub_resolver or HubResolver(store)
        self._references = reference_resolver or VehicleReferenceResolver(store)

    async def _join_users(self, items: list[dict[str, Any]]) -> None:
        """Attach the owning user as a ``userDetail`` list (empty when unknown)."""
        user_ids = {
            object_id
            for object_id in (parse_object_id(item.get("userId")) for item in items)
            if object_id is not None
        }
        users_by_id: dict[Any, dict[str, Any]] = {}
        if user_ids:
            users = await self._store.find(
                self._store.users_name,
                {"_id": {"$in": list(user_ids)}},
            )
            users_by_id = {user["_id"]: user for user in users}

        for item in items:
            user = users_by_id.get(parse_object_id(item.get("userId")))
            item["userDetail"] = [user] if user is not None else []

    async def _fetch_page(
        self,
        query: dict[str, Any],
        pagination: Pagination,
        operation: str,
        *,
        join_users: bool = False,
    ) -> dict[str, Any]:
        trips_name = self._store.trips_name
        try:
            items, total = await asyncio.gather(
                self._store.find(
                    trips_name,
                    query,
                    skip=pagination.skip,
                    limit=pagination.limit,
                ),
                self._store.count(trips_name, query),
            )
            await self._hubs.join(items)
            if join_users:
                await self._join_users(items)
        except PyMongoError as e:
            logger.error("Error %s: %s", operation, e)
            msg = f"Error {operation}"
            raise InternalError(msg, {"error": str(e)}) from e

        await self._references.resolve_many(items)
        logger.debug(
            "%s: page=%d limit=%d returned %d of %d",
            operation,
            pagination.page,
            pagination.limit,
            len(items),
            total,
        )
        return {"items": items, "total": total}

    async def list_trips(
        self,
        filters: Mapping[str, Any] | None = None,
        page: Any = 1,
        limit: Any = DEFAULT_PAGE_LIMIT,
    ) -> dict[str, Any]:
        """
        List trips matching free-form filters.

        Malformed values for identifier-like keys (``_id``, ``userId``,
        ``*Id``) are dropped from the predicate instead of failing the call.
        Each item also carries its owner under ``userDetail``.
        """
        query = build_match_stage(filters)
        return await self._fetch_page(
            query,
            Pagination.from_params(page, limit),
            "fetching trips",
            join_users=True,
        )

    async def search_trips(
        self,
        filters: Mapping[str, Any] | None = None,
        page: Any = 1,
        limit: Any = DEFAULT_PAGE_LIMIT,
    ) -> dict[str, Any]:
        """
        Search trips with free-form filters.

        Same as ``list_trips`` except that a malformed ``_id`` fails the call.

        Raises:
            ValidationError: If ``_id`` is present and not a valid ObjectId.
        """
        query = build_match_stage(filters, strict_ids=True)
        return await self._fetch_page(
            query,
            Pagination.from_params(page, limit),
            "searching trips",
        )

    async def find_by_status(
        self,
        status: str,
        page: Any = 1,
        limit: Any = DEFAULT_PAGE_LIMIT,
    ) -> dict[str, Any]:
        return await self._fetch_page(
            {"status": status},
            Pagination.from_params(page, limit),
            "fetching trips by status",
        )

    async def find_by_vehicle_id(
        self,
        vehid: int | str,
        page: Any = 1,
        limit: Any = DEFAULT_PAGE_LIMIT,
    ) -> dict[str, Any]:
        return await self._fetch_page(
            build_vehicle_query(vehid),
            Pagination.from_params(page, limit),
            "fetching trips by vehicle ID",
        )

    async def find_by_date_range(
        self,
        start_date: str | datetime | date | None,
        end_date: str | datetime | date | None,
        page: Any = 1,
        limit: Any = DEFAULT_PAGE_LIMIT,
    ) -> dict[str, Any]:
        """
        Trips that start on or after ``start_date`` and end on or before
        ``end_date``.

        Raises:
            ValidationError: If either bound is missing or unparseable.
        """
        query = build_date_range_query(start_date, end_date)
        return await self._fetch_page(
            query,
            Pagination.from_params(page, limit),
            "fetching trips by date range",
        )

    async def find_one(self, trip_id: str) -> dict[str, Any]:
        """
        Get a single trip by its ObjectId.

        Raises:
            ResourceNotFoundError: If the id is malformed or no trip matches.
        """
        object_id = parse_object_id(trip_id)
        if object_id is None:
            msg = f"Trip with ID {trip_id} not found"
            raise ResourceNotFoundError(msg, {"trip_id": str(trip_id)})

        try:
            trip = await self._store.find_by_id(self._store.trips_name, object_id)
            if trip is not None:
                await self._hubs.join_one(trip)
        except PyMongoError as e:
            logger.error("Error fetching trip %s: %s", trip_id, e)
            msg = "Error fetching trip"
            raise InternalError(msg, {"error": str(e)}) from e

        if trip is None:
            msg = f"Trip with ID {trip_id} not found"
            raise ResourceNotFoundError(msg, {"trip_id": str(trip_id)})

        return await self._references.resolve(trip)
