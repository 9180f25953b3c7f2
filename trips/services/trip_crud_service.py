"""Business logic for trip create, update, and delete operations."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError as PydanticValidationError
from pymongo.errors import PyMongoError

from config import TRIP_DUPLICATE_GUARD, TRIP_ID_PREFIX
from core.exceptions import (
    DuplicateResourceError,
    InternalError,
    ResourceNotFoundError,
    ValidationError,
)
from date_utils import get_current_utc_time, to_storage_datetime
from db.serializers import parse_object_id
from trips.models import TripCreate, TripUpdate
from trips.services.hub_resolver import HubResolver

if TYPE_CHECKING:
    from bson import ObjectId

    from db.store import DocumentStore

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = ("COMPLETED", "CANCELLED")
DATE_FIELDS = ("startDate", "endDate")


class TripIdGenerator:
    """Generate ``<prefix>-<epoch ms>[-<vehicle id>]`` identifiers.

    The millisecond token is strictly increasing per generator, so two trips
    created in the same millisecond still get distinct ids. Services share
    ``default_trip_id_generator`` unless handed their own.
    """

    def __init__(self, prefix: str = TRIP_ID_PREFIX) -> None:
        self._prefix = prefix
        self._last_token = 0
        self._lock = threading.Lock()

    def __call__(self, vehicle_id: Any = None) -> str:
        with self._lock:
            token = max(time.time_ns() // 1_000_000, self._last_token + 1)
            self._last_token = token
        trip_id = f"{self._prefix}-{token}"
        if vehicle_id not in (None, ""):
            trip_id = f"{trip_id}-{vehicle_id}"
        return trip_id


default_trip_id_generator = TripIdGenerator()


def _storage_now():
    # BSON dates carry millisecond precision.
    now = to_storage_datetime(get_current_utc_time())
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def _to_storage(data: dict[str, Any]) -> dict[str, Any]:
    """Convert hub ids to ObjectIds and dates to naive UTC, in place."""
    route = data.get("routeDetails")
    if isinstance(route, dict):
        for name in ("sourceHub", "destinationHub"):
            if route.get(name) is not None:
                route[name] = _hub_object_id(name, route[name])
        route["viaHub"] = [
            _hub_object_id("viaHub", ref) for ref in route.get("viaHub") or []
        ]

    for name in DATE_FIELDS:
        if data.get(name) is not None:
            data[name] = to_storage_datetime(data[name])
    return data


def _hub_object_id(name: str, value: Any) -> ObjectId:
    object_id = parse_object_id(value)
    if object_id is None:
        msg = f"Invalid geofence id for {name}: {value!r}"
        raise ValidationError(msg, {"field": f"routeDetails.{name}"})
    return object_id


def _validate(model: type[TripCreate] | type[TripUpdate], payload: Any):
    if isinstance(payload, model):
        return payload
    try:
        return model.model_validate(payload)
    except PydanticValidationError as e:
        msg = f"Invalid trip payload: {e.error_count()} error(s)"
        raise ValidationError(msg, {"errors": e.errors(include_url=False)}) from e


class TripCrudService:
    """Service class for trip create, update, and delete operations."""

    def __init__(
        self,
        store: DocumentStore,
        *,
        duplicate_guard: bool = TRIP_DUPLICATE_GUARD,
        hub_resolver: HubResolver | None = None,
        id_generator: TripIdGenerator | None = None,
    ) -> None:
        self._store = store
        self.duplicate_guard = duplicate_guard
        self._hubs = hub_resolver or HubResolver(store)
        self._generate_id = id_generator or default_trip_id_generator

    def _duplicate_query(self, document: dict[str, Any]) -> dict[str, Any]:
        vehicle = document.get("vehicleDetails") or {}
        route = document.get("routeDetails") or {}
        return {
            "vehicleDetails.vehid": vehicle.get("vehid"),
            "vehicleDetails.imei": vehicle.get("imei"),
            "startDate": document.get("startDate"),
            "routeDetails.sourceHub": route.get("sourceHub"),
            "routeDetails.destinationHub": route.get("destinationHub"),
            "status": {"$nin": list(TERMINAL_STATUSES)},
        }

    async def create_trip(self, payload: TripCreate | Mapping[str, Any]) -> dict:
        """Create a trip and return the stored document.

        Args:
            payload: ``TripCreate`` or a mapping that validates as one.

        Raises:
            ValidationError: If the payload or a hub id is malformed.
            DuplicateResourceError: If the duplicate guard is on and an open
                trip exists for the same vehicle, start date and route.
        """
        trip = _validate(TripCreate, payload)
        document = _to_storage(trip.to_document())

        try:
            if self.duplicate_guard:
                existing = await self._store.find_one(
                    self._store.trips_name,
                    self._duplicate_query(document),
                )
                if existing is not None:
                    msg = (
                        "A trip with the same vehicle, date, and route already "
                        "exists and is not completed"
                    )
                    raise DuplicateResourceError(
                        msg,
                        {"tripId": existing.get("tripId")},
                    )

            vehicle = document.get("vehicleDetails") or {}
            now = _storage_now()
            document["tripId"] = self._generate_id(vehicle.get("vehid"))
            document["createdAt"] = now
            document["updatedAt"] = now
            document["_id"] = await self._store.insert(
                self._store.trips_name,
                document,
            )
        except PyMongoError as e:
            logger.error("Error creating trip: %s", e)
            msg = "Error creating trip"
            raise InternalError(msg, {"error": str(e)}) from e

        logger.info("Created trip %s (%s)", document["tripId"], document["_id"])
        return document

    async def update_trip(
        self,
        trip_id: str,
        payload: TripUpdate | Mapping[str, Any],
    ) -> dict:
        """Apply a partial update and return the trip with hubs joined.

        Raises:
            ResourceNotFoundError: If no trip has this id.
            ValidationError: If the payload or a hub id is malformed.
        """
        object_id = self._require_object_id(trip_id)
        changes = _to_storage(_validate(TripUpdate, payload).to_changes())

        try:
            if changes:
                changes["updatedAt"] = _storage_now()
                updated = await self._store.update_by_id(
                    self._store.trips_name,
                    object_id,
                    changes,
                )
            else:
                updated = await self._store.find_by_id(
                    self._store.trips_name,
                    object_id,
                )
            if updated is not None:
                await self._hubs.join_one(updated)
        except PyMongoError as e:
            logger.error("Error updating trip %s: %s", trip_id, e)
            msg = "Error updating trip"
            raise InternalError(msg, {"error": str(e)}) from e

        if updated is None:
            msg = f"Trip with ID {trip_id} not found"
            raise ResourceNotFoundError(msg, {"trip_id": str(trip_id)})
        return updated

    async def delete_trip(self, trip_id: str) -> dict:
        """Hard-delete a trip and return the deleted document.

        Raises:
            ResourceNotFoundError: If no trip has this id (including one that
                was already deleted).
        """
        object_id = self._require_object_id(trip_id)
        try:
            deleted = await self._store.delete_by_id(
                self._store.trips_name,
                object_id,
            )
        except PyMongoError as e:
            logger.error("Error deleting trip %s: %s", trip_id, e)
            msg = "Error deleting trip"
            raise InternalError(msg, {"error": str(e)}) from e

        if deleted is None:
            msg = f"Trip with ID {trip_id} not found"
            raise ResourceNotFoundError(msg, {"trip_id": str(trip_id)})

        logger.info("Deleted trip %s", trip_id)
        return deleted

    @staticmethod
    def _require_object_id(trip_id: str) -> ObjectId:
        object_id = parse_object_id(trip_id)
        if object_id is None:
            msg = f"Trip with ID {trip_id} not found"
            raise ResourceNotFoundError(msg, {"trip_id": str(trip_id)})
        return object_id
