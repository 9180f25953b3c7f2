"""Beanie ODM document models for MongoDB collections.

The models declare the collections and their indexes; ``init_beanie`` creates
the indexes at startup (see ``DatabaseManager.init_beanie``). The trip
services themselves work on raw documents through ``db.store.DocumentStore``
because ``vehicleDetails`` has no fixed shape.

Usage:
    from db.models import Geofence, Trip

    hub = Geofence(name="North Hub", locationType="warehouse")
    await hub.insert()
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from beanie import Document, Indexed, PydanticObjectId
from pydantic import BaseModel, Field, field_validator
from pymongo import ASCENDING, IndexModel

from date_utils import parse_timestamp


class RouteRefs(BaseModel):
    """Hub references as stored on a trip."""

    sourceHub: PydanticObjectId | None = None
    destinationHub: PydanticObjectId | None = None
    viaHub: list[PydanticObjectId] = Field(default_factory=list)


class Trip(Document):
    """Trip document: a vehicle movement between geofenced hubs."""

    tripId: Indexed(str, unique=True) | None = None
    status: str | None = None
    movementStatus: str | None = None
    locationStatus: str | None = None
    startDate: datetime | None = None
    endDate: datetime | None = None
    isBlocked: bool = False
    routeDetails: RouteRefs | None = None
    vehicleDetails: dict[str, Any] | None = None
    clientDetails: dict[str, Any] | None = None
    otherDetails: dict[str, Any] | None = None
    alertConfiguration: list[dict[str, Any]] | None = None
    createdAt: datetime | None = None
    updatedAt: datetime | None = None

    @field_validator("startDate", "endDate", "createdAt", "updatedAt", mode="before")
    @classmethod
    def parse_datetime_fields(cls, v: Any) -> datetime | None:
        if v is None:
            return None
        return parse_timestamp(v)

    class Settings:
        name = "trips"
        indexes = [
            IndexModel([("status", ASCENDING)], name="trips_status_idx"),
            IndexModel(
                [("startDate", ASCENDING), ("endDate", ASCENDING)],
                name="trips_date_range_idx",
            ),
            IndexModel(
                [("vehicleDetails.vehid", ASCENDING)],
                name="trips_vehid_idx",
                sparse=True,
            ),
        ]

    class Config:
        extra = "allow"


class GeoGeometry(BaseModel):
    type: str | None = None
    coordinates: list[float] = Field(default_factory=list)
    radius: float | None = None


class GeoCode(BaseModel):
    type: str | None = None
    geometry: GeoGeometry | None = None


class Address(BaseModel):
    zipCode: str | None = None
    country: str | None = None
    state: str | None = None
    area: str | None = None
    city: str | None = None
    district: str | None = None


class Geofence(Document):
    """Geofence (hub) referenced by trip routes. Never embedded in a trip."""

    clientId: str | None = None
    name: str | None = None
    locationType: str | None = None
    mobileNumber: int | None = None
    address: Address | None = None
    finalAddress: str | None = None
    geoCodeData: GeoCode | None = None
    createdBy: str | None = None

    class Settings:
        name = "geofences"
        indexes = [
            IndexModel([("name", ASCENDING)], name="geofences_name_idx"),
        ]

    class Config:
        extra = "allow"


ALL_DOCUMENT_MODELS = [
    Trip,
    Geofence,
]
