"""Pydantic models for trip-related API and service operations."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

ALERT_INTERVAL_KEY = "alertInterval(in minutes)"


class RouteDetails(BaseModel):
    """Route hubs as supplied by clients: geofence ids as strings."""

    sourceHub: str
    destinationHub: str
    viaHub: list[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")


class ClientDetails(BaseModel):
    ConsigneeName: str | None = None
    ConsignorName: str | None = None
    receiptNo: str | None = None
    gstNo: str | None = None

    model_config = ConfigDict(extra="allow")


class OtherDetails(BaseModel):
    comments: list[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="allow")


class AlertConfiguration(BaseModel):
    """Alert rule attached to a trip. The interval is stored in minutes."""

    alertName: str
    alertType: str
    value: str
    alertInterval: int | None = Field(default=None, alias=ALERT_INTERVAL_KEY)

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class TripCreate(BaseModel):
    """Payload for creating a trip.

    ``vehicleDetails`` is kept verbatim: any of its values may point at a
    vehicle master collection through ``field.DBmaster``.
    """

    status: str | None = None
    movementStatus: str | None = None
    locationStatus: str | None = None
    startDate: datetime | None = None
    endDate: datetime | None = None
    isBlocked: bool = False
    routeDetails: RouteDetails | None = None
    vehicleDetails: dict[str, Any] | None = None
    clientDetails: ClientDetails | None = None
    otherDetails: OtherDetails | None = None
    alertConfiguration: list[AlertConfiguration] | None = None

    model_config = ConfigDict(extra="ignore")

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class TripUpdate(BaseModel):
    """Partial update. Only fields present in the payload are written."""

    status: str | None = None
    movementStatus: str | None = None
    locationStatus: str | None = None
    startDate: datetime | None = None
    endDate: datetime | None = None
    isBlocked: bool | None = None
    routeDetails: RouteDetails | None = None
    vehicleDetails: dict[str, Any] | None = None
    clientDetails: ClientDetails | None = None
    otherDetails: OtherDetails | None = None
    alertConfiguration: list[AlertConfiguration] | None = None

    model_config = ConfigDict(extra="ignore")

    def to_changes(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_unset=True)
