"""Trip services module."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from trips.services.hub_resolver import HubResolver
    from trips.services.reference_resolver import VehicleReferenceResolver
    from trips.services.trip_crud_service import TripCrudService
    from trips.services.trip_query_service import TripQueryService

__all__ = (
    "HubResolver",
    "TripCrudService",
    "TripQueryService",
    "VehicleReferenceResolver",
)


def __getattr__(name: str):
    if name == "HubResolver":
        from trips.services.hub_resolver import HubResolver

        return HubResolver
    if name == "TripCrudService":
        from trips.services.trip_crud_service import TripCrudService

        return TripCrudService
    if name == "TripQueryService":
        from trips.services.trip_query_service import TripQueryService

        return TripQueryService
    if name == "VehicleReferenceResolver":
        from trips.services.reference_resolver import VehicleReferenceResolver

        return VehicleReferenceResolver
    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
