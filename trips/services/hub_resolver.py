"""Join trip route hubs against the geofence collection."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from db.serializers import parse_object_id

if TYPE_CHECKING:
    from bson import ObjectId

    from db.store import DocumentStore

logger = logging.getLogger(__name__)

SINGLE_HUB_FIELDS = ("sourceHub", "destinationHub")
VIA_HUB_FIELD = "viaHub"


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, list | tuple):
        return list(value)
    return [value]


def collect_hub_ids(trips: list[dict[str, Any]]) -> set[ObjectId]:
    """Every parseable hub reference across ``trips``."""
    hub_ids: set[ObjectId] = set()
    for trip in trips:
        route = trip.get("routeDetails")
        if not isinstance(route, dict):
            continue
        refs = [route.get(name) for name in SINGLE_HUB_FIELDS]
        refs.extend(_as_list(route.get(VIA_HUB_FIELD)))
        for ref in refs:
            object_id = parse_object_id(ref)
            if object_id is not None:
                hub_ids.add(object_id)
    return hub_ids


def apply_hubs(
    trip: dict[str, Any],
    hubs_by_id: dict[ObjectId, dict[str, Any]],
) -> dict[str, Any]:
    """
    Replace hub references on ``trip`` with geofence documents.

    Unresolved single hubs become None; unresolved via hubs are dropped.
    Via hub order and duplicates are kept.
    """
    route = trip.get("routeDetails")
    if not isinstance(route, dict):
        return trip

    for name in SINGLE_HUB_FIELDS:
        if name in route:
            object_id = parse_object_id(route[name])
            route[name] = hubs_by_id.get(object_id) if object_id else None

    if VIA_HUB_FIELD in route:
        resolved: list[dict[str, Any]] = []
        for ref in _as_list(route[VIA_HUB_FIELD]):
            object_id = parse_object_id(ref)
            hub = hubs_by_id.get(object_id) if object_id else None
            if hub is not None:
                resolved.append(hub)
        route[VIA_HUB_FIELD] = resolved
    return trip


class HubResolver:
    """Left-outer join of route hubs with one ``$in`` lookup per page."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def fetch_hubs(
        self,
        hub_ids: set[ObjectId],
    ) -> dict[ObjectId, dict[str, Any]]:
        if not hub_ids:
            return {}
        hubs = await self._store.find(
            self._store.geofences_name,
            {"_id": {"$in": list(hub_ids)}},
        )
        hubs_by_id = {hub["_id"]: hub for hub in hubs}
        missing = hub_ids.difference(hubs_by_id)
        if missing:
            logger.debug("%d referenced hub(s) not found", len(missing))
        return hubs_by_id

    async def join(self, trips: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Resolve hubs on every trip in place and return the list."""
        hubs_by_id = await self.fetch_hubs(collect_hub_ids(trips))
        for trip in trips:
            apply_hubs(trip, hubs_by_id)
        return trips

    async def join_one(self, trip: dict[str, Any]) -> dict[str, Any]:
        await self.join([trip])
        return trip
