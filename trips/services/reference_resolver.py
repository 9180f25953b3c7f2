"""Best-effort resolution of dynamic vehicle references on trips.

A trip's ``vehicleDetails`` has no fixed shape. Any of its top-level values,
and the mapping itself, may carry::

    {"field": {"DBmaster": "<collection name>", "value": "<ObjectId>"}, ...}

which points at the authoritative vehicle record in a collection only known
at runtime. Resolution fetches that record and nests it under the collection
name, next to the sub-document's own fields. Every reference resolves on its
own: a missing collection, a bad id or a store error only skips that one
reference.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from db.serializers import parse_object_id

if TYPE_CHECKING:
    from bson import ObjectId

    from db.store import DocumentStore

logger = logging.getLogger(__name__)

COLLECTION_FIELD = "DBmaster"
# Key used for the outcome of the vehicleDetails mapping itself.
ROOT_KEY: str | None = None


@dataclass(frozen=True)
class VehicleReference:
    """Pointer from a vehicle sub-document to a record in a named collection."""

    key: str | None
    collection_name: str
    reference_id: ObjectId


@dataclass(frozen=True)
class Resolved:
    reference: VehicleReference
    document: dict[str, Any] = field(repr=False)

    @property
    def key(self) -> str | None:
        return self.reference.key


@dataclass(frozen=True)
class Skipped:
    key: str | None
    reason: str


ResolutionOutcome = Resolved | Skipped


def is_valid_collection_name(name: Any) -> bool:
    """Check the name against MongoDB's collection naming rules."""
    return (
        isinstance(name, str)
        and bool(name.strip())
        and "$" not in name
        and "\x00" not in name
        and not name.startswith("system.")
    )


def extract_reference(
    key: str | None,
    sub_document: Any,
) -> VehicleReference | Skipped | None:
    """
    Read the reference carried by one vehicle sub-document.

    Returns None when the value does not declare a collection at all, and
    ``Skipped`` when it declares one but the pointer is unusable.
    """
    if not isinstance(sub_document, Mapping):
        return None
    descriptor = sub_document.get("field")
    if not isinstance(descriptor, Mapping):
        return None
    collection_name = descriptor.get(COLLECTION_FIELD)
    if collection_name is None:
        return None

    if not is_valid_collection_name(collection_name):
        return Skipped(key, f"invalid collection name {collection_name!r}")

    raw_id = descriptor.get("value")
    if raw_id is None:
        raw_id = sub_document.get("_id")
    reference_id = parse_object_id(raw_id)
    if reference_id is None:
        return Skipped(key, f"malformed identifier {raw_id!r}")

    return VehicleReference(key, collection_name, reference_id)


def extract_references(
    vehicle_details: Any,
) -> tuple[list[VehicleReference], list[Skipped]]:
    """Collect every reference in ``vehicleDetails``, root mapping included."""
    references: list[VehicleReference] = []
    skipped: list[Skipped] = []
    if not isinstance(vehicle_details, Mapping):
        return references, skipped

    candidates: list[tuple[str | None, Any]] = [(ROOT_KEY, vehicle_details)]
    candidates.extend(
        (key, value) for key, value in vehicle_details.items() if key != "field"
    )

    for key, value in candidates:
        outcome = extract_reference(key, value)
        if isinstance(outcome, VehicleReference):
            references.append(outcome)
        elif isinstance(outcome, Skipped):
            skipped.append(outcome)
    return references, skipped


class VehicleReferenceResolver:
    """Resolve dynamic vehicle references against the store."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def fetch(self, reference: VehicleReference) -> ResolutionOutcome:
        """Fetch one referenced document. Never raises."""
        try:
            document = await self._store.find_by_id(
                reference.collection_name,
                reference.reference_id,
            )
        except Exception as e:
            logger.warning(
                "Error fetching vehicle details from %s (%s): %s",
                reference.collection_name,
                reference.reference_id,
                e,
            )
            return Skipped(reference.key, f"lookup failed: {e}")

        if document is None:
            logger.info(
                "Vehicle %s not found in %s",
                reference.reference_id,
                reference.collection_name,
            )
            return Skipped(reference.key, "not found")
        return Resolved(reference, document)

    async def resolve_with_outcomes(
        self,
        trip: dict[str, Any],
    ) -> list[ResolutionOutcome]:
        """Enrich ``trip`` in place and report what happened to each reference."""
        vehicle_details = trip.get("vehicleDetails")
        references, skipped = extract_references(vehicle_details)
        for item in skipped:
            logger.debug("Skipping vehicle reference %s: %s", item.key, item.reason)
        if not references:
            return list(skipped)

        fetched = await asyncio.gather(*(self.fetch(ref) for ref in references))
        for outcome in fetched:
            if isinstance(outcome, Resolved):
                target = (
                    vehicle_details
                    if outcome.key is ROOT_KEY
                    else vehicle_details[outcome.key]
                )
                target[outcome.reference.collection_name] = outcome.document
        return [*skipped, *fetched]

    async def resolve(self, trip: dict[str, Any]) -> dict[str, Any]:
        """Enrich ``trip`` in place and return it."""
        await self.resolve_with_outcomes(trip)
        return trip

    async def resolve_many(
        self,
        trips: list[dict[str, Any]],
    ) -> list[dict[str, Any]]:
        await asyncio.gather(*(self.resolve(trip) for trip in trips))
        return trips
