import pytest
from bson import ObjectId
from pymongo.errors import ServerSelectionTimeoutError

from trips.services.reference_resolver import (
    Resolved,
    Skipped,
    VehicleReference,
    VehicleReferenceResolver,
    extract_reference,
    extract_references,
    is_valid_collection_name,
)


def test_extract_reference_ignores_values_without_descriptor() -> None:
    assert extract_reference("vehnum", "KA-01-1234") is None
    assert extract_reference("truck", {"name": "no field"}) is None
    assert extract_reference("truck", {"field": "not a mapping"}) is None
    assert extract_reference("truck", {"field": {"value": str(ObjectId())}}) is None


def test_extract_reference_prefers_field_value() -> None:
    value_id = ObjectId()
    own_id = ObjectId()
    ref = extract_reference(
        "truck",
        {"_id": own_id, "field": {"DBmaster": "trucks", "value": str(value_id)}},
    )
    assert ref == VehicleReference("truck", "trucks", value_id)


def test_extract_reference_falls_back_to_own_id() -> None:
    own_id = ObjectId()
    ref = extract_reference(
        "truck",
        {"_id": own_id, "field": {"DBmaster": "trucks"}},
    )
    assert ref == VehicleReference("truck", "trucks", own_id)


def test_extract_reference_skips_malformed_identifier() -> None:
    outcome = extract_reference(
        "truck",
        {"field": {"DBmaster": "trucks", "value": "12"}},
    )
    assert isinstance(outcome, Skipped)
    assert outcome.key == "truck"
    assert "malformed" in outcome.reason


@pytest.mark.parametrize("name", ["", "  ", "bad$name", "system.users", 7])
def test_invalid_collection_names_are_skipped(name) -> None:
    assert not is_valid_collection_name(name)
    outcome = extract_reference(
        "truck",
        {"field": {"DBmaster": name, "value": str(ObjectId())}},
    )
    assert isinstance(outcome, Skipped)


def test_extract_references_includes_root_mapping() -> None:
    root_id = ObjectId()
    trailer_id = ObjectId()
    references, skipped = extract_references(
        {
            "_id": root_id,
            "field": {"DBmaster": "vehicles"},
            "trailer": {"field": {"DBmaster": "trailers", "value": str(trailer_id)}},
            "driver": {"field": {"DBmaster": "drivers", "value": "oops"}},
            "vehnum": "KA-01",
        },
    )

    assert references == [
        VehicleReference(None, "vehicles", root_id),
        VehicleReference("trailer", "trailers", trailer_id),
    ]
    assert [item.key for item in skipped] == ["driver"]


def test_extract_references_handles_non_mapping() -> None:
    assert extract_references(None) == ([], [])
    assert extract_references(["a"]) == ([], [])


@pytest.mark.asyncio
async def test_resolve_nests_document_under_collection_name(store) -> None:
    truck_id = await store.insert("trucks", {"vehnum": "KA-01-1234", "axles": 3})
    trip = {
        "vehicleDetails": {
            "truck": {
                "label": "lead",
                "field": {"DBmaster": "trucks", "value": str(truck_id)},
            },
        },
    }

    result = await VehicleReferenceResolver(store).resolve(trip)

    truck = result["vehicleDetails"]["truck"]
    assert truck["label"] == "lead"
    assert truck["field"]["DBmaster"] == "trucks"
    assert truck["trucks"]["vehnum"] == "KA-01-1234"


@pytest.mark.asyncio
async def test_resolve_root_reference(store) -> None:
    vehicle_id = await store.insert("vehicles_master", {"vehname": "Truck 9"})
    trip = {
        "vehicleDetails": {
            "_id": vehicle_id,
            "vehid": 9,
            "field": {"DBmaster": "vehicles_master"},
        },
    }

    await VehicleReferenceResolver(store).resolve(trip)

    assert trip["vehicleDetails"]["vehicles_master"]["vehname"] == "Truck 9"
    assert trip["vehicleDetails"]["vehid"] == 9


@pytest.mark.asyncio
async def test_resolve_partial_failure_keeps_siblings(store) -> None:
    truck_id = await store.insert("trucks", {"vehnum": "KA-01"})
    ghost_ref = {"field": {"DBmaster": "no_such_collection", "value": str(ObjectId())}}
    trip = {
        "vehicleDetails": {
            "truck": {"field": {"DBmaster": "trucks", "value": str(truck_id)}},
            "ghost": dict(ghost_ref),
        },
    }

    outcomes = await VehicleReferenceResolver(store).resolve_with_outcomes(trip)

    assert trip["vehicleDetails"]["truck"]["trucks"]["vehnum"] == "KA-01"
    assert trip["vehicleDetails"]["ghost"] == ghost_ref
    by_key = {outcome.key: outcome for outcome in outcomes}
    assert isinstance(by_key["truck"], Resolved)
    assert isinstance(by_key["ghost"], Skipped)
    assert by_key["ghost"].reason == "not found"


@pytest.mark.asyncio
async def test_resolve_swallows_store_errors(store, monkeypatch) -> None:
    good_id = await store.insert("trucks", {"vehnum": "KA-02"})
    original_find_by_id = store.find_by_id

    async def flaky_find_by_id(collection_name, object_id):
        if collection_name == "broken":
            raise ServerSelectionTimeoutError("store unavailable")
        return await original_find_by_id(collection_name, object_id)

    monkeypatch.setattr(store, "find_by_id", flaky_find_by_id)
    trip = {
        "vehicleDetails": {
            "a": {"field": {"DBmaster": "broken", "value": str(ObjectId())}},
            "b": {"field": {"DBmaster": "trucks", "value": str(good_id)}},
        },
    }

    outcomes = await VehicleReferenceResolver(store).resolve_with_outcomes(trip)

    assert "broken" not in trip["vehicleDetails"]["a"]
    assert trip["vehicleDetails"]["b"]["trucks"]["vehnum"] == "KA-02"
    skipped = [o for o in outcomes if isinstance(o, Skipped)]
    assert len(skipped) == 1
    assert skipped[0].reason.startswith("lookup failed")


@pytest.mark.asyncio
async def test_resolve_without_vehicle_details_is_noop(store) -> None:
    trip = {"status": "OPEN"}
    assert await VehicleReferenceResolver(store).resolve(trip) == {"status": "OPEN"}


@pytest.mark.asyncio
async def test_resolve_many_resolves_each_trip(store) -> None:
    first = await store.insert("trucks", {"vehnum": "ONE"})
    second = await store.insert("trucks", {"vehnum": "TWO"})
    trips = [
        {"vehicleDetails": {"t": {"field": {"DBmaster": "trucks", "value": str(first)}}}},
        {"vehicleDetails": {"t": {"field": {"DBmaster": "trucks", "value": str(second)}}}},
    ]

    await VehicleReferenceResolver(store).resolve_many(trips)

    assert [t["vehicleDetails"]["t"]["trucks"]["vehnum"] for t in trips] == [
        "ONE",
        "TWO",
    ]
