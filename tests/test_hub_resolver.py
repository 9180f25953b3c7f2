import pytest
from bson import ObjectId

from trips.services.hub_resolver import HubResolver, apply_hubs, collect_hub_ids


def test_collect_hub_ids_skips_malformed_refs() -> None:
    a, b, c = ObjectId(), ObjectId(), ObjectId()
    trips = [
        {"routeDetails": {"sourceHub": a, "destinationHub": str(b), "viaHub": [c, "x"]}},
        {"routeDetails": None},
        {"status": "OPEN"},
    ]
    assert collect_hub_ids(trips) == {a, b, c}


def test_apply_hubs_keeps_via_order_and_duplicates() -> None:
    a, b = ObjectId(), ObjectId()
    hubs = {a: {"_id": a, "name": "A"}, b: {"_id": b, "name": "B"}}
    trip = {"routeDetails": {"viaHub": [b, a, b]}}

    apply_hubs(trip, hubs)

    assert [hub["name"] for hub in trip["routeDetails"]["viaHub"]] == ["B", "A", "B"]


def test_apply_hubs_unresolved_refs() -> None:
    known = ObjectId()
    trip = {
        "routeDetails": {
            "sourceHub": ObjectId(),
            "destinationHub": known,
            "viaHub": [ObjectId(), known],
        },
    }

    apply_hubs(trip, {known: {"_id": known, "name": "Known"}})

    route = trip["routeDetails"]
    assert route["sourceHub"] is None
    assert route["destinationHub"]["name"] == "Known"
    assert [hub["name"] for hub in route["viaHub"]] == ["Known"]


@pytest.mark.asyncio
async def test_join_resolves_hubs_for_whole_page(store, make_hub) -> None:
    g1 = await make_hub("North Hub Station")
    g2 = await make_hub("South Depot")
    g3 = await make_hub("Midway")
    trips = [
        {"routeDetails": {"sourceHub": g1, "destinationHub": g2, "viaHub": [g3]}},
        {"routeDetails": {"sourceHub": g2, "destinationHub": g1, "viaHub": []}},
    ]

    await HubResolver(store).join(trips)

    first, second = (trip["routeDetails"] for trip in trips)
    assert first["sourceHub"]["name"] == "North Hub Station"
    assert first["destinationHub"]["name"] == "South Depot"
    assert [hub["name"] for hub in first["viaHub"]] == ["Midway"]
    assert second["sourceHub"]["_id"] == g2
    assert second["viaHub"] == []


@pytest.mark.asyncio
async def test_join_with_no_references_skips_lookup(store, monkeypatch) -> None:
    async def fail_find(*args, **kwargs):
        raise AssertionError("no lookup expected")

    monkeypatch.setattr(store, "find", fail_find)
    trips = [{"status": "OPEN"}]

    assert await HubResolver(store).join(trips) == [{"status": "OPEN"}]
