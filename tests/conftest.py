import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]

if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
from bson import ObjectId
from mongomock_motor import AsyncMongoMockClient
from network_blocker import install_network_blocker

from db.store import DocumentStore  # noqa: E402


@pytest.fixture(autouse=True)
def _default_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MONGODB_URI", raising=False)
    install_network_blocker(monkeypatch)


@pytest.fixture
def mongo_client():
    return AsyncMongoMockClient()


@pytest.fixture
def mongo_db(mongo_client):
    return mongo_client["test_db"]


@pytest.fixture
def store(mongo_db) -> DocumentStore:
    return DocumentStore(mongo_db)


@pytest.fixture
def make_hub(store):
    async def _make_hub(name: str, **extra) -> ObjectId:
        document = {
            "name": name,
            "locationType": "hub",
            "geoCodeData": {
                "type": "Feature",
                "geometry": {
                    "type": "Point",
                    "coordinates": [77.59, 12.97],
                    "radius": 250,
                },
            },
            "createdBy": "tests",
            **extra,
        }
        return await store.insert(store.geofences_name, document)

    return _make_hub
