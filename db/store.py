"""Document store capability handed to the trip services.

``DocumentStore`` wraps one ``AsyncIOMotorDatabase`` and exposes the handful
of operations the services need: paged find, find-by-id, insert,
update-by-id, delete-by-id, count and ad hoc access to any collection by
name. Services receive a store instance instead of reaching for a global
client, so tests can hand in a ``mongomock_motor`` database.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pymongo import ReturnDocument

from config import GEOFENCE_COLLECTION, TRIPS_COLLECTION, USERS_COLLECTION

if TYPE_CHECKING:
    from bson import ObjectId
    from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase

logger = logging.getLogger(__name__)


class DocumentStore:
    """Thin async facade over a MongoDB database.

    Example:
        store = DocumentStore(client["trip_desk"])
        trips = await store.find(store.trips_name, {"status": "OPEN"}, limit=10)
    """

    def __init__(
        self,
        database: AsyncIOMotorDatabase,
        *,
        trips_collection: str = TRIPS_COLLECTION,
        geofence_collection: str = GEOFENCE_COLLECTION,
        users_collection: str = USERS_COLLECTION,
    ) -> None:
        self._database = database
        self.trips_name = trips_collection
        self.geofences_name = geofence_collection
        self.users_name = users_collection

    @property
    def database(self) -> AsyncIOMotorDatabase:
        return self._database

    def collection(self, name: str) -> AsyncIOMotorCollection:
        """Return the named collection. The name is not validated here."""
        return self._database[name]

    async def find(
        self,
        collection_name: str,
        query: dict[str, Any],
        *,
        skip: int | None = None,
        limit: int | None = None,
        projection: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """Find documents matching ``query`` with optional skip/limit."""
        cursor = self.collection(collection_name).find(query, projection)
        if skip:
            cursor = cursor.skip(skip)
        if limit:
            cursor = cursor.limit(limit)
        return await cursor.to_list(length=None)

    async def find_one(
        self,
        collection_name: str,
        query: dict[str, Any],
    ) -> dict[str, Any] | None:
        return await self.collection(collection_name).find_one(query)

    async def find_by_id(
        self,
        collection_name: str,
        object_id: ObjectId,
    ) -> dict[str, Any] | None:
        return await self.find_one(collection_name, {"_id": object_id})

    async def insert(
        self,
        collection_name: str,
        document: dict[str, Any],
    ) -> ObjectId:
        """Insert ``document`` and return the id the store assigned."""
        result = await self.collection(collection_name).insert_one(document)
        logger.debug(
            "Inserted document %s into %s",
            result.inserted_id,
            collection_name,
        )
        return result.inserted_id

    async def update_by_id(
        self,
        collection_name: str,
        object_id: ObjectId,
        changes: dict[str, Any],
    ) -> dict[str, Any] | None:
        """Apply ``$set`` with ``changes`` and return the updated document."""
        return await self.collection(collection_name).find_one_and_update(
            {"_id": object_id},
            {"$set": changes},
            return_document=ReturnDocument.AFTER,
        )

    async def delete_by_id(
        self,
        collection_name: str,
        object_id: ObjectId,
    ) -> dict[str, Any] | None:
        """Delete by id and return the removed document, or None."""
        return await self.collection(collection_name).find_one_and_delete(
            {"_id": object_id},
        )

    async def count(self, collection_name: str, query: dict[str, Any]) -> int:
        return await self.collection(collection_name).count_documents(query)

    def __repr__(self) -> str:
        return f"<DocumentStore database={getattr(self._database, 'name', '?')}>"
