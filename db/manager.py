"""
Database connection manager module.

``DatabaseManager`` owns one Motor client for its whole lifetime: the
application creates it on startup, hands ``DocumentStore`` handles to the
services and closes it on shutdown. There is no module-level instance.
"""

from __future__ import annotations

import logging
import os
from datetime import UTC
from typing import Any, Final, Self

import certifi
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from db.store import DocumentStore

logger = logging.getLogger(__name__)

DEFAULT_MONGO_URI: Final[str] = "mongodb://localhost:27017"
MONGODB_URI_ENV_VAR: Final[str] = "MONGODB_URI"


def _get_mongo_uri() -> str:
    mongo_uri = os.getenv(MONGODB_URI_ENV_VAR, "").strip()
    return mongo_uri or DEFAULT_MONGO_URI


class DatabaseManager:
    """
    Manage the MongoDB client and database connection.

    Environment Variables:
        MONGODB_URI: MongoDB URI (default: mongodb://localhost:27017)
        MONGODB_DATABASE: Database name (default: trip_desk)
        MONGODB_MAX_POOL_SIZE: Connection pool size (default: 50)
        MONGODB_CONNECTION_TIMEOUT_MS: Connection timeout (default: 5000)
        MONGODB_SERVER_SELECTION_TIMEOUT_MS: Server selection timeout (default: 10000)
        MONGODB_SOCKET_TIMEOUT_MS: Socket timeout (default: 30000)

    Usage:
        async with DatabaseManager() as manager:
            await manager.init_beanie()
            store = manager.store()
    """

    def __init__(
        self,
        mongo_uri: str | None = None,
        db_name: str | None = None,
        *,
        client: AsyncIOMotorClient | None = None,
    ) -> None:
        self._mongo_uri = mongo_uri or _get_mongo_uri()
        self._db_name = db_name or os.getenv("MONGODB_DATABASE", "trip_desk")
        self._client: AsyncIOMotorClient | None = client
        self._db: AsyncIOMotorDatabase | None = (
            client[self._db_name] if client is not None else None
        )
        self._owns_client = client is None
        self._beanie_initialized = False

        self._max_pool_size = int(os.getenv("MONGODB_MAX_POOL_SIZE", "50"))
        self._connection_timeout_ms = int(
            os.getenv("MONGODB_CONNECTION_TIMEOUT_MS", "5000"),
        )
        self._server_selection_timeout_ms = int(
            os.getenv("MONGODB_SERVER_SELECTION_TIMEOUT_MS", "10000"),
        )
        self._socket_timeout_ms = int(
            os.getenv("MONGODB_SOCKET_TIMEOUT_MS", "30000"),
        )

        logger.debug(
            "Database configuration initialized with pool size %s",
            self._max_pool_size,
        )

    def _client_kwargs(self) -> dict[str, Any]:
        client_kwargs: dict[str, Any] = {
            "tz_aware": True,
            "tzinfo": UTC,
            "maxPoolSize": self._max_pool_size,
            "minPoolSize": 0,
            "maxIdleTimeMS": 60000,
            "connectTimeoutMS": self._connection_timeout_ms,
            "serverSelectionTimeoutMS": self._server_selection_timeout_ms,
            "socketTimeoutMS": self._socket_timeout_ms,
            "retryWrites": True,
            "retryReads": True,
            "appname": "TripDesk",
        }

        # Configure TLS for MongoDB Atlas connections
        if self._mongo_uri.startswith("mongodb+srv://"):
            client_kwargs.update(tls=True, tlsCAFile=certifi.where())
        return client_kwargs

    def _initialize_client(self) -> None:
        try:
            logger.debug("Initializing MongoDB client for %s", self._db_name)
            self._client = AsyncIOMotorClient(self._mongo_uri, **self._client_kwargs())
            self._db = self._client[self._db_name]
            logger.info("MongoDB client initialized successfully")
        except Exception:
            logger.exception("Failed to initialize MongoDB client")
            raise

    @property
    def client(self) -> AsyncIOMotorClient:
        if self._client is None:
            self._initialize_client()
        if self._client is None:
            msg = "MongoDB client could not be initialized."
            raise RuntimeError(msg)
        return self._client

    @property
    def db(self) -> AsyncIOMotorDatabase:
        if self._db is None:
            self._db = self.client[self._db_name]
        return self._db

    def store(self) -> DocumentStore:
        """Return a store handle bound to this manager's database."""
        return DocumentStore(self.db)

    async def init_beanie(self) -> None:
        """Register the document models and create their indexes."""
        if self._beanie_initialized:
            logger.debug("Beanie already initialized, skipping")
            return

        from beanie import init_beanie

        from db.models import ALL_DOCUMENT_MODELS

        await init_beanie(database=self.db, document_models=ALL_DOCUMENT_MODELS)
        self._beanie_initialized = True
        logger.info(
            "Beanie ODM initialized with %d document models",
            len(ALL_DOCUMENT_MODELS),
        )

    async def ping(self) -> bool:
        try:
            await self.db.command("ping")
        except Exception as e:
            logger.warning("MongoDB ping failed: %s", e)
            return False
        return True

    async def close(self) -> None:
        """Close the client if this manager created it."""
        if self._client is not None and self._owns_client:
            try:
                logger.info("Closing MongoDB client connections...")
                self._client.close()
            except Exception:
                logger.exception("Error closing MongoDB client")
        self._client = None
        self._db = None
        self._beanie_initialized = False

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
