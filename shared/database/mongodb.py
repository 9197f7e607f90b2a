"""
MongoDB Client
==============

Async MongoDB client using Motor for extracted CPE requirement records.

Version: 0.1.0
"""

import time
from typing import Any

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from shared.config import settings
from shared.logging import get_logger

logger = get_logger(__name__)


class MongoDBClient:
    """
    Async MongoDB client wrapper.

    Manages client lifecycle and provides database access.
    """

    _client: AsyncIOMotorClient | None = None  # type: ignore[type-arg]

    @classmethod
    def get_client(cls) -> AsyncIOMotorClient:  # type: ignore[type-arg]
        """Get or create the async client."""
        if cls._client is None:
            cls._client = AsyncIOMotorClient(
                settings.mongodb.uri,
                maxPoolSize=20,
                minPoolSize=0,
                serverSelectionTimeoutMS=5000,
                connectTimeoutMS=5000,
                tz_aware=True,
            )
            logger.info(
                "mongodb_client_created",
                host=settings.mongodb.host,
                database=settings.mongodb.db,
            )
        return cls._client

    @classmethod
    def get_database(cls, name: str | None = None) -> AsyncIOMotorDatabase:  # type: ignore[type-arg]
        """
        Get a database instance.

        Args:
            name: Database name (default from settings)

        Returns:
            AsyncIOMotorDatabase instance
        """
        client = cls.get_client()
        db_name = name or settings.mongodb.db
        return client[db_name]

    @classmethod
    async def close(cls) -> None:
        """Close the client and release all connections."""
        if cls._client is not None:
            cls._client.close()
            cls._client = None
            logger.info("mongodb_client_closed")

    @classmethod
    async def health_check(cls) -> dict[str, Any]:
        """
        Check database health.

        Returns:
            dict with status and latency
        """
        try:
            start = time.perf_counter()
            result = await cls.get_client().admin.command("ping")
            latency_ms = (time.perf_counter() - start) * 1000

            return {
                "status": "healthy" if result.get("ok") == 1 else "unhealthy",
                "latency_ms": round(latency_ms, 2),
                "database": settings.mongodb.db,
            }
        except Exception as e:
            logger.error("mongodb_health_check_failed", error=str(e))
            return {
                "status": "unhealthy",
                "error": str(e),
            }

    @classmethod
    async def create_indexes(cls) -> None:
        """Create indexes for the requirements collection."""
        db = cls.get_database()
        requirements = db[settings.extraction.collection]

        # state_code is stored as _id, which is already unique
        await requirements.create_index([("needs_human_review", ASCENDING)])
        await requirements.create_index([("extracted_at", DESCENDING)])

        logger.info("mongodb_indexes_created", collection=settings.extraction.collection)


async def get_mongodb() -> AsyncIOMotorDatabase:  # type: ignore[type-arg]
    """
    Dependency that provides the MongoDB database.

    Usage:
        @router.get("/requirements")
        async def requirements(db: AsyncIOMotorDatabase = Depends(get_mongodb)):
            cursor = db.cpa_state_cpe_requirements.find({})
            return await cursor.to_list(100)
    """
    return MongoDBClient.get_database()
