"""
Database Module
===============

Async MongoDB client for the CPE requirement store.

Usage:
    from shared.database import get_mongodb

    # In FastAPI
    @app.get("/example")
    async def example(
        db: AsyncIOMotorDatabase = Depends(get_mongodb),
    ):
        doc = await db.cpa_state_cpe_requirements.find_one({"_id": "CO"})
        ...
"""

from shared.database.mongodb import (
    MongoDBClient,
    get_mongodb,
)


__all__ = [
    "get_mongodb",
    "MongoDBClient",
]
