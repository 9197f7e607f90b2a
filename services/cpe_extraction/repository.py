"""
Requirement Repository
======================

MongoDB persistence for CPE requirement records, one document per state
code. Writes replace the whole document; there is no history and no
locking, so concurrent writes for the same state are last-write-wins.

Version: 0.1.0
"""

from typing import Any

from bson.errors import BSONError
from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import PyMongoError

from services.cpe_extraction.errors import PersistenceError
from services.cpe_extraction.models import PersistedRequirement
from shared.config import settings
from shared.database.mongodb import get_mongodb
from shared.logging import get_logger
from shared.models.common import Pagination


logger = get_logger(__name__)


class RequirementRepository:
    """Reads and writes `PersistedRequirement` documents."""

    def __init__(self, collection: AsyncIOMotorCollection) -> None:  # type: ignore[type-arg]
        self.collection = collection

    async def upsert(self, record: PersistedRequirement) -> PersistedRequirement:
        """
        Create or fully replace the record for `record.state_code`.

        Returns:
            The stored record

        Raises:
            PersistenceError: The store rejected or could not take the write
        """
        doc = record.to_document()

        try:
            stored = await self.collection.find_one_and_replace(
                {"_id": record.state_code},
                doc,
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
        except (PyMongoError, BSONError, OverflowError) as e:
            # OverflowError: integers wider than 8 bytes cannot be encoded
            logger.error(
                "requirement_upsert_failed",
                state_code=record.state_code,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise PersistenceError() from e

        if stored is None:
            logger.error("requirement_upsert_empty", state_code=record.state_code)
            raise PersistenceError()

        logger.info(
            "requirement_upserted",
            state_code=record.state_code,
            needs_human_review=record.needs_human_review,
        )

        return PersistedRequirement.from_document(stored)

    async def get(self, state_code: str) -> PersistedRequirement | None:
        """Fetch the record for a state code, if any."""
        doc = await self.collection.find_one({"_id": state_code.upper()})
        if doc is None:
            return None
        return PersistedRequirement.from_document(doc)

    async def list_page(
        self,
        pagination: Pagination,
        needs_review: bool | None = None,
    ) -> tuple[list[PersistedRequirement], int]:
        """
        List records, most recently extracted first.

        Args:
            pagination: Page and page size
            needs_review: Only records with this review flag, when set

        Returns:
            (records on this page, total matching records)
        """
        query: dict[str, Any] = {}
        if needs_review is not None:
            query["needs_human_review"] = needs_review

        total = await self.collection.count_documents(query)

        cursor = (
            self.collection.find(query)
            .sort("extracted_at", DESCENDING)
            .skip(pagination.offset)
            .limit(pagination.limit)
        )

        items = [PersistedRequirement.from_document(doc) async for doc in cursor]

        return items, total


async def get_requirement_repository(
    db: AsyncIOMotorDatabase = Depends(get_mongodb),  # type: ignore[type-arg]
) -> RequirementRepository:
    """Dependency that provides the requirement repository."""
    return RequirementRepository(db[settings.extraction.collection])
