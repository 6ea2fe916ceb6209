"""
ArchiveRepository - closed cycles.

Archives are written once and only ever read or deleted as a whole. The
member snapshots are embedded in the archive document.
"""

from typing import List, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.models.archive import ArchiveCycle
from app.repositories.base import ArchiveRepositoryInterface, persistence_errors, to_object_id


class ArchiveRepository(ArchiveRepositoryInterface):
    """Repository for archived cycles."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["archives"]

    async def insert(self, archive: ArchiveCycle) -> ArchiveCycle:
        doc = {
            "_id": ObjectId(archive.id),
            "end_date": archive.end_date,
            "stats": archive.stats.model_dump(),
            "members": [
                {**m.model_dump(), "role": m.role.value}
                for m in archive.members
            ]
        }
        with persistence_errors("insert archive"):
            await self.collection.insert_one(doc)
        return archive

    async def list_all(self) -> List[ArchiveCycle]:
        with persistence_errors("list archives"):
            docs = await self.collection.find({}).sort("end_date", -1).to_list(None)
        return [self._from_doc(doc) for doc in docs]

    async def get(self, archive_id: str) -> Optional[ArchiveCycle]:
        oid = to_object_id(archive_id)
        if oid is None:
            return None
        with persistence_errors("get archive"):
            doc = await self.collection.find_one({"_id": oid})
        if doc:
            return self._from_doc(doc)
        return None

    async def delete(self, archive_id: str) -> bool:
        oid = to_object_id(archive_id)
        if oid is None:
            return False
        with persistence_errors("delete archive"):
            result = await self.collection.delete_one({"_id": oid})
        return result.deleted_count > 0

    @staticmethod
    def _from_doc(doc: dict) -> ArchiveCycle:
        return ArchiveCycle(
            id=str(doc["_id"]),
            end_date=doc["end_date"],
            stats=doc["stats"],
            members=doc.get("members", [])
        )
