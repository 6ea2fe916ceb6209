from decimal import Decimal
from typing import Any, Dict, List

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.models.member import Member, Role
from app.repositories.base import MemberRepositoryInterface, persistence_errors, to_object_id


class MemberRepository(MemberRepositoryInterface):
    """Member database operations."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["members"]

    async def insert(self, member: Member) -> Member:
        """Insert a new member."""
        doc = {
            "_id": ObjectId(member.id),
            "name": member.name,
            "role": member.role.value,
            "deposit": member.deposit,
            "is_active": member.is_active,
            "avatar": member.avatar,
            "created_at": member.created_at
        }
        with persistence_errors("insert member"):
            await self.collection.insert_one(doc)
        return member

    async def list_all(self) -> List[Member]:
        """List members in the order they joined."""
        with persistence_errors("list members"):
            docs = await self.collection.find({}).sort("created_at", 1).to_list(None)
        return [self._from_doc(doc) for doc in docs]

    async def update(self, member_id: str, fields: Dict[str, Any]) -> bool:
        """Merge fields into a member."""
        oid = to_object_id(member_id)
        if oid is None:
            return False

        updates = dict(fields)
        if isinstance(updates.get("role"), Role):
            updates["role"] = updates["role"].value

        with persistence_errors("update member"):
            if not updates:
                return await self.collection.count_documents({"_id": oid}, limit=1) > 0
            result = await self.collection.update_one({"_id": oid}, {"$set": updates})
        return result.matched_count > 0

    async def delete(self, member_id: str) -> bool:
        """Hard delete a member."""
        oid = to_object_id(member_id)
        if oid is None:
            return False
        with persistence_errors("delete member"):
            result = await self.collection.delete_one({"_id": oid})
        return result.deleted_count > 0

    async def reset_deposits(self) -> int:
        """Zero every member's deposit."""
        with persistence_errors("reset deposits"):
            result = await self.collection.update_many({}, {"$set": {"deposit": Decimal("0")}})
        return result.modified_count

    @staticmethod
    def _from_doc(doc: dict) -> Member:
        doc = dict(doc)
        doc["id"] = str(doc.pop("_id"))
        return Member(**doc)
