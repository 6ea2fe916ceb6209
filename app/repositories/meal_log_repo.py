import datetime
from decimal import Decimal
from typing import List

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.models.meal_log import MealLog
from app.repositories.base import MealLogRepositoryInterface, persistence_errors, to_object_id


class MealLogRepository(MealLogRepositoryInterface):
    """
    Meal log database operations.

    BSON has no calendar-date type, so the day is stored as an ISO
    "YYYY-MM-DD" string; it still sorts chronologically.
    """

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["meal_logs"]

    async def insert(self, log: MealLog) -> MealLog:
        doc = {
            "_id": ObjectId(log.id),
            "member_id": log.member_id,
            "date": log.date.isoformat(),
            "count": log.count,
            "created_at": log.created_at
        }
        with persistence_errors("insert meal log"):
            await self.collection.insert_one(doc)
        return log

    async def list_all(self) -> List[MealLog]:
        with persistence_errors("list meal logs"):
            docs = await self.collection.find({}).sort("date", -1).to_list(None)

        logs = []
        for doc in docs:
            doc["id"] = str(doc.pop("_id"))
            doc["date"] = datetime.date.fromisoformat(doc["date"])
            logs.append(MealLog(**doc))
        return logs

    async def update_count(self, log_id: str, count: Decimal) -> bool:
        oid = to_object_id(log_id)
        if oid is None:
            return False
        with persistence_errors("update meal log"):
            result = await self.collection.update_one({"_id": oid}, {"$set": {"count": count}})
        return result.matched_count > 0

    async def delete(self, log_id: str) -> bool:
        oid = to_object_id(log_id)
        if oid is None:
            return False
        with persistence_errors("delete meal log"):
            result = await self.collection.delete_one({"_id": oid})
        return result.deleted_count > 0

    async def delete_by_member(self, member_id: str) -> int:
        with persistence_errors("delete member meal logs"):
            result = await self.collection.delete_many({"member_id": member_id})
        return result.deleted_count

    async def delete_all(self) -> int:
        with persistence_errors("clear meal logs"):
            result = await self.collection.delete_many({})
        return result.deleted_count
