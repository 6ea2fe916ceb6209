from typing import List

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.models.expense import Expense
from app.repositories.base import ExpenseRepositoryInterface, persistence_errors


class ExpenseRepository(ExpenseRepositoryInterface):
    """Expense database operations. Expenses are never updated in place."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["expenses"]

    async def insert(self, expense: Expense) -> Expense:
        doc = {
            "_id": ObjectId(expense.id),
            "amount": expense.amount,
            "description": expense.description,
            "type": expense.type.value,
            "paid_by": expense.paid_by,
            "date": expense.date,
            "created_at": expense.created_at
        }
        with persistence_errors("insert expense"):
            await self.collection.insert_one(doc)
        return expense

    async def list_all(self) -> List[Expense]:
        with persistence_errors("list expenses"):
            docs = await self.collection.find({}).sort("date", -1).to_list(None)

        expenses = []
        for doc in docs:
            doc["id"] = str(doc.pop("_id"))
            expenses.append(Expense(**doc))
        return expenses

    async def delete_all(self) -> int:
        with persistence_errors("clear expenses"):
            result = await self.collection.delete_many({})
        return result.deleted_count
