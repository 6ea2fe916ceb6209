from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, MagicMock

from app.api.deps import get_mess_service
from app.main import app
from app.models.archive import ArchiveCycle
from app.models.expense import Expense
from app.models.meal_log import MealLog
from app.models.member import Member
from app.repositories.base import (
    ArchiveRepositoryInterface,
    ExpenseRepositoryInterface,
    MealLogRepositoryInterface,
    MemberRepositoryInterface,
)
from app.services.mess_service import MessService
from app.utils.mess_validation import PersistenceError


class FailureSwitch:
    """Lets a test make named repository calls raise PersistenceError."""

    def __init__(self):
        self.fail_on = set()

    def check(self, operation: str):
        if operation in self.fail_on:
            raise PersistenceError(f"{operation} failed: simulated outage")


class InMemoryMemberRepository(FailureSwitch, MemberRepositoryInterface):

    def __init__(self):
        super().__init__()
        self.docs: Dict[str, Member] = {}

    async def insert(self, member: Member) -> Member:
        self.check("insert")
        self.docs[member.id] = member
        return member

    async def list_all(self) -> List[Member]:
        self.check("list_all")
        return sorted(self.docs.values(), key=lambda m: m.created_at)

    async def update(self, member_id: str, fields: Dict[str, Any]) -> bool:
        self.check("update")
        if member_id not in self.docs:
            return False
        self.docs[member_id] = self.docs[member_id].model_copy(update=fields)
        return True

    async def delete(self, member_id: str) -> bool:
        self.check("delete")
        return self.docs.pop(member_id, None) is not None

    async def reset_deposits(self) -> int:
        self.check("reset_deposits")
        for member_id, member in self.docs.items():
            self.docs[member_id] = member.model_copy(update={"deposit": Decimal("0")})
        return len(self.docs)


class InMemoryExpenseRepository(FailureSwitch, ExpenseRepositoryInterface):

    def __init__(self):
        super().__init__()
        self.docs: Dict[str, Expense] = {}

    async def insert(self, expense: Expense) -> Expense:
        self.check("insert")
        self.docs[expense.id] = expense
        return expense

    async def list_all(self) -> List[Expense]:
        self.check("list_all")
        return sorted(self.docs.values(), key=lambda e: e.date, reverse=True)

    async def delete_all(self) -> int:
        self.check("delete_all")
        count = len(self.docs)
        self.docs.clear()
        return count


class InMemoryMealLogRepository(FailureSwitch, MealLogRepositoryInterface):

    def __init__(self):
        super().__init__()
        self.docs: Dict[str, MealLog] = {}

    async def insert(self, log: MealLog) -> MealLog:
        self.check("insert")
        for existing in self.docs.values():
            if existing.member_id == log.member_id and existing.date == log.date:
                raise PersistenceError("duplicate (member_id, date)")
        self.docs[log.id] = log
        return log

    async def list_all(self) -> List[MealLog]:
        self.check("list_all")
        return sorted(self.docs.values(), key=lambda log: log.date, reverse=True)

    async def update_count(self, log_id: str, count: Decimal) -> bool:
        self.check("update_count")
        if log_id not in self.docs:
            return False
        self.docs[log_id] = self.docs[log_id].model_copy(update={"count": count})
        return True

    async def delete(self, log_id: str) -> bool:
        self.check("delete")
        return self.docs.pop(log_id, None) is not None

    async def delete_by_member(self, member_id: str) -> int:
        self.check("delete_by_member")
        doomed = [i for i, log in self.docs.items() if log.member_id == member_id]
        for log_id in doomed:
            del self.docs[log_id]
        return len(doomed)

    async def delete_all(self) -> int:
        self.check("delete_all")
        count = len(self.docs)
        self.docs.clear()
        return count


class InMemoryArchiveRepository(FailureSwitch, ArchiveRepositoryInterface):

    def __init__(self):
        super().__init__()
        self.docs: Dict[str, ArchiveCycle] = {}

    async def insert(self, archive: ArchiveCycle) -> ArchiveCycle:
        self.check("insert")
        self.docs[archive.id] = archive
        return archive

    async def list_all(self) -> List[ArchiveCycle]:
        self.check("list_all")
        return list(self.docs.values())

    async def get(self, archive_id: str) -> Optional[ArchiveCycle]:
        self.check("get")
        return self.docs.get(archive_id)

    async def delete(self, archive_id: str) -> bool:
        self.check("delete")
        return self.docs.pop(archive_id, None) is not None


class Repos:
    def __init__(self):
        self.members = InMemoryMemberRepository()
        self.expenses = InMemoryExpenseRepository()
        self.meal_logs = InMemoryMealLogRepository()
        self.archives = InMemoryArchiveRepository()


@pytest.fixture
def repos() -> Repos:
    return Repos()


@pytest_asyncio.fixture
async def service(repos) -> MessService:
    """Service over empty in-memory repositories."""
    mess = MessService(
        members=repos.members,
        expenses=repos.expenses,
        meal_logs=repos.meal_logs,
        archives=repos.archives,
    )
    await mess.load()
    return mess


@pytest_asyncio.fixture
async def household(service):
    """Two active members with the standard cycle: 1200 meal, 650 fixed, 30 meals."""
    alice = await service.add_member("Alice", "admin")
    bob = await service.add_member("Bob", "viewer")
    await service.add_deposit(alice.id, 1000)
    await service.add_deposit(bob.id, 900)

    await service.add_expense(800, "Rice and fish", "meal", alice.id)
    await service.add_expense(400, "Vegetables", "meal", bob.id)
    await service.add_expense(650, "Gas and internet", "fixed", alice.id)

    await service.log_meal(alice.id, 10, date(2024, 3, 1))
    await service.log_meal(alice.id, 8, date(2024, 3, 2))
    await service.log_meal(bob.id, 12, date(2024, 3, 1))

    return {"service": service, "alice": alice, "bob": bob}


@pytest.fixture
def test_client(repos):
    """FastAPI client wired to an in-memory service; the lifespan is not run."""
    mess = MessService(
        members=repos.members,
        expenses=repos.expenses,
        meal_logs=repos.meal_logs,
        archives=repos.archives,
    )
    app.dependency_overrides[get_mess_service] = lambda: mess
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture
def mock_db():
    """Motor database double whose collections record calls."""
    db = MagicMock()
    collections = {}

    def get_collection(name):
        if name not in collections:
            collection = MagicMock()
            collection.insert_one = AsyncMock()
            collection.update_one = AsyncMock()
            collection.update_many = AsyncMock()
            collection.delete_one = AsyncMock()
            collection.delete_many = AsyncMock()
            collection.find_one = AsyncMock()
            collection.count_documents = AsyncMock()
            collections[name] = collection
        return collections[name]

    db.__getitem__.side_effect = get_collection
    return db
