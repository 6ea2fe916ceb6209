"""
Persistence contracts for the mess ledger.

The ledger core only needs four record collections keyed by id with
create/read/update/delete and timestamp ordering. Mongo implementations live
next to this module; tests use in-memory ones.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from decimal import Decimal
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo.errors import PyMongoError

from app.models.archive import ArchiveCycle
from app.models.expense import Expense
from app.models.meal_log import MealLog
from app.models.member import Member
from app.utils.mess_validation import PersistenceError


@contextmanager
def persistence_errors(operation: str):
    """Re-raise driver failures as PersistenceError."""
    try:
        yield
    except PyMongoError as exc:
        raise PersistenceError(f"{operation} failed: {exc}") from exc


def to_object_id(record_id: str) -> Optional[ObjectId]:
    """ObjectId for a record id, or None when the id cannot exist in Mongo."""
    if isinstance(record_id, ObjectId):
        return record_id
    if isinstance(record_id, str) and ObjectId.is_valid(record_id):
        return ObjectId(record_id)
    return None


class MemberRepositoryInterface(ABC):

    @abstractmethod
    async def insert(self, member: Member) -> Member:
        pass

    @abstractmethod
    async def list_all(self) -> List[Member]:
        """All members, oldest first."""
        pass

    @abstractmethod
    async def update(self, member_id: str, fields: Dict[str, Any]) -> bool:
        """Merge fields into a member. Returns False when the id is unknown."""
        pass

    @abstractmethod
    async def delete(self, member_id: str) -> bool:
        pass

    @abstractmethod
    async def reset_deposits(self) -> int:
        """Set every deposit to zero. Returns the number of members touched."""
        pass


class ExpenseRepositoryInterface(ABC):

    @abstractmethod
    async def insert(self, expense: Expense) -> Expense:
        pass

    @abstractmethod
    async def list_all(self) -> List[Expense]:
        """All expenses, newest first."""
        pass

    @abstractmethod
    async def delete_all(self) -> int:
        pass


class MealLogRepositoryInterface(ABC):

    @abstractmethod
    async def insert(self, log: MealLog) -> MealLog:
        pass

    @abstractmethod
    async def list_all(self) -> List[MealLog]:
        """All meal logs, newest day first."""
        pass

    @abstractmethod
    async def update_count(self, log_id: str, count: Decimal) -> bool:
        pass

    @abstractmethod
    async def delete(self, log_id: str) -> bool:
        pass

    @abstractmethod
    async def delete_by_member(self, member_id: str) -> int:
        pass

    @abstractmethod
    async def delete_all(self) -> int:
        pass


class ArchiveRepositoryInterface(ABC):

    @abstractmethod
    async def insert(self, archive: ArchiveCycle) -> ArchiveCycle:
        pass

    @abstractmethod
    async def list_all(self) -> List[ArchiveCycle]:
        """All archives, most recently closed first."""
        pass

    @abstractmethod
    async def get(self, archive_id: str) -> Optional[ArchiveCycle]:
        pass

    @abstractmethod
    async def delete(self, archive_id: str) -> bool:
        pass
