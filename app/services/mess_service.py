import datetime
from typing import Any, Dict, List, Optional

from app.models.archive import ArchiveCycle
from app.models.expense import Expense, ExpenseType
from app.models.meal_log import MealLog
from app.models.member import MemberView, Role
from app.models.settlement import MemberSettlement, Stats
from app.repositories.base import (
    ArchiveRepositoryInterface,
    ExpenseRepositoryInterface,
    MealLogRepositoryInterface,
    MemberRepositoryInterface,
)
from app.services.archive_store import ArchiveStore
from app.services.cycle_service import CycleService
from app.services.ledger_store import LedgerStore
from app.services import settlement_engine


class MessService:
    """Operations the presentation layer calls; one instance per process."""

    def __init__(
        self,
        members: MemberRepositoryInterface,
        expenses: ExpenseRepositoryInterface,
        meal_logs: MealLogRepositoryInterface,
        archives: ArchiveRepositoryInterface,
    ):
        self.ledger = LedgerStore(members, expenses, meal_logs)
        self.archives = ArchiveStore(archives)
        self.cycle = CycleService(self.ledger, self.archives)

    async def load(self) -> None:
        await self.ledger.load()

    # Members

    async def add_member(self, name: str, role: Role = Role.VIEWER) -> MemberView:
        member = await self.ledger.add_member(name, role)
        return self.get_member(member.id)

    async def update_member(self, member_id: str, fields: Dict[str, Any]) -> MemberView:
        await self.ledger.update_member(member_id, fields)
        return self.get_member(member_id)

    async def remove_member(self, member_id: str) -> None:
        await self.ledger.remove_member(member_id)

    async def add_deposit(self, member_id: str, amount: Any) -> MemberView:
        await self.ledger.add_deposit(member_id, amount)
        return self.get_member(member_id)

    def get_member(self, member_id: str) -> MemberView:
        self.ledger.get_member(member_id)
        views = settlement_engine.member_views(self.ledger.snapshot())
        return next(v for v in views if v.id == member_id)

    def list_members(self) -> List[MemberView]:
        views = {v.id: v for v in settlement_engine.member_views(self.ledger.snapshot())}
        return [views[m.id] for m in self.ledger.list_members()]

    # Expenses and meals

    async def add_expense(
        self,
        amount: Any,
        description: str,
        expense_type: ExpenseType,
        paid_by: str
    ) -> Expense:
        return await self.ledger.add_expense(amount, description, expense_type, paid_by)

    def list_expenses(self, expense_type: Optional[ExpenseType] = None) -> List[Expense]:
        return self.ledger.list_expenses(expense_type)

    async def log_meal(self, member_id: str, count: Any, day: datetime.date) -> Optional[MealLog]:
        return await self.ledger.log_meal(member_id, count, day)

    def list_meal_logs(
        self,
        day: Optional[datetime.date] = None,
        member_id: Optional[str] = None
    ) -> List[MealLog]:
        return self.ledger.list_meal_logs(day, member_id)

    # Settlement

    def get_stats(self) -> Stats:
        return settlement_engine.compute_stats(self.ledger.snapshot())

    def get_member_stats(self, member_id: str) -> MemberSettlement:
        return settlement_engine.compute_member_settlement(self.ledger.snapshot(), member_id)

    # Cycle and archives

    async def close_cycle(self) -> ArchiveCycle:
        return await self.cycle.close_cycle()

    async def retry_cleanup(self) -> None:
        await self.cycle.retry_cleanup()

    async def list_archives(self) -> List[ArchiveCycle]:
        return await self.archives.list()

    async def get_archive(self, archive_id: str) -> ArchiveCycle:
        return await self.archives.get(archive_id)

    async def delete_archive(self, archive_id: str) -> None:
        await self.archives.delete_archive(archive_id)
