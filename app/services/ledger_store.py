"""
LedgerStore - the open cycle's members, expenses and meal logs.

Rules:
1. Every mutation runs under one asyncio.Lock, so readers never see half of it
2. Write-through: the repository call must succeed before memory changes
3. At most one meal log per (member, day); count 0 deletes it
4. Removing a member deletes their meal logs; expenses they paid keep the id
"""

import asyncio
import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from app.core.logging import get_logger
from app.models.expense import Expense, ExpenseType
from app.models.meal_log import MealLog
from app.models.member import Member, Role, UPDATABLE_MEMBER_FIELDS
from app.models.settlement import LedgerSnapshot
from app.repositories.base import (
    ExpenseRepositoryInterface,
    MealLogRepositoryInterface,
    MemberRepositoryInterface,
)
from app.utils.mess_validation import (
    NotFoundError,
    ValidationError,
    make_avatar,
    to_decimal,
    validate_description,
    validate_meal_count,
    validate_name,
    validate_positive_amount,
)

logger = get_logger(__name__)


class LedgerStore:
    """In-memory view of the open cycle, written through to the repositories."""

    def __init__(
        self,
        members: MemberRepositoryInterface,
        expenses: ExpenseRepositoryInterface,
        meal_logs: MealLogRepositoryInterface,
    ):
        self.member_repo = members
        self.expense_repo = expenses
        self.meal_log_repo = meal_logs

        self._members: Dict[str, Member] = {}
        self._expenses: List[Expense] = []
        self._meal_logs: Dict[str, MealLog] = {}
        self._lock = asyncio.Lock()

    async def load(self) -> None:
        """Replace the in-memory state with what the repositories hold."""
        async with self._lock:
            members = await self.member_repo.list_all()
            expenses = await self.expense_repo.list_all()
            logs = await self.meal_log_repo.list_all()

            self._members = {m.id: m for m in members}
            self._expenses = list(expenses)
            self._meal_logs = {log.id: log for log in logs}

        logger.info(
            "ledger_loaded",
            members=len(self._members),
            expenses=len(self._expenses),
            meal_logs=len(self._meal_logs),
        )

    def exclusive(self) -> asyncio.Lock:
        """
        The store's mutation lock.

        Hold it to read a snapshot and run the *_unlocked cleanup methods as
        one step; the public mutators cannot run meanwhile.
        """
        return self._lock

    # ===== READS =====

    def snapshot(self) -> LedgerSnapshot:
        return LedgerSnapshot(
            members=tuple(self._members.values()),
            expenses=tuple(self._expenses),
            meal_logs=tuple(self._meal_logs.values()),
        )

    def get_member(self, member_id: str) -> Member:
        member = self._members.get(member_id)
        if member is None:
            raise NotFoundError("Member", member_id)
        return member

    def list_members(self) -> List[Member]:
        return sorted(self._members.values(), key=lambda m: m.created_at)

    def list_expenses(self, expense_type: Optional[ExpenseType] = None) -> List[Expense]:
        expenses = [
            e for e in self._expenses
            if expense_type is None or e.type == expense_type
        ]
        return sorted(expenses, key=lambda e: e.date, reverse=True)

    def list_meal_logs(
        self,
        day: Optional[datetime.date] = None,
        member_id: Optional[str] = None
    ) -> List[MealLog]:
        logs = [
            log for log in self._meal_logs.values()
            if (day is None or log.date == day)
            and (member_id is None or log.member_id == member_id)
        ]
        return sorted(logs, key=lambda log: (log.date, log.created_at), reverse=True)

    def find_meal_log(self, member_id: str, day: datetime.date) -> Optional[MealLog]:
        for log in self._meal_logs.values():
            if log.member_id == member_id and log.date == day:
                return log
        return None

    # ===== MUTATIONS =====

    async def add_member(self, name: str, role: Role = Role.VIEWER) -> Member:
        name = validate_name(name)
        try:
            role = Role(role)
        except ValueError:
            raise ValidationError(f"Unknown role: {role!r}")

        member = Member(
            name=name,
            role=role,
            deposit=Decimal("0"),
            is_active=True,
            avatar=make_avatar(name),
        )

        async with self._lock:
            await self.member_repo.insert(member)
            self._members[member.id] = member

        logger.info("member_added", member_id=member.id, role=member.role.value)
        return member

    async def update_member(self, member_id: str, fields: Dict[str, Any]) -> Member:
        """Merge the given fields into a member."""
        unknown = set(fields) - set(UPDATABLE_MEMBER_FIELDS)
        if unknown:
            raise ValidationError(f"Cannot update member fields: {', '.join(sorted(unknown))}")

        updates = dict(fields)
        if "name" in updates:
            updates["name"] = validate_name(updates["name"])
        if "role" in updates:
            try:
                updates["role"] = Role(updates["role"])
            except ValueError:
                raise ValidationError(f"Unknown role: {updates['role']!r}")
        if "deposit" in updates:
            updates["deposit"] = to_decimal(updates["deposit"], "deposit")
        if "is_active" in updates and not isinstance(updates["is_active"], bool):
            raise ValidationError("is_active must be a boolean")

        async with self._lock:
            member = self.get_member(member_id)
            updated = member.model_copy(update=updates)
            found = await self.member_repo.update(member_id, updates)
            if not found:
                raise NotFoundError("Member", member_id)
            self._members[member_id] = updated

        logger.info("member_updated", member_id=member_id, fields=sorted(updates))
        return updated

    async def remove_member(self, member_id: str) -> None:
        """Delete a member and all of their meal logs."""
        async with self._lock:
            self.get_member(member_id)

            # Logs go first so a failed member delete can simply be retried
            await self.meal_log_repo.delete_by_member(member_id)
            self._meal_logs = {
                log_id: log for log_id, log in self._meal_logs.items()
                if log.member_id != member_id
            }

            await self.member_repo.delete(member_id)
            del self._members[member_id]

        logger.info("member_removed", member_id=member_id)

    async def add_expense(
        self,
        amount: Any,
        description: str,
        expense_type: ExpenseType,
        paid_by: str
    ) -> Expense:
        amount = validate_positive_amount(amount)
        description = validate_description(description)
        try:
            expense_type = ExpenseType(expense_type)
        except ValueError:
            raise ValidationError(f"Unknown expense type: {expense_type!r}")

        async with self._lock:
            self.get_member(paid_by)
            expense = Expense(
                amount=amount,
                description=description,
                type=expense_type,
                paid_by=paid_by,
            )
            await self.expense_repo.insert(expense)
            self._expenses.append(expense)

        logger.info(
            "expense_added",
            expense_id=expense.id,
            type=expense.type.value,
            amount=str(expense.amount),
            paid_by=paid_by,
        )
        return expense

    async def add_deposit(self, member_id: str, amount: Any) -> Member:
        amount = validate_positive_amount(amount)

        async with self._lock:
            member = self.get_member(member_id)
            new_deposit = member.deposit + amount
            found = await self.member_repo.update(member_id, {"deposit": new_deposit})
            if not found:
                raise NotFoundError("Member", member_id)
            updated = member.model_copy(update={"deposit": new_deposit})
            self._members[member_id] = updated

        logger.info("deposit_added", member_id=member_id, amount=str(amount))
        return updated

    async def log_meal(self, member_id: str, count: Any, day: datetime.date) -> Optional[MealLog]:
        """
        Upsert or delete the meal log for (member, day).

        Returns the stored log, or None when count is 0 and nothing remains.
        """
        count = validate_meal_count(count)

        async with self._lock:
            self.get_member(member_id)
            existing = self.find_meal_log(member_id, day)

            if existing is not None and count == 0:
                await self.meal_log_repo.delete(existing.id)
                del self._meal_logs[existing.id]
                logger.info("meal_log_deleted", member_id=member_id, date=day.isoformat())
                return None

            if existing is not None:
                await self.meal_log_repo.update_count(existing.id, count)
                updated = existing.model_copy(update={"count": count})
                self._meal_logs[existing.id] = updated
                logger.info("meal_log_updated", member_id=member_id, date=day.isoformat(), count=str(count))
                return updated

            if count == 0:
                return None

            log = MealLog(member_id=member_id, date=day, count=count)
            await self.meal_log_repo.insert(log)
            self._meal_logs[log.id] = log

        logger.info("meal_log_created", member_id=member_id, date=day.isoformat(), count=str(count))
        return log

    # ===== CYCLE CLEANUP (caller holds exclusive()) =====

    async def clear_expenses_and_logs_unlocked(self) -> None:
        """Drop every expense and meal log. A no-op on an empty ledger."""
        await self.expense_repo.delete_all()
        self._expenses = []

        await self.meal_log_repo.delete_all()
        self._meal_logs = {}

    async def reset_deposits_unlocked(self) -> None:
        """Zero every deposit; identity, role and active flag are kept."""
        await self.member_repo.reset_deposits()
        self._members = {
            member_id: member.model_copy(update={"deposit": Decimal("0")})
            for member_id, member in self._members.items()
        }

    async def clear_expenses_and_logs(self) -> None:
        async with self._lock:
            await self.clear_expenses_and_logs_unlocked()

    async def reset_deposits(self) -> None:
        async with self._lock:
            await self.reset_deposits_unlocked()
