from decimal import Decimal
from typing import Tuple

from pydantic import BaseModel, ConfigDict

from app.models.expense import Expense
from app.models.meal_log import MealLog
from app.models.member import Member

ZERO = Decimal("0")


class LedgerSnapshot(BaseModel):
    """Point-in-time copy of the live ledger, safe to read while it changes."""
    model_config = ConfigDict(frozen=True)

    members: Tuple[Member, ...] = ()
    expenses: Tuple[Expense, ...] = ()
    meal_logs: Tuple[MealLog, ...] = ()


class Stats(BaseModel):
    """Cycle-wide aggregates, always derived from the live ledger."""
    model_config = ConfigDict(frozen=True)

    total_deposits: Decimal = ZERO
    total_meal_expenses: Decimal = ZERO
    total_fixed_expenses: Decimal = ZERO
    total_meals_consumed: Decimal = ZERO
    current_meal_rate: Decimal = ZERO
    fixed_cost_per_member: Decimal = ZERO
    remaining_cash: Decimal = ZERO


class MemberSettlement(BaseModel):
    """Per-member figures; positive balance means the mess owes the member."""
    model_config = ConfigDict(frozen=True)

    member_id: str
    meals_eaten: Decimal = ZERO
    meal_cost: Decimal = ZERO
    fixed_cost: Decimal = ZERO
    total_cost: Decimal = ZERO
    balance: Decimal = ZERO
