from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import Field

from app.models.base import LedgerModel, _utcnow


class ExpenseType(str, Enum):
    MEAL = "meal"      # variable cost, shared through the meal rate
    FIXED = "fixed"    # flat cost, split evenly over active members


class Expense(LedgerModel):
    """Immutable once created; only a cycle close removes it."""
    amount: Decimal
    description: str
    type: ExpenseType
    paid_by: str  # member id, may dangle after the payer is removed
    date: datetime = Field(default_factory=_utcnow)
