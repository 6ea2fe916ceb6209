import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict

from app.models.expense import ExpenseType
from app.schemas.common import Money, Quantity


class ExpenseCreate(BaseModel):
    """Request body to record an expense."""
    amount: Decimal
    description: str
    type: ExpenseType
    paid_by: str


class ExpenseResponse(BaseModel):
    id: str
    amount: Money
    description: str
    type: ExpenseType
    paid_by: str
    date: datetime.datetime

    model_config = ConfigDict(from_attributes=True)


class MealLogRequest(BaseModel):
    """Set a member's meal count for a day; 0 removes the entry."""
    member_id: str
    count: Decimal
    date: datetime.date


class MealLogResponse(BaseModel):
    id: str
    member_id: str
    date: datetime.date
    count: Quantity

    model_config = ConfigDict(from_attributes=True)


class MealLogResult(BaseModel):
    """Outcome of a meal log write; log is None when the entry was removed."""
    log: Optional[MealLogResponse] = None
