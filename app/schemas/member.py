"""Member management schemas."""
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict

from app.models.member import Role
from app.schemas.common import Money, Quantity


class MemberCreate(BaseModel):
    """Add a member to the mess."""
    name: str
    role: Role = Role.VIEWER


class MemberUpdate(BaseModel):
    """Partial update; only the fields sent are merged."""
    name: Optional[str] = None
    role: Optional[Role] = None
    deposit: Optional[Decimal] = None
    is_active: Optional[bool] = None
    avatar: Optional[str] = None


class DepositCreate(BaseModel):
    amount: Decimal


class MemberResponse(BaseModel):
    """Member with the meals derived from the current logs."""
    id: str
    name: str
    role: Role
    deposit: Money
    is_active: bool
    avatar: Optional[str] = None
    meals_eaten: Quantity
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MemberStatsResponse(BaseModel):
    member_id: str
    meals_eaten: Quantity
    meal_cost: Money
    fixed_cost: Money
    total_cost: Money
    balance: Money

    model_config = ConfigDict(from_attributes=True)
