from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from app.models.member import Role
from app.schemas.common import Money, Quantity


class StatsResponse(BaseModel):
    total_deposits: Money
    total_meal_expenses: Money
    total_fixed_expenses: Money
    total_meals_consumed: Quantity
    current_meal_rate: Money
    fixed_cost_per_member: Money
    remaining_cash: Money

    model_config = ConfigDict(from_attributes=True)


class ArchivedMemberResponse(BaseModel):
    id: str
    name: str
    role: Role
    deposit: Money
    is_active: bool
    avatar: Optional[str] = None
    meals_eaten: Quantity
    meal_cost: Money
    fixed_cost: Money
    total_cost: Money
    balance: Money

    model_config = ConfigDict(from_attributes=True)


class ArchiveResponse(BaseModel):
    id: str
    end_date: datetime
    stats: StatsResponse
    members: List[ArchivedMemberResponse]

    model_config = ConfigDict(from_attributes=True)
