"""
Archive model - frozen snapshot of a closed cycle.

Design principles:
- Built once by the cycle manager, never updated
- Members are deep copies; no reference back to live members
- Deleted only as a whole
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.base import new_id, _utcnow
from app.models.member import Role
from app.models.settlement import Stats


class ArchivedMember(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    role: Role
    deposit: Decimal
    is_active: bool
    avatar: Optional[str] = None
    meals_eaten: Decimal
    meal_cost: Decimal
    fixed_cost: Decimal
    total_cost: Decimal
    balance: Decimal


class ArchiveCycle(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    end_date: datetime = Field(default_factory=_utcnow)
    stats: Stats
    members: List[ArchivedMember] = []
