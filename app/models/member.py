"""
Member model - people sharing the mess.

- deposit is cumulative for the open cycle and reset to 0 when it closes
- is_active decides whether the member shares fixed costs
- meals_eaten is never stored; see MemberView
"""

from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import Field

from app.models.base import LedgerModel


class Role(str, Enum):
    ADMIN = "admin"
    VIEWER = "viewer"


class Member(LedgerModel):
    name: str
    role: Role = Role.VIEWER
    deposit: Decimal = Decimal("0")
    is_active: bool = True
    avatar: Optional[str] = None


class MemberView(Member):
    """Member plus the meal total derived from the current meal logs."""
    meals_eaten: Decimal = Field(default=Decimal("0"))


# Fields update_member is allowed to merge
UPDATABLE_MEMBER_FIELDS = ("name", "role", "deposit", "is_active", "avatar")
