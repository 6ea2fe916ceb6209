import datetime
from decimal import Decimal

from app.models.base import LedgerModel


class MealLog(LedgerModel):
    """
    Meals eaten by one member on one day.

    Invariants:
    - at most one log per (member_id, date)
    - count > 0; writing 0 deletes the log instead of storing it
    """
    member_id: str
    date: datetime.date
    count: Decimal
