from decimal import Decimal
from typing import Annotated

from pydantic import PlainSerializer

from app.services.settlement_engine import round_money

# Money is exact internally and rendered to the client in cents
Money = Annotated[
    Decimal,
    PlainSerializer(lambda v: float(round_money(v)), return_type=float, when_used="json")
]

# Meal counts (half meals allowed) rendered as plain numbers
Quantity = Annotated[
    Decimal,
    PlainSerializer(lambda v: float(v), return_type=float, when_used="json")
]
