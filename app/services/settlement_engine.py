"""
Settlement engine - derives cycle stats and member balances.

Everything here is a pure function of a LedgerSnapshot. Nothing is cached:
totals are recomputed from the expenses and meal logs on every call, so there
are no stored aggregates that could drift.

    meal rate      = meal expenses / meals consumed       (0 when no meals)
    fixed share    = fixed expenses / active members      (0 when none active)
    remaining cash = deposits - (meal expenses + fixed expenses)

    meal cost      = member meals * meal rate
    fixed cost     = fixed share if the member is active else 0
    balance        = deposit - (meal cost + fixed cost)

All arithmetic is Decimal. Results keep full precision; rounding to cents
happens only when values are rendered.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Optional

from app.models.expense import ExpenseType
from app.models.member import Member, MemberView
from app.models.settlement import LedgerSnapshot, MemberSettlement, Stats, ZERO
from app.utils.mess_validation import NotFoundError

CENT = Decimal("0.01")


def round_money(value: Decimal) -> Decimal:
    """Round to cents, half up."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _sum(values: Iterable[Decimal]) -> Decimal:
    return sum(values, ZERO)


def meals_by_member(snapshot: LedgerSnapshot) -> Dict[str, Decimal]:
    """Total meal count per member id, from the meal logs."""
    totals: Dict[str, Decimal] = {}
    for log in snapshot.meal_logs:
        totals[log.member_id] = totals.get(log.member_id, ZERO) + log.count
    return totals


def compute_stats(snapshot: LedgerSnapshot) -> Stats:
    total_deposits = _sum(m.deposit for m in snapshot.members)
    total_meal_expenses = _sum(
        e.amount for e in snapshot.expenses if e.type == ExpenseType.MEAL
    )
    total_fixed_expenses = _sum(
        e.amount for e in snapshot.expenses if e.type == ExpenseType.FIXED
    )
    total_meals_consumed = _sum(log.count for log in snapshot.meal_logs)
    active_member_count = sum(1 for m in snapshot.members if m.is_active)

    current_meal_rate = (
        total_meal_expenses / total_meals_consumed
        if total_meals_consumed > 0 else ZERO
    )
    fixed_cost_per_member = (
        total_fixed_expenses / active_member_count
        if active_member_count > 0 else ZERO
    )

    return Stats(
        total_deposits=total_deposits,
        total_meal_expenses=total_meal_expenses,
        total_fixed_expenses=total_fixed_expenses,
        total_meals_consumed=total_meals_consumed,
        current_meal_rate=current_meal_rate,
        fixed_cost_per_member=fixed_cost_per_member,
        remaining_cash=total_deposits - (total_meal_expenses + total_fixed_expenses),
    )


def settle_member(member: Member, meals_eaten: Decimal, stats: Stats) -> MemberSettlement:
    """Apply the cycle rates to a single member."""
    meal_cost = meals_eaten * stats.current_meal_rate
    fixed_cost = stats.fixed_cost_per_member if member.is_active else ZERO
    total_cost = meal_cost + fixed_cost

    return MemberSettlement(
        member_id=member.id,
        meals_eaten=meals_eaten,
        meal_cost=meal_cost,
        fixed_cost=fixed_cost,
        total_cost=total_cost,
        balance=member.deposit - total_cost,
    )


def compute_member_settlement(
    snapshot: LedgerSnapshot,
    member_id: str,
    stats: Optional[Stats] = None
) -> MemberSettlement:
    """
    Settlement figures for one member.

    Raises NotFoundError if the member is not part of the snapshot.
    """
    member = next((m for m in snapshot.members if m.id == member_id), None)
    if member is None:
        raise NotFoundError("Member", member_id)

    if stats is None:
        stats = compute_stats(snapshot)
    meals = _sum(log.count for log in snapshot.meal_logs if log.member_id == member_id)
    return settle_member(member, meals, stats)


def compute_all_settlements(
    snapshot: LedgerSnapshot,
    stats: Optional[Stats] = None
) -> List[MemberSettlement]:
    """Settlement figures for every member, in snapshot order."""
    if stats is None:
        stats = compute_stats(snapshot)
    meals = meals_by_member(snapshot)
    return [
        settle_member(member, meals.get(member.id, ZERO), stats)
        for member in snapshot.members
    ]


def member_views(snapshot: LedgerSnapshot) -> List[MemberView]:
    """Members with their derived meals_eaten."""
    meals = meals_by_member(snapshot)
    return [
        MemberView(**member.model_dump(), meals_eaten=meals.get(member.id, ZERO))
        for member in snapshot.members
    ]
