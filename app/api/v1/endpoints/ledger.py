import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from app.api.deps import get_mess_service, to_http_exception
from app.models.expense import ExpenseType
from app.schemas.ledger import (
    ExpenseCreate,
    ExpenseResponse,
    MealLogRequest,
    MealLogResponse,
    MealLogResult,
)
from app.schemas.settlement import StatsResponse
from app.services.mess_service import MessService
from app.utils.mess_validation import MessError

router = APIRouter()


@router.get("/expenses", response_model=List[ExpenseResponse])
async def list_expenses(
    type: Optional[ExpenseType] = Query(None, description="Only meal or only fixed expenses"),
    service: MessService = Depends(get_mess_service)
):
    """Expenses of the open cycle, newest first."""
    return service.list_expenses(type)


@router.post("/expenses", response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED)
async def add_expense(
    expense_in: ExpenseCreate,
    service: MessService = Depends(get_mess_service)
):
    try:
        return await service.add_expense(
            expense_in.amount,
            expense_in.description,
            expense_in.type,
            expense_in.paid_by
        )
    except MessError as exc:
        raise to_http_exception(exc)


@router.get("/meals", response_model=List[MealLogResponse])
async def list_meal_logs(
    date: Optional[datetime.date] = Query(None, description="Only logs for this day"),
    member_id: Optional[str] = Query(None),
    service: MessService = Depends(get_mess_service)
):
    """Meal logs of the open cycle, newest day first."""
    return service.list_meal_logs(date, member_id)


@router.put("/meals", response_model=MealLogResult)
async def log_meal(
    log_in: MealLogRequest,
    service: MessService = Depends(get_mess_service)
):
    """Set the meal count for (member, day); a count of 0 removes the entry."""
    try:
        log = await service.log_meal(log_in.member_id, log_in.count, log_in.date)
    except MessError as exc:
        raise to_http_exception(exc)
    return MealLogResult(log=log.model_dump() if log else None)


@router.get("/stats", response_model=StatsResponse)
async def get_stats(service: MessService = Depends(get_mess_service)):
    """Cycle totals, meal rate and fixed share, computed from the live ledger."""
    return service.get_stats()
