from typing import List

from fastapi import APIRouter, Depends, status

from app.api.deps import get_mess_service, to_http_exception
from app.schemas.member import (
    DepositCreate,
    MemberCreate,
    MemberResponse,
    MemberStatsResponse,
    MemberUpdate,
)
from app.services.mess_service import MessService
from app.utils.mess_validation import MessError

router = APIRouter()


@router.get("", response_model=List[MemberResponse])
async def list_members(service: MessService = Depends(get_mess_service)):
    """List members, oldest first, with meals eaten this cycle."""
    return service.list_members()


@router.post("", response_model=MemberResponse, status_code=status.HTTP_201_CREATED)
async def add_member(
    member_in: MemberCreate,
    service: MessService = Depends(get_mess_service)
):
    """Add a member with a zero deposit."""
    try:
        return await service.add_member(member_in.name, member_in.role)
    except MessError as exc:
        raise to_http_exception(exc)


@router.get("/{member_id}", response_model=MemberResponse)
async def get_member(member_id: str, service: MessService = Depends(get_mess_service)):
    try:
        return service.get_member(member_id)
    except MessError as exc:
        raise to_http_exception(exc)


@router.patch("/{member_id}", response_model=MemberResponse)
async def update_member(
    member_id: str,
    member_in: MemberUpdate,
    service: MessService = Depends(get_mess_service)
):
    """Merge the provided fields into a member."""
    try:
        return await service.update_member(member_id, member_in.model_dump(exclude_unset=True))
    except MessError as exc:
        raise to_http_exception(exc)


@router.delete("/{member_id}")
async def remove_member(member_id: str, service: MessService = Depends(get_mess_service)):
    """Remove a member and their meal logs."""
    try:
        await service.remove_member(member_id)
    except MessError as exc:
        raise to_http_exception(exc)
    return {"success": True}


@router.post("/{member_id}/deposits", response_model=MemberResponse)
async def add_deposit(
    member_id: str,
    deposit_in: DepositCreate,
    service: MessService = Depends(get_mess_service)
):
    """Add money to a member's deposit."""
    try:
        return await service.add_deposit(member_id, deposit_in.amount)
    except MessError as exc:
        raise to_http_exception(exc)


@router.get("/{member_id}/stats", response_model=MemberStatsResponse)
async def get_member_stats(member_id: str, service: MessService = Depends(get_mess_service)):
    """Meal cost, fixed cost and balance for one member."""
    try:
        return service.get_member_stats(member_id)
    except MessError as exc:
        raise to_http_exception(exc)
