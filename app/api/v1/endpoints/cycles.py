from typing import List

from fastapi import APIRouter, Depends

from app.api.deps import get_mess_service, to_http_exception
from app.schemas.settlement import ArchiveResponse
from app.services.mess_service import MessService
from app.utils.mess_validation import MessError

router = APIRouter()


@router.post("/cycle/close", response_model=ArchiveResponse)
async def close_cycle(service: MessService = Depends(get_mess_service)):
    """Archive the open cycle and reset expenses, meal logs and deposits."""
    try:
        return await service.close_cycle()
    except MessError as exc:
        raise to_http_exception(exc)


@router.post("/cycle/cleanup")
async def retry_cleanup(service: MessService = Depends(get_mess_service)):
    """Finish resetting the ledger after a failed close."""
    try:
        await service.retry_cleanup()
    except MessError as exc:
        raise to_http_exception(exc)
    return {"success": True}


@router.get("/archives", response_model=List[ArchiveResponse])
async def list_archives(service: MessService = Depends(get_mess_service)):
    """Closed cycles, most recent first."""
    try:
        return await service.list_archives()
    except MessError as exc:
        raise to_http_exception(exc)


@router.get("/archives/{archive_id}", response_model=ArchiveResponse)
async def get_archive(archive_id: str, service: MessService = Depends(get_mess_service)):
    try:
        return await service.get_archive(archive_id)
    except MessError as exc:
        raise to_http_exception(exc)


@router.delete("/archives/{archive_id}")
async def delete_archive(archive_id: str, service: MessService = Depends(get_mess_service)):
    """Permanently delete one archived cycle."""
    try:
        await service.delete_archive(archive_id)
    except MessError as exc:
        raise to_http_exception(exc)
    return {"success": True}
