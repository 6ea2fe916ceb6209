from fastapi import HTTPException, Request, status

from app.services.mess_service import MessService
from app.utils.mess_validation import (
    InconsistentStateError,
    MessError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)


def get_mess_service(request: Request) -> MessService:
    """The process-wide service built at startup."""
    return request.app.state.mess_service


def to_http_exception(exc: MessError) -> HTTPException:
    """Map ledger errors onto HTTP responses."""
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, InconsistentStateError):
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": str(exc),
                "code": "inconsistent_state",
                "archive_id": exc.archive_id
            }
        )
    if isinstance(exc, PersistenceError):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
