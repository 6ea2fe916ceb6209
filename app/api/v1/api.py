from fastapi import APIRouter
from app.api.v1.endpoints import members, ledger, cycles

api_router = APIRouter()

api_router.include_router(members.router, prefix="/members", tags=["members"])
api_router.include_router(ledger.router, tags=["ledger"])
api_router.include_router(cycles.router, tags=["cycles"])
