from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1.api import api_router
from app.core.config import settings
from app.core.logging import configure_logging
from app.db.mongo import connect_to_mongo, disconnect_from_mongo, get_db
from app.repositories.archive_repo import ArchiveRepository
from app.repositories.expense_repo import ExpenseRepository
from app.repositories.meal_log_repo import MealLogRepository
from app.repositories.member_repo import MemberRepository
from app.services.mess_service import MessService

configure_logging()


async def start_mess_service(app: FastAPI):
    """Connect to Mongo and load the open cycle into memory."""
    await connect_to_mongo()
    db = get_db()
    service = MessService(
        members=MemberRepository(db),
        expenses=ExpenseRepository(db),
        meal_logs=MealLogRepository(db),
        archives=ArchiveRepository(db),
    )
    await service.load()
    app.state.mess_service = service


@asynccontextmanager
async def lifespan(app: FastAPI):
    await start_mess_service(app)
    yield
    await disconnect_from_mongo()


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.PROJECT_VERSION,
    description=settings.DESCRIPTION,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root():
    return {"message": "Welcome to Mess Ledger API"}

app.include_router(api_router, prefix=settings.API_V1_STR)
