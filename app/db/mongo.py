from decimal import Decimal

from bson.codec_options import CodecOptions, TypeCodec, TypeRegistry
from bson.decimal128 import Decimal128
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)


class DecimalCodec(TypeCodec):
    """Store Python Decimals as BSON Decimal128 and read them back as Decimal."""
    python_type = Decimal
    bson_type = Decimal128

    def transform_python(self, value):
        return Decimal128(value)

    def transform_bson(self, value):
        return value.to_decimal()


CODEC_OPTIONS = CodecOptions(
    type_registry=TypeRegistry([DecimalCodec()]),
    tz_aware=True
)


class MongoDatabase:
    """MongoDB connection manager."""

    client: AsyncIOMotorClient = None
    db: AsyncIOMotorDatabase = None

mongodb = MongoDatabase()

async def connect_to_mongo():
    """Connect to MongoDB."""
    mongodb.client = AsyncIOMotorClient(settings.MONGODB_URL)
    mongodb.db = mongodb.client.get_database(
        settings.DATABASE_NAME,
        codec_options=CODEC_OPTIONS
    )

    # Create indexes
    await create_indexes(mongodb.db)
    logger.info("mongo_connected", database=settings.DATABASE_NAME)

async def disconnect_from_mongo():
    """Disconnect from MongoDB."""
    if mongodb.client is not None:
        mongodb.client.close()
    logger.info("mongo_disconnected")

async def create_indexes(db: AsyncIOMotorDatabase):
    """Create database indexes."""
    await db["members"].create_index("created_at")

    await db["expenses"].create_index("date")
    await db["expenses"].create_index("type")

    # One meal log per member per day
    await db["meal_logs"].create_index([("member_id", 1), ("date", 1)], unique=True)
    await db["meal_logs"].create_index("date")

    await db["archives"].create_index("end_date")

def get_db() -> AsyncIOMotorDatabase:
    """Get database instance."""
    return mongodb.db
