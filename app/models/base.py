from datetime import datetime, timezone

from bson import ObjectId
from pydantic import BaseModel, Field, ConfigDict


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Opaque record id; ObjectId hex so Mongo can use it as `_id` directly."""
    return str(ObjectId())


class LedgerModel(BaseModel):
    id: str = Field(default_factory=new_id)
    created_at: datetime = Field(default_factory=_utcnow)

    model_config = ConfigDict(
        populate_by_name=True,
        from_attributes=True
    )
