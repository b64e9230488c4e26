from datetime import datetime, timezone
from typing import Optional
from pydantic import BaseModel


def naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Store every timestamp as naive UTC."""
    if isinstance(value, datetime) and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class Message(BaseModel):
    message: str


class StatusResponse(BaseModel):
    status: str


class FavoriteToggle(BaseModel):
    is_favorited: bool


class UploadResult(BaseModel):
    url: str
    filename: str
