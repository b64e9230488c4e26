from typing import Optional
from pydantic import BaseModel, Field, validator
from datetime import datetime
from app.models import OfferStatus
from app.schemas.business import BusinessSummary
from app.schemas.common import naive_utc

EDITABLE_STATUSES = (OfferStatus.DRAFT, OfferStatus.SCHEDULED)


class OfferBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    image_url: Optional[str] = None
    start_date_time: datetime
    end_date_time: datetime
    qr_validity_days: int = Field(1, ge=1, le=30)


class OfferCreate(OfferBase):
    status: OfferStatus = OfferStatus.DRAFT

    @validator("start_date_time", "end_date_time")
    def normalize_datetime(cls, v):
        return naive_utc(v)

    @validator("end_date_time")
    def end_after_start(cls, v, values):
        start = values.get("start_date_time")
        if start and v <= start:
            raise ValueError("end_date_time must be after start_date_time")
        return v

    @validator("status")
    def editable_status(cls, v):
        if v not in EDITABLE_STATUSES:
            raise ValueError("status must be draft or scheduled")
        return v


class OfferUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    image_url: Optional[str] = None
    start_date_time: Optional[datetime] = None
    end_date_time: Optional[datetime] = None
    qr_validity_days: Optional[int] = Field(None, ge=1, le=30)
    status: Optional[OfferStatus] = None

    @validator("start_date_time", "end_date_time")
    def normalize_datetime(cls, v):
        return naive_utc(v)

    @validator("status")
    def editable_status(cls, v):
        if v is not None and v not in EDITABLE_STATUSES:
            raise ValueError("status must be draft or scheduled")
        return v


class OfferInDBBase(OfferBase):
    id: int
    business_id: int
    creator_id: int
    status: OfferStatus
    view_count: int = 0
    impression_count: int = 0
    reposted_from_offer_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class Offer(OfferInDBBase):
    business: Optional[BusinessSummary] = None


class OfferNearby(Offer):
    distance_in_meters: float
