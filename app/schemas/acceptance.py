from typing import Optional
from pydantic import BaseModel, Field
from datetime import datetime
from app.models import AcceptanceStatus
from app.schemas.offer import Offer


class RedeemRequest(BaseModel):
    qr_code: str = Field(..., min_length=1, max_length=64)


class AcceptanceInDBBase(BaseModel):
    id: int
    user_id: int
    offer_id: int
    qr_code: str
    status: AcceptanceStatus
    accepted_at: Optional[datetime] = None
    expires_at: datetime
    redeemed_at: Optional[datetime] = None
    redeemed_by: Optional[int] = None

    class Config:
        from_attributes = True


class Acceptance(AcceptanceInDBBase):
    pass


class AcceptanceWithOffer(Acceptance):
    offer: Offer
