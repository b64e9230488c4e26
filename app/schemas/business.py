from typing import Optional, List
from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from app.models import BusinessStatus


class BusinessBase(BaseModel):
    business_name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = None
    address: Optional[str] = None
    pin_code: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    google_maps_link: Optional[str] = None
    opening_time: Optional[str] = None
    closing_time: Optional[str] = None
    working_days: List[str] = []
    is_open_24_hours: bool = False
    abn: Optional[str] = None
    images: List[str] = []


class BusinessRegister(BusinessBase):
    """Public signup: owner contact details plus the business profile."""
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    mobile_number: Optional[str] = Field(None, max_length=20)


class BusinessUpdate(BaseModel):
    business_name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = None
    address: Optional[str] = None
    pin_code: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    google_maps_link: Optional[str] = None
    opening_time: Optional[str] = None
    closing_time: Optional[str] = None
    working_days: Optional[List[str]] = None
    is_open_24_hours: Optional[bool] = None
    abn: Optional[str] = None
    images: Optional[List[str]] = None


class BusinessSummary(BaseModel):
    id: int
    business_name: str
    category: Optional[str] = None
    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    images: Optional[List[str]] = None

    class Config:
        from_attributes = True


class BusinessInDBBase(BusinessBase):
    id: int
    owner_id: int
    status: BusinessStatus
    review_note: Optional[str] = None
    approved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class Business(BusinessInDBBase):
    pass


class BusinessPublic(Business):
    average_rating: Optional[float] = None
    review_count: int = 0


class BusinessNearby(Business):
    distance_in_meters: float
