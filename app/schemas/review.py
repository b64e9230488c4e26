from typing import Optional
from pydantic import BaseModel, Field
from datetime import datetime


class ReviewCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=2000)


class Review(BaseModel):
    id: int
    user_id: int
    business_id: int
    rating: int
    comment: Optional[str] = None
    created_at: Optional[datetime] = None
    user_name: Optional[str] = None
    business_name: Optional[str] = None

    class Config:
        from_attributes = True
