from typing import Optional, List
from pydantic import BaseModel, Field
from app.schemas.business import Business, BusinessRegister
from app.schemas.offer import Offer
from app.schemas.review import Review
from app.schemas.user import User, UserCreate


class ReviewDecision(BaseModel):
    review_note: Optional[str] = Field(None, max_length=2000)


class BusinessWithOwner(Business):
    owner: User


class BusinessOnboard(BusinessRegister):
    password: Optional[str] = Field(None, min_length=6)
    auto_approve: bool = False


class OwnerCreate(UserCreate):
    pass


class Dashboard(BaseModel):
    total_businesses: int
    pending_businesses: int
    approved_businesses: int
    rejected_businesses: int
    total_offers: int
    active_offers: int
    total_customers: int


class AdminOffer(Offer):
    business_name: Optional[str] = None
    favorites_count: int = 0
    acceptances_count: int = 0
    redeemed_count: int = 0
    pending_count: int = 0


class BusinessStats(BusinessWithOwner):
    offer_count: int = 0
    active_offer_count: int = 0
    average_rating: Optional[float] = None
    review_count: int = 0


class BusinessDetailed(BusinessStats):
    offers: List[AdminOffer] = []
    reviews: List[Review] = []
