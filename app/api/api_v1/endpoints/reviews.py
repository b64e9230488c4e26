from typing import Any, List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app import models, schemas
from app.api import deps
from app.services.reviews import ReviewService, serialize_review

router = APIRouter()


@router.post("/business/{business_id}", response_model=schemas.Review, status_code=201)
def create_review(
    *,
    db: Session = Depends(deps.get_db),
    business_id: int,
    review_in: schemas.ReviewCreate,
    current_user: models.User = Depends(deps.get_customer),
) -> Any:
    """Rate a business (once per customer)"""
    review = ReviewService(db).add(current_user, business_id, review_in)
    return serialize_review(review)


@router.get("/business/{business_id}", response_model=List[schemas.Review])
def read_business_reviews(
    business_id: int,
    db: Session = Depends(deps.get_db),
) -> Any:
    """Reviews of a business, newest first"""
    return [serialize_review(review) for review in ReviewService(db).list_for_business(business_id)]


@router.get("/mine", response_model=List[schemas.Review])
def read_my_reviews(
    db: Session = Depends(deps.get_db),
    current_user: models.User = Depends(deps.get_current_active_user),
) -> Any:
    return [serialize_review(review) for review in ReviewService(db).list_mine(current_user)]
