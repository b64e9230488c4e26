from typing import Any, Dict, List

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app import models, schemas
from app.services.business import BusinessService


def serialize_review(review: models.Review) -> Dict[str, Any]:
    return {
        "id": review.id,
        "user_id": review.user_id,
        "business_id": review.business_id,
        "rating": review.rating,
        "comment": review.comment,
        "created_at": review.created_at,
        "user_name": review.user.name if review.user else None,
        "business_name": review.business.business_name if review.business else None,
    }


class ReviewService:
    def __init__(self, db: Session):
        self.db = db

    def add(self, user: models.User, business_id: int, review_in: schemas.ReviewCreate) -> models.Review:
        business = BusinessService(self.db).get_approved(business_id)
        existing = self.db.query(models.Review).filter(
            models.Review.user_id == user.id,
            models.Review.business_id == business.id,
        ).first()
        if existing:
            raise HTTPException(status_code=409, detail="You have already reviewed this business")

        review = models.Review(
            user_id=user.id,
            business_id=business.id,
            rating=review_in.rating,
            comment=review_in.comment,
        )
        self.db.add(review)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(status_code=409, detail="You have already reviewed this business")
        except SQLAlchemyError:
            self.db.rollback()
            raise
        self.db.refresh(review)
        return review

    def list_for_business(self, business_id: int) -> List[models.Review]:
        BusinessService(self.db).get_approved(business_id)
        return self.db.query(models.Review).filter(
            models.Review.business_id == business_id
        ).order_by(models.Review.created_at.desc(), models.Review.id.desc()).all()

    def list_mine(self, user: models.User) -> List[models.Review]:
        return self.db.query(models.Review).filter(
            models.Review.user_id == user.id
        ).order_by(models.Review.created_at.desc(), models.Review.id.desc()).all()
