from datetime import datetime
from typing import List, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app import models, schemas
from app.services.geo import distance_expression


# Columns that are NOT NULL or read back as lists; an explicit null leaves them unchanged
REQUIRED_FIELDS = ("business_name", "working_days", "images", "is_open_24_hours")


class BusinessService:
    def __init__(self, db: Session):
        self.db = db

    def get_owned(self, user: models.User) -> models.Business:
        business = self.db.query(models.Business).filter(
            models.Business.owner_id == user.id
        ).first()
        if not business:
            raise HTTPException(status_code=404, detail="Business profile not found")
        return business

    def update_owned(self, user: models.User, business_in: schemas.BusinessUpdate) -> models.Business:
        business = self.get_owned(user)
        for field, value in business_in.model_dump(exclude_unset=True).items():
            if value is None and field in REQUIRED_FIELDS:
                continue
            setattr(business, field, value)
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        self.db.refresh(business)
        return business

    def get_approved(self, business_id: int) -> models.Business:
        business = self.db.query(models.Business).filter(
            models.Business.id == business_id,
            models.Business.status == models.BusinessStatus.APPROVED,
        ).first()
        if not business:
            raise HTTPException(status_code=404, detail="Business not found")
        return business

    def rating_stats(self, business_id: int) -> Tuple[Optional[float], int]:
        average, count = self.db.query(
            func.avg(models.Review.rating), func.count(models.Review.id)
        ).filter(models.Review.business_id == business_id).one()
        return (round(float(average), 2) if average is not None else None), count

    def nearby(
        self, latitude: float, longitude: float, radius: float
    ) -> List[Tuple[models.Business, float]]:
        """Approved businesses within ``radius`` metres, closest first."""
        distance = distance_expression(
            latitude, longitude, models.Business.latitude, models.Business.longitude
        )
        rows = self.db.query(models.Business, distance.label("distance")).filter(
            models.Business.status == models.BusinessStatus.APPROVED,
            models.Business.latitude.isnot(None),
            models.Business.longitude.isnot(None),
            distance <= radius,
        ).order_by(distance).all()
        return [(business, float(meters)) for business, meters in rows]

    def search(
        self,
        q: Optional[str] = None,
        category: Optional[str] = None,
        skip: int = 0,
        limit: int = 50,
    ) -> List[models.Business]:
        query = self.db.query(models.Business).filter(
            models.Business.status == models.BusinessStatus.APPROVED
        )
        if q:
            pattern = f"%{q.strip()}%"
            query = query.filter(or_(
                models.Business.business_name.ilike(pattern),
                models.Business.description.ilike(pattern),
                models.Business.address.ilike(pattern),
            ))
        if category:
            query = query.filter(func.lower(models.Business.category) == category.strip().lower())
        return query.order_by(models.Business.business_name).offset(skip).limit(limit).all()

    def active_offers(self, business_id: int, now: Optional[datetime] = None) -> List[models.Offer]:
        self.get_approved(business_id)
        now = now or datetime.utcnow()
        return self.db.query(models.Offer).filter(
            models.Offer.business_id == business_id,
            models.Offer.status == models.OfferStatus.ACTIVE,
            models.Offer.end_date_time > now,
        ).order_by(models.Offer.start_date_time.desc()).all()
