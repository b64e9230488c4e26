import logging
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app import models, schemas
from app.core.monitoring import metrics
from app.services.geo import distance_expression

logger = logging.getLogger(__name__)

REPOST_DURATION = timedelta(days=7)


def resolve_status(
    start: datetime, end: datetime, requested: models.OfferStatus, now: datetime
) -> models.OfferStatus:
    """Status an offer should have at ``now``; drafts are left alone."""
    if requested == models.OfferStatus.DRAFT:
        return models.OfferStatus.DRAFT
    if end <= now:
        return models.OfferStatus.EXPIRED
    if start <= now:
        return models.OfferStatus.ACTIVE
    return models.OfferStatus.SCHEDULED


class OfferService:
    def __init__(self, db: Session):
        self.db = db

    def _commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

    def _approved_business(self, user: models.User) -> models.Business:
        business = self.db.query(models.Business).filter(
            models.Business.owner_id == user.id
        ).first()
        if not business:
            raise HTTPException(status_code=404, detail="Business profile not found")
        if business.status != models.BusinessStatus.APPROVED:
            raise HTTPException(status_code=403, detail="Business is not approved")
        return business

    def get(self, offer_id: int) -> models.Offer:
        offer = self.db.query(models.Offer).filter(models.Offer.id == offer_id).first()
        if not offer:
            raise HTTPException(status_code=404, detail="Offer not found")
        return offer

    def get_owned(self, user: models.User, offer_id: int) -> models.Offer:
        offer = self.get(offer_id)
        if offer.business.owner_id != user.id:
            raise HTTPException(status_code=403, detail="Not authorized")
        return offer

    def create(self, user: models.User, offer_in: schemas.OfferCreate) -> models.Offer:
        business = self._approved_business(user)
        now = datetime.utcnow()

        if offer_in.status != models.OfferStatus.DRAFT and offer_in.end_date_time <= now:
            raise HTTPException(status_code=400, detail="Offer end time has already passed")

        offer = models.Offer(
            business_id=business.id,
            creator_id=user.id,
            title=offer_in.title,
            description=offer_in.description,
            image_url=offer_in.image_url,
            start_date_time=offer_in.start_date_time,
            end_date_time=offer_in.end_date_time,
            qr_validity_days=offer_in.qr_validity_days,
            status=resolve_status(
                offer_in.start_date_time, offer_in.end_date_time, offer_in.status, now
            ),
        )
        self.db.add(offer)
        self._commit()
        self.db.refresh(offer)

        metrics.increment("offers.created", tags={"status": offer.status.value})
        logger.info(f"Offer {offer.id} created for business {business.id} as {offer.status.value}")
        return offer

    def update(self, user: models.User, offer_id: int, offer_in: schemas.OfferUpdate) -> models.Offer:
        offer = self.get_owned(user, offer_id)
        if offer.status == models.OfferStatus.EXPIRED:
            raise HTTPException(status_code=400, detail="Cannot update an expired offer")

        update_data = offer_in.model_dump(exclude_unset=True)
        requested_status = update_data.pop("status", None)
        for field, value in update_data.items():
            if value is None and field in ("title", "description", "start_date_time", "end_date_time", "qr_validity_days"):
                continue
            setattr(offer, field, value)

        if offer.end_date_time <= offer.start_date_time:
            self.db.rollback()
            raise HTTPException(status_code=400, detail="end_date_time must be after start_date_time")

        offer.status = resolve_status(
            offer.start_date_time,
            offer.end_date_time,
            requested_status or offer.status,
            datetime.utcnow(),
        )
        self._commit()
        self.db.refresh(offer)
        return offer

    def publish(self, user: models.User, offer_id: int) -> models.Offer:
        offer = self.get_owned(user, offer_id)
        if offer.status != models.OfferStatus.DRAFT:
            raise HTTPException(status_code=400, detail="Only draft offers can be published")

        now = datetime.utcnow()
        if offer.end_date_time <= now:
            raise HTTPException(status_code=400, detail="Offer end time has already passed")

        offer.status = resolve_status(
            offer.start_date_time, offer.end_date_time, models.OfferStatus.SCHEDULED, now
        )
        self._commit()
        self.db.refresh(offer)

        metrics.increment("offers.published", tags={"status": offer.status.value})
        return offer

    def delete(self, user: models.User, offer_id: int) -> None:
        offer = self.get_owned(user, offer_id)
        self.db.delete(offer)
        self._commit()
        logger.info(f"Offer {offer_id} deleted by user {user.id}")

    def repost(self, user: models.User, offer_id: int) -> models.Offer:
        original = self.get_owned(user, offer_id)
        now = datetime.utcnow()

        offer = models.Offer(
            business_id=original.business_id,
            creator_id=user.id,
            title=f"REPOST: {original.title}"[:255],
            description=original.description,
            image_url=original.image_url,
            start_date_time=now,
            end_date_time=now + REPOST_DURATION,
            qr_validity_days=original.qr_validity_days,
            status=models.OfferStatus.DRAFT,
            reposted_from_offer_id=original.id,
        )
        self.db.add(offer)
        self._commit()
        self.db.refresh(offer)

        metrics.increment("offers.reposted")
        return offer

    def list_mine(self, user: models.User) -> List[models.Offer]:
        return self.db.query(models.Offer).join(models.Business).filter(
            models.Business.owner_id == user.id
        ).order_by(models.Offer.created_at.desc(), models.Offer.id.desc()).all()

    def nearby(
        self,
        latitude: float,
        longitude: float,
        radius: float,
        now: Optional[datetime] = None,
    ) -> List[Tuple[models.Offer, float]]:
        """Live offers whose business is within ``radius`` metres."""
        now = now or datetime.utcnow()
        distance = distance_expression(
            latitude, longitude, models.Business.latitude, models.Business.longitude
        )
        rows = self.db.query(models.Offer, distance.label("distance")).join(
            models.Business, models.Offer.business_id == models.Business.id
        ).filter(
            models.Offer.status == models.OfferStatus.ACTIVE,
            models.Offer.end_date_time > now,
            models.Business.status == models.BusinessStatus.APPROVED,
            models.Business.latitude.isnot(None),
            models.Business.longitude.isnot(None),
            distance <= radius,
        ).order_by(models.Offer.start_date_time.desc()).all()
        return [(offer, float(meters)) for offer, meters in rows]
