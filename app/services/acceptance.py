import logging
from datetime import datetime, timedelta
from typing import List, Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app import models
from app.core import security
from app.core.monitoring import metrics

logger = logging.getLogger(__name__)


class AcceptanceService:
    def __init__(self, db: Session):
        self.db = db

    def _commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

    def accept(self, user: models.User, offer_id: int, now: Optional[datetime] = None) -> models.OfferAcceptance:
        """Issue (or return the outstanding) redemption code for an offer."""
        now = now or datetime.utcnow()
        offer = self.db.query(models.Offer).filter(models.Offer.id == offer_id).first()
        if not offer:
            raise HTTPException(status_code=404, detail="Offer not found")
        if offer.status != models.OfferStatus.ACTIVE or offer.end_date_time <= now:
            raise HTTPException(status_code=400, detail="Offer is not active")

        existing = self.db.query(models.OfferAcceptance).filter(
            models.OfferAcceptance.user_id == user.id,
            models.OfferAcceptance.offer_id == offer.id,
            models.OfferAcceptance.status != models.AcceptanceStatus.EXPIRED,
        ).order_by(models.OfferAcceptance.id.desc()).first()

        if existing:
            if existing.status == models.AcceptanceStatus.REDEEMED:
                raise HTTPException(status_code=400, detail="Offer already redeemed")
            if existing.expires_at > now:
                return existing
            existing.status = models.AcceptanceStatus.EXPIRED

        acceptance = models.OfferAcceptance(
            user_id=user.id,
            offer_id=offer.id,
            qr_code=security.generate_redemption_code(),
            status=models.AcceptanceStatus.PENDING,
            accepted_at=now,
            expires_at=now + timedelta(days=offer.qr_validity_days or 1),
        )
        self.db.add(acceptance)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(status_code=409, detail="Could not issue a redemption code, try again")
        except SQLAlchemyError:
            self.db.rollback()
            raise
        self.db.refresh(acceptance)

        metrics.increment("offers.accepted")
        logger.info(f"User {user.id} accepted offer {offer.id}")
        return acceptance

    def redeem(self, user: models.User, qr_code: str, now: Optional[datetime] = None) -> models.OfferAcceptance:
        now = now or datetime.utcnow()
        acceptance = self.db.query(models.OfferAcceptance).filter(
            models.OfferAcceptance.qr_code == qr_code
        ).first()
        if not acceptance:
            raise HTTPException(status_code=404, detail="Invalid QR code")
        if acceptance.offer.business.owner_id != user.id:
            raise HTTPException(status_code=403, detail="This offer does not belong to your business")
        if acceptance.status == models.AcceptanceStatus.REDEEMED:
            raise HTTPException(status_code=400, detail="Offer already redeemed")
        if acceptance.status == models.AcceptanceStatus.EXPIRED or acceptance.expires_at <= now:
            acceptance.status = models.AcceptanceStatus.EXPIRED
            self._commit()
            raise HTTPException(status_code=400, detail="QR code has expired")

        # Only a row that is still pending may flip to redeemed
        updated = self.db.query(models.OfferAcceptance).filter(
            models.OfferAcceptance.id == acceptance.id,
            models.OfferAcceptance.status == models.AcceptanceStatus.PENDING,
        ).update({
            models.OfferAcceptance.status: models.AcceptanceStatus.REDEEMED,
            models.OfferAcceptance.redeemed_at: now,
            models.OfferAcceptance.redeemed_by: user.id,
        }, synchronize_session=False)
        if not updated:
            self.db.rollback()
            raise HTTPException(status_code=400, detail="Offer already redeemed")
        self._commit()
        self.db.refresh(acceptance)

        metrics.increment("offers.redeemed")
        logger.info(f"Acceptance {acceptance.id} redeemed by user {user.id}")
        return acceptance

    def list_for_user(self, user: models.User) -> List[models.OfferAcceptance]:
        return self.db.query(models.OfferAcceptance).filter(
            models.OfferAcceptance.user_id == user.id
        ).order_by(models.OfferAcceptance.accepted_at.desc(), models.OfferAcceptance.id.desc()).all()

    def list_all(self, skip: int = 0, limit: int = 100) -> List[models.OfferAcceptance]:
        return self.db.query(models.OfferAcceptance).order_by(
            models.OfferAcceptance.accepted_at.desc(), models.OfferAcceptance.id.desc()
        ).offset(skip).limit(limit).all()
