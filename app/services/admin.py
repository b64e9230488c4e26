import logging
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app import models, schemas
from app.core import security
from app.core.config import settings
from app.core.monitoring import metrics
from app.services.auth import create_business_owner, ensure_user_available
from app.services.reviews import serialize_review

logger = logging.getLogger(__name__)


class AdminService:
    def __init__(self, db: Session):
        self.db = db

    def _commit(self) -> None:
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(status_code=409, detail="User already exists")
        except SQLAlchemyError:
            self.db.rollback()
            raise

    # Approvals

    def list_businesses(self, status: str = "pending") -> List[models.Business]:
        try:
            status_enum = models.BusinessStatus(status.lower())
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Invalid status: {status}")
        return self.db.query(models.Business).filter(
            models.Business.status == status_enum
        ).order_by(models.Business.created_at.desc(), models.Business.id.desc()).all()

    def get_business(self, business_id: int) -> models.Business:
        business = self.db.query(models.Business).filter(
            models.Business.id == business_id
        ).first()
        if not business:
            raise HTTPException(status_code=404, detail="Business not found")
        return business

    def approve(
        self, reviewer: models.User, business_id: int, review_note: Optional[str] = None
    ) -> models.Business:
        business = self.get_business(business_id)
        if business.status == models.BusinessStatus.APPROVED:
            raise HTTPException(status_code=400, detail="Business is already approved")

        business.status = models.BusinessStatus.APPROVED
        business.review_note = review_note
        business.approved_at = datetime.utcnow()
        business.approved_by = reviewer.id
        self._commit()
        self.db.refresh(business)

        metrics.increment("businesses.approved")
        logger.info(f"Business {business.id} approved by user {reviewer.id}")
        return business

    def reject(
        self, reviewer: models.User, business_id: int, review_note: Optional[str] = None
    ) -> models.Business:
        business = self.get_business(business_id)
        if business.status == models.BusinessStatus.REJECTED:
            raise HTTPException(status_code=400, detail="Business is already rejected")

        business.status = models.BusinessStatus.REJECTED
        business.review_note = review_note
        business.approved_at = None
        business.approved_by = reviewer.id
        self._commit()
        self.db.refresh(business)

        metrics.increment("businesses.rejected")
        logger.info(f"Business {business.id} rejected by user {reviewer.id}")
        return business

    def invite_token(self, owner: models.User) -> str:
        """Set-password token mailed to a freshly approved owner."""
        return security.create_password_reset_token(
            owner.id,
            owner.password_hash,
            timedelta(hours=settings.BUSINESS_INVITE_EXPIRE_HOURS),
        )

    # Super admin

    def dashboard(self) -> Dict[str, int]:
        by_status = dict(
            self.db.query(models.Business.status, func.count(models.Business.id))
            .group_by(models.Business.status).all()
        )
        return {
            "total_businesses": sum(by_status.values()),
            "pending_businesses": by_status.get(models.BusinessStatus.PENDING, 0),
            "approved_businesses": by_status.get(models.BusinessStatus.APPROVED, 0),
            "rejected_businesses": by_status.get(models.BusinessStatus.REJECTED, 0),
            "total_offers": self.db.query(func.count(models.Offer.id)).scalar(),
            "active_offers": self.db.query(func.count(models.Offer.id)).filter(
                models.Offer.status == models.OfferStatus.ACTIVE
            ).scalar(),
            "total_customers": self.db.query(func.count(models.User.id)).filter(
                models.User.role == models.UserRole.CUSTOMER
            ).scalar(),
        }

    def _offer_stats(self, offers: List[models.Offer]) -> List[Dict[str, Any]]:
        offer_ids = [offer.id for offer in offers]
        if not offer_ids:
            return []

        favorites = dict(
            self.db.query(models.FavoriteOffer.offer_id, func.count(models.FavoriteOffer.id))
            .filter(models.FavoriteOffer.offer_id.in_(offer_ids))
            .group_by(models.FavoriteOffer.offer_id).all()
        )
        acceptances = defaultdict(dict)
        for offer_id, status, count in (
            self.db.query(
                models.OfferAcceptance.offer_id,
                models.OfferAcceptance.status,
                func.count(models.OfferAcceptance.id),
            )
            .filter(models.OfferAcceptance.offer_id.in_(offer_ids))
            .group_by(models.OfferAcceptance.offer_id, models.OfferAcceptance.status).all()
        ):
            acceptances[offer_id][status] = count

        results = []
        for offer in offers:
            counts = acceptances[offer.id]
            results.append({
                **schemas.Offer.model_validate(offer).model_dump(),
                "business_name": offer.business.business_name if offer.business else None,
                "favorites_count": favorites.get(offer.id, 0),
                "acceptances_count": sum(counts.values()),
                "redeemed_count": counts.get(models.AcceptanceStatus.REDEEMED, 0),
                "pending_count": counts.get(models.AcceptanceStatus.PENDING, 0),
            })
        return results

    def offers_with_stats(self, skip: int = 0, limit: int = 100) -> List[Dict[str, Any]]:
        offers = self.db.query(models.Offer).order_by(
            models.Offer.created_at.desc(), models.Offer.id.desc()
        ).offset(skip).limit(limit).all()
        return self._offer_stats(offers)

    def _business_stats(self, businesses: List[models.Business]) -> List[Dict[str, Any]]:
        business_ids = [business.id for business in businesses]
        if not business_ids:
            return []

        offer_counts = dict(
            self.db.query(models.Offer.business_id, func.count(models.Offer.id))
            .filter(models.Offer.business_id.in_(business_ids))
            .group_by(models.Offer.business_id).all()
        )
        active_counts = dict(
            self.db.query(models.Offer.business_id, func.count(models.Offer.id))
            .filter(
                models.Offer.business_id.in_(business_ids),
                models.Offer.status == models.OfferStatus.ACTIVE,
            )
            .group_by(models.Offer.business_id).all()
        )
        ratings = {
            business_id: (average, count)
            for business_id, average, count in self.db.query(
                models.Review.business_id,
                func.avg(models.Review.rating),
                func.count(models.Review.id),
            )
            .filter(models.Review.business_id.in_(business_ids))
            .group_by(models.Review.business_id).all()
        }

        results = []
        for business in businesses:
            average, review_count = ratings.get(business.id, (None, 0))
            results.append({
                **schemas.BusinessWithOwner.model_validate(business).model_dump(),
                "offer_count": offer_counts.get(business.id, 0),
                "active_offer_count": active_counts.get(business.id, 0),
                "average_rating": round(float(average), 2) if average is not None else None,
                "review_count": review_count,
            })
        return results

    def businesses_with_stats(self, skip: int = 0, limit: int = 100) -> List[Dict[str, Any]]:
        businesses = self.db.query(models.Business).order_by(
            models.Business.created_at.desc(), models.Business.id.desc()
        ).offset(skip).limit(limit).all()
        return self._business_stats(businesses)

    def business_detailed(self, business_id: int) -> Dict[str, Any]:
        business = self.get_business(business_id)
        offers = self.db.query(models.Offer).filter(
            models.Offer.business_id == business.id
        ).order_by(models.Offer.created_at.desc(), models.Offer.id.desc()).all()
        reviews = self.db.query(models.Review).filter(
            models.Review.business_id == business.id
        ).order_by(models.Review.created_at.desc(), models.Review.id.desc()).all()

        detailed = self._business_stats([business])[0]
        detailed["offers"] = self._offer_stats(offers)
        detailed["reviews"] = [serialize_review(review) for review in reviews]
        return detailed

    def onboard(self, reviewer: models.User, data: schemas.BusinessOnboard) -> models.Business:
        business = create_business_owner(self.db, data, password=data.password)
        if data.auto_approve:
            business.status = models.BusinessStatus.APPROVED
            business.approved_at = datetime.utcnow()
            business.approved_by = reviewer.id
        self._commit()
        self.db.refresh(business)

        metrics.increment("businesses.onboarded", tags={"auto_approve": data.auto_approve})
        logger.info(f"Business {business.id} onboarded by user {reviewer.id}")
        return business

    def create_staff(self, user_in: schemas.UserCreate) -> models.User:
        ensure_user_available(self.db, user_in.email, user_in.mobile_number)
        user = models.User(
            email=user_in.email,
            name=user_in.name,
            mobile_number=user_in.mobile_number,
            password_hash=security.get_password_hash(user_in.password),
            role=models.UserRole.STAFF,
            is_verified=True,
        )
        self.db.add(user)
        self._commit()
        self.db.refresh(user)
        logger.info(f"Staff account {user.id} created")
        return user

    def create_owner(
        self, business_id: int, owner_in: schemas.OwnerCreate
    ) -> models.Business:
        business = self.get_business(business_id)
        ensure_user_available(self.db, owner_in.email, owner_in.mobile_number)

        owner = models.User(
            email=owner_in.email,
            name=owner_in.name,
            mobile_number=owner_in.mobile_number,
            password_hash=security.get_password_hash(owner_in.password),
            role=models.UserRole.BUSINESS,
            is_verified=True,
        )
        self.db.add(owner)
        self.db.flush()
        business.owner_id = owner.id
        self._commit()
        self.db.refresh(business)

        logger.info(f"Business {business.id} reassigned to new owner {owner.id}")
        return business
