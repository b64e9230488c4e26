from datetime import datetime
from typing import List

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app import models


class FavoriteService:
    def __init__(self, db: Session):
        self.db = db

    def _toggle(self, existing, new_favorite) -> bool:
        if existing:
            self.db.delete(existing)
            favorited = False
        else:
            self.db.add(new_favorite)
            favorited = True
        try:
            self.db.commit()
        except IntegrityError:
            # A concurrent request already favorited it
            self.db.rollback()
            return True
        return favorited

    def toggle_offer(self, user: models.User, offer_id: int) -> bool:
        if not self.db.query(models.Offer).filter(models.Offer.id == offer_id).first():
            raise HTTPException(status_code=404, detail="Offer not found")
        existing = self.db.query(models.FavoriteOffer).filter(
            models.FavoriteOffer.user_id == user.id,
            models.FavoriteOffer.offer_id == offer_id,
        ).first()
        return self._toggle(existing, models.FavoriteOffer(
            user_id=user.id, offer_id=offer_id, created_at=datetime.utcnow()
        ))

    def toggle_business(self, user: models.User, business_id: int) -> bool:
        if not self.db.query(models.Business).filter(models.Business.id == business_id).first():
            raise HTTPException(status_code=404, detail="Business not found")
        existing = self.db.query(models.FavoriteBusiness).filter(
            models.FavoriteBusiness.user_id == user.id,
            models.FavoriteBusiness.business_id == business_id,
        ).first()
        return self._toggle(
            existing, models.FavoriteBusiness(
                user_id=user.id, business_id=business_id, created_at=datetime.utcnow()
            )
        )

    def list_offers(self, user: models.User) -> List[models.Offer]:
        return self.db.query(models.Offer).join(
            models.FavoriteOffer, models.FavoriteOffer.offer_id == models.Offer.id
        ).filter(models.FavoriteOffer.user_id == user.id).order_by(
            models.FavoriteOffer.created_at.desc(), models.FavoriteOffer.id.desc()
        ).all()

    def list_businesses(self, user: models.User) -> List[models.Business]:
        return self.db.query(models.Business).join(
            models.FavoriteBusiness, models.FavoriteBusiness.business_id == models.Business.id
        ).filter(models.FavoriteBusiness.user_id == user.id).order_by(
            models.FavoriteBusiness.created_at.desc(), models.FavoriteBusiness.id.desc()
        ).all()
