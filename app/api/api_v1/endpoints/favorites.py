from typing import Any, List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app import models, schemas
from app.api import deps
from app.services.favorites import FavoriteService

router = APIRouter()


@router.post("/offers/{offer_id}", response_model=schemas.FavoriteToggle)
def toggle_favorite_offer(
    offer_id: int,
    db: Session = Depends(deps.get_db),
    current_user: models.User = Depends(deps.get_current_active_user),
) -> Any:
    """Add or remove an offer from favorites"""
    return {"is_favorited": FavoriteService(db).toggle_offer(current_user, offer_id)}


@router.get("/offers", response_model=List[schemas.Offer])
def read_favorite_offers(
    db: Session = Depends(deps.get_db),
    current_user: models.User = Depends(deps.get_current_active_user),
) -> Any:
    return FavoriteService(db).list_offers(current_user)


@router.post("/businesses/{business_id}", response_model=schemas.FavoriteToggle)
def toggle_favorite_business(
    business_id: int,
    db: Session = Depends(deps.get_db),
    current_user: models.User = Depends(deps.get_current_active_user),
) -> Any:
    """Add or remove a business from favorites"""
    return {"is_favorited": FavoriteService(db).toggle_business(current_user, business_id)}


@router.get("/businesses", response_model=List[schemas.Business])
def read_favorite_businesses(
    db: Session = Depends(deps.get_db),
    current_user: models.User = Depends(deps.get_current_active_user),
) -> Any:
    return FavoriteService(db).list_businesses(current_user)
