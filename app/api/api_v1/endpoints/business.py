from typing import Any, List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app import models, schemas
from app.api import deps
from app.core.config import settings
from app.services.business import BusinessService

router = APIRouter()


@router.get("/nearby", response_model=List[schemas.BusinessNearby])
def nearby_businesses(
    db: Session = Depends(deps.get_db),
    latitude: float = Query(..., ge=-90, le=90),
    longitude: float = Query(..., ge=-180, le=180),
    radius: Optional[float] = Query(None, gt=0, le=settings.MAX_SEARCH_RADIUS_METERS),
) -> Any:
    """Approved businesses within the radius (metres), closest first"""
    results = BusinessService(db).nearby(
        latitude, longitude, radius or settings.DEFAULT_BUSINESS_RADIUS_METERS
    )
    return [
        {**schemas.Business.model_validate(business).model_dump(), "distance_in_meters": round(distance, 1)}
        for business, distance in results
    ]


@router.get("/search", response_model=List[schemas.Business])
def search_businesses(
    db: Session = Depends(deps.get_db),
    q: Optional[str] = None,
    category: Optional[str] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
) -> Any:
    """Search approved businesses by name, description, address and category"""
    return BusinessService(db).search(q=q, category=category, skip=skip, limit=limit)


@router.get("/me", response_model=schemas.Business)
def read_my_business(
    db: Session = Depends(deps.get_db),
    current_user: models.User = Depends(deps.get_business_owner),
) -> Any:
    """Get own business profile"""
    return BusinessService(db).get_owned(current_user)


@router.put("/me", response_model=schemas.Business)
def update_my_business(
    *,
    db: Session = Depends(deps.get_db),
    business_in: schemas.BusinessUpdate,
    current_user: models.User = Depends(deps.get_business_owner),
) -> Any:
    """Update own business profile"""
    return BusinessService(db).update_owned(current_user, business_in)


@router.get("/{business_id}", response_model=schemas.BusinessPublic)
def read_business(
    business_id: int,
    db: Session = Depends(deps.get_db),
) -> Any:
    """Public business profile with rating summary"""
    service = BusinessService(db)
    business = service.get_approved(business_id)
    average_rating, review_count = service.rating_stats(business.id)
    return {
        **schemas.Business.model_validate(business).model_dump(),
        "average_rating": average_rating,
        "review_count": review_count,
    }


@router.get("/{business_id}/offers", response_model=List[schemas.Offer])
def read_business_offers(
    business_id: int,
    db: Session = Depends(deps.get_db),
) -> Any:
    """Active offers of a business"""
    return BusinessService(db).active_offers(business_id)
