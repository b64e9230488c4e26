from typing import Any, List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app import models, schemas
from app.api import deps
from app.core.config import settings
from app.services.acceptance import AcceptanceService
from app.services.offers import OfferService

router = APIRouter()


@router.post("/", response_model=schemas.Offer, status_code=201)
def create_offer(
    *,
    db: Session = Depends(deps.get_db),
    offer_in: schemas.OfferCreate,
    current_user: models.User = Depends(deps.get_business_owner),
) -> Any:
    """Create a draft or scheduled offer for the caller's approved business"""
    return OfferService(db).create(current_user, offer_in)


@router.get("/mine", response_model=List[schemas.Offer])
def read_my_offers(
    db: Session = Depends(deps.get_db),
    current_user: models.User = Depends(deps.get_business_owner),
) -> Any:
    """Offers of the caller's business, newest first"""
    return OfferService(db).list_mine(current_user)


@router.get("/nearby", response_model=List[schemas.OfferNearby])
def nearby_offers(
    db: Session = Depends(deps.get_db),
    latitude: float = Query(..., ge=-90, le=90),
    longitude: float = Query(..., ge=-180, le=180),
    radius: Optional[float] = Query(None, gt=0, le=settings.MAX_SEARCH_RADIUS_METERS),
) -> Any:
    """Active offers from businesses within the radius (metres)"""
    results = OfferService(db).nearby(
        latitude, longitude, radius or settings.DEFAULT_OFFER_RADIUS_METERS
    )
    return [
        {**schemas.Offer.model_validate(offer).model_dump(), "distance_in_meters": round(distance, 1)}
        for offer, distance in results
    ]


@router.get("/my-acceptances", response_model=List[schemas.AcceptanceWithOffer])
def read_my_acceptances(
    db: Session = Depends(deps.get_db),
    current_user: models.User = Depends(deps.get_customer),
) -> Any:
    """Redemption codes held by the caller"""
    return AcceptanceService(db).list_for_user(current_user)


@router.post("/redeem", response_model=schemas.AcceptanceWithOffer)
def redeem_offer(
    *,
    db: Session = Depends(deps.get_db),
    body: schemas.RedeemRequest,
    current_user: models.User = Depends(deps.get_business_owner),
) -> Any:
    """Redeem a scanned QR code at the caller's business"""
    return AcceptanceService(db).redeem(current_user, body.qr_code)


@router.get("/{offer_id}", response_model=schemas.Offer)
def read_offer(
    offer_id: int,
    db: Session = Depends(deps.get_db),
) -> Any:
    """Get offer by ID"""
    return OfferService(db).get(offer_id)


@router.put("/{offer_id}", response_model=schemas.Offer)
def update_offer(
    *,
    db: Session = Depends(deps.get_db),
    offer_id: int,
    offer_in: schemas.OfferUpdate,
    current_user: models.User = Depends(deps.get_business_owner),
) -> Any:
    """Update an offer"""
    return OfferService(db).update(current_user, offer_id, offer_in)


@router.post("/{offer_id}/publish", response_model=schemas.Offer)
def publish_offer(
    offer_id: int,
    db: Session = Depends(deps.get_db),
    current_user: models.User = Depends(deps.get_business_owner),
) -> Any:
    """Move a draft offer onto the schedule"""
    return OfferService(db).publish(current_user, offer_id)


@router.delete("/{offer_id}", response_model=schemas.Message)
def delete_offer(
    offer_id: int,
    db: Session = Depends(deps.get_db),
    current_user: models.User = Depends(deps.get_business_owner),
) -> Any:
    """Delete an offer"""
    OfferService(db).delete(current_user, offer_id)
    return {"message": "Offer deleted"}


@router.post("/{offer_id}/repost", response_model=schemas.Offer, status_code=201)
def repost_offer(
    offer_id: int,
    db: Session = Depends(deps.get_db),
    current_user: models.User = Depends(deps.get_business_owner),
) -> Any:
    """Copy an offer into a new week-long draft"""
    return OfferService(db).repost(current_user, offer_id)


@router.post("/{offer_id}/accept", response_model=schemas.Acceptance)
def accept_offer(
    offer_id: int,
    db: Session = Depends(deps.get_db),
    current_user: models.User = Depends(deps.get_customer),
) -> Any:
    """Accept an active offer and receive a redemption code"""
    return AcceptanceService(db).accept(current_user, offer_id)
