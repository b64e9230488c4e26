import logging
from datetime import datetime
from typing import Any, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app import models, schemas
from app.api import deps
from app.services.analytics import AnalyticsService
from app.services.business import BusinessService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/track", response_model=schemas.StatusResponse)
def track_event(
    *,
    db: Session = Depends(deps.get_db),
    event_in: schemas.TrackEvent,
    current_user: Optional[models.User] = Depends(deps.get_optional_user),
) -> Any:
    """Record an engagement event; tracking never fails the client"""
    try:
        AnalyticsService(db).track(event_in, current_user)
    except (ValueError, SQLAlchemyError) as e:
        db.rollback()
        logger.warning(f"Ignored analytics event {event_in.type.value}: {e}")
        return {"status": "ignored"}
    return {"status": "success"}


@router.get("/super-admin/offers", response_model=schemas.OfferMetricsReport)
def read_offer_metrics(
    db: Session = Depends(deps.get_db),
    period: str = "week",
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    current_user: models.User = Depends(deps.get_super_admin),
) -> Any:
    """Per-offer engagement across the platform"""
    return AnalyticsService(db).offer_report(period, start_date, end_date)


@router.get("/business/offers", response_model=schemas.OfferMetricsReport)
def read_my_offer_metrics(
    db: Session = Depends(deps.get_db),
    period: str = "week",
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    current_user: models.User = Depends(deps.get_business_owner),
) -> Any:
    """Per-offer engagement for the caller's business"""
    business = BusinessService(db).get_owned(current_user)
    return AnalyticsService(db).offer_report(
        period, start_date, end_date, business_id=business.id
    )
