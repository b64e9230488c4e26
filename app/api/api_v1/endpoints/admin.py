import logging
from typing import Any, List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app import models, schemas
from app.api import deps
from app.services.acceptance import AcceptanceService
from app.services.admin import AdminService
from app.services.email import EmailService

logger = logging.getLogger(__name__)

router = APIRouter()


async def _notify_approved(email: EmailService, service: AdminService, business: models.Business) -> None:
    owner = business.owner
    try:
        await email.send_business_approved(owner, business, service.invite_token(owner))
    except Exception as e:
        logger.error(f"Failed to send approval email for business {business.id}: {e}")


# Super admin

@router.get("/dashboard", response_model=schemas.Dashboard)
def read_dashboard(
    db: Session = Depends(deps.get_db),
    current_user: models.User = Depends(deps.get_super_admin),
) -> Any:
    """Platform-wide counts"""
    return AdminService(db).dashboard()


@router.get("/offers", response_model=List[schemas.AdminOffer])
def read_all_offers(
    db: Session = Depends(deps.get_db),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    current_user: models.User = Depends(deps.get_super_admin),
) -> Any:
    """All offers with engagement counts"""
    return AdminService(db).offers_with_stats(skip=skip, limit=limit)


@router.get("/acceptances", response_model=List[schemas.AcceptanceWithOffer])
def read_all_acceptances(
    db: Session = Depends(deps.get_db),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    current_user: models.User = Depends(deps.get_super_admin),
) -> Any:
    return AcceptanceService(db).list_all(skip=skip, limit=limit)


@router.post("/staff", response_model=schemas.User, status_code=201)
def create_staff(
    *,
    db: Session = Depends(deps.get_db),
    user_in: schemas.UserCreate,
    current_user: models.User = Depends(deps.get_super_admin),
) -> Any:
    """Create a moderator account"""
    return AdminService(db).create_staff(user_in)


@router.get("/businesses/all", response_model=List[schemas.BusinessStats])
def read_all_businesses(
    db: Session = Depends(deps.get_db),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    current_user: models.User = Depends(deps.get_super_admin),
) -> Any:
    """Every business with offer and rating statistics"""
    return AdminService(db).businesses_with_stats(skip=skip, limit=limit)


@router.post("/businesses/onboard", response_model=schemas.BusinessWithOwner, status_code=201)
async def onboard_business(
    *,
    db: Session = Depends(deps.get_db),
    email: EmailService = Depends(deps.get_email_service),
    business_in: schemas.BusinessOnboard,
    current_user: models.User = Depends(deps.get_super_admin),
) -> Any:
    """Create an owner and business on their behalf"""
    service = AdminService(db)
    business = service.onboard(current_user, business_in)
    if business.status == models.BusinessStatus.APPROVED and not business_in.password:
        await _notify_approved(email, service, business)
    return business


# Approvals

@router.get("/businesses", response_model=List[schemas.BusinessWithOwner])
def read_businesses_by_status(
    db: Session = Depends(deps.get_db),
    status: str = "pending",
    current_user: models.User = Depends(deps.get_moderator),
) -> Any:
    """Business applications filtered by status"""
    return AdminService(db).list_businesses(status)


@router.get("/businesses/{business_id}", response_model=schemas.BusinessWithOwner)
def read_business(
    business_id: int,
    db: Session = Depends(deps.get_db),
    current_user: models.User = Depends(deps.get_moderator),
) -> Any:
    return AdminService(db).get_business(business_id)


@router.get("/businesses/{business_id}/detailed", response_model=schemas.BusinessDetailed)
def read_business_detailed(
    business_id: int,
    db: Session = Depends(deps.get_db),
    current_user: models.User = Depends(deps.get_super_admin),
) -> Any:
    """Business with its offers' statistics and reviews"""
    return AdminService(db).business_detailed(business_id)


@router.post("/businesses/{business_id}/approve", response_model=schemas.BusinessWithOwner)
async def approve_business(
    *,
    db: Session = Depends(deps.get_db),
    email: EmailService = Depends(deps.get_email_service),
    business_id: int,
    decision: schemas.ReviewDecision = schemas.ReviewDecision(),
    current_user: models.User = Depends(deps.get_moderator),
) -> Any:
    """Approve an application and email the owner a set-password link"""
    service = AdminService(db)
    business = service.approve(current_user, business_id, decision.review_note)
    await _notify_approved(email, service, business)
    return business


@router.post("/businesses/{business_id}/reject", response_model=schemas.BusinessWithOwner)
async def reject_business(
    *,
    db: Session = Depends(deps.get_db),
    email: EmailService = Depends(deps.get_email_service),
    business_id: int,
    decision: schemas.ReviewDecision = schemas.ReviewDecision(),
    current_user: models.User = Depends(deps.get_moderator),
) -> Any:
    """Reject an application and email the owner the reason"""
    business = AdminService(db).reject(current_user, business_id, decision.review_note)
    try:
        await email.send_business_rejected(business.owner, business)
    except Exception as e:
        logger.error(f"Failed to send rejection email for business {business.id}: {e}")
    return business


@router.post("/businesses/{business_id}/owner", response_model=schemas.BusinessWithOwner)
def create_business_owner(
    *,
    db: Session = Depends(deps.get_db),
    business_id: int,
    owner_in: schemas.OwnerCreate,
    current_user: models.User = Depends(deps.get_super_admin),
) -> Any:
    """Create a new owner account and hand the business over to it"""
    return AdminService(db).create_owner(business_id, owner_in)
