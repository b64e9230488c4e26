"""Periodic status refresh for offers and redemption codes.

Every transition is a single bulk ``UPDATE ... WHERE``; running the job
twice with the same clock changes nothing.
"""
import logging
from datetime import datetime
from typing import Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app import models
from app.core.monitoring import metrics
from app.db.session import SessionLocal

logger = logging.getLogger(__name__)


def activate_offers(db: Session, now: datetime) -> int:
    return db.query(models.Offer).filter(
        models.Offer.status == models.OfferStatus.SCHEDULED,
        models.Offer.start_date_time <= now,
    ).update(
        {models.Offer.status: models.OfferStatus.ACTIVE, models.Offer.updated_at: now},
        synchronize_session=False,
    )


def expire_offers(db: Session, now: datetime) -> int:
    return db.query(models.Offer).filter(
        models.Offer.status.in_([models.OfferStatus.ACTIVE, models.OfferStatus.SCHEDULED]),
        models.Offer.end_date_time <= now,
    ).update(
        {models.Offer.status: models.OfferStatus.EXPIRED, models.Offer.updated_at: now},
        synchronize_session=False,
    )


def expire_acceptances(db: Session, now: datetime) -> int:
    return db.query(models.OfferAcceptance).filter(
        models.OfferAcceptance.status == models.AcceptanceStatus.PENDING,
        models.OfferAcceptance.expires_at <= now,
    ).update(
        {models.OfferAcceptance.status: models.AcceptanceStatus.EXPIRED},
        synchronize_session=False,
    )


@metrics.timing("scheduler.refresh_offer_statuses")
def refresh_offer_statuses(db: Optional[Session] = None, now: Optional[datetime] = None) -> Dict[str, int]:
    owns_session = db is None
    db = db or SessionLocal()
    now = now or datetime.utcnow()
    try:
        counts = {
            "activated": activate_offers(db, now),
            "expired": expire_offers(db, now),
            "acceptances_expired": expire_acceptances(db, now),
        }
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Offer status refresh failed: {e}", exc_info=True)
        raise
    finally:
        if owns_session:
            db.close()

    for name, count in counts.items():
        if count:
            metrics.increment(f"scheduler.{name}", value=count)
            logger.info(f"Offer scheduler: {count} {name.replace('_', ' ')}")
    return counts
