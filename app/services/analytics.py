import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session

from app import models, schemas
from app.core.monitoring import metrics
from app.schemas.common import naive_utc

logger = logging.getLogger(__name__)

OFFER_EVENTS = (
    models.AnalyticsEventType.OFFER_VIEW,
    models.AnalyticsEventType.OFFER_IMPRESSION,
    models.AnalyticsEventType.OFFER_SHARE,
)
PERIODS = ("today", "week", "month", "custom")


def resolve_period(
    period: str,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> Tuple[datetime, datetime]:
    """Turn a reporting period name into a ``[start, end)`` window."""
    now = now or datetime.utcnow()
    if period == "today":
        return datetime(now.year, now.month, now.day), now
    if period == "week":
        return now - timedelta(days=7), now
    if period == "month":
        return now - timedelta(days=30), now
    if period == "custom":
        if not start_date or not end_date:
            raise HTTPException(
                status_code=400, detail="start_date and end_date are required for a custom period"
            )
        start_date, end_date = naive_utc(start_date), naive_utc(end_date)
        if end_date <= start_date:
            raise HTTPException(status_code=400, detail="end_date must be after start_date")
        return start_date, end_date
    raise HTTPException(status_code=400, detail=f"Invalid period: {period}")


class AnalyticsService:
    def __init__(self, db: Session):
        self.db = db

    def track(self, event_in: schemas.TrackEvent, user: Optional[models.User] = None) -> models.AnalyticsEvent:
        """Record an engagement event; raises ``ValueError`` for unusable input."""
        offer = None
        business_id = event_in.business_id

        if event_in.type in OFFER_EVENTS:
            if not event_in.offer_id:
                raise ValueError(f"{event_in.type.value} requires offer_id")
            offer = self.db.query(models.Offer).filter(models.Offer.id == event_in.offer_id).first()
            if not offer:
                raise ValueError(f"Offer {event_in.offer_id} not found")
            business_id = offer.business_id
        elif not business_id:
            raise ValueError("business_view requires business_id")

        event = models.AnalyticsEvent(
            type=event_in.type,
            offer_id=offer.id if offer else None,
            business_id=business_id,
            user_id=user.id if user else None,
            created_at=datetime.utcnow(),
        )
        self.db.add(event)

        if event_in.type == models.AnalyticsEventType.OFFER_VIEW:
            self.db.query(models.Offer).filter(models.Offer.id == offer.id).update(
                {models.Offer.view_count: models.Offer.view_count + 1},
                synchronize_session=False,
            )
        elif event_in.type == models.AnalyticsEventType.OFFER_IMPRESSION:
            self.db.query(models.Offer).filter(models.Offer.id == offer.id).update(
                {models.Offer.impression_count: models.Offer.impression_count + 1},
                synchronize_session=False,
            )

        self.db.commit()
        metrics.increment("analytics.events", tags={"type": event_in.type.value})
        return event

    @metrics.timing("analytics.offer_report")
    def offer_report(
        self,
        period: str = "week",
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        business_id: Optional[int] = None,
    ) -> Dict[str, Any]:
        start, end = resolve_period(period, start_date, end_date)

        offers_query = self.db.query(models.Offer)
        if business_id is not None:
            offers_query = offers_query.filter(models.Offer.business_id == business_id)
        offers = offers_query.all()
        offer_ids = [offer.id for offer in offers]

        event_counts: Dict[Tuple[int, models.AnalyticsEventType], int] = {}
        favorites: Dict[int, int] = {}
        acceptances: Dict[int, int] = {}
        if offer_ids:
            for offer_id, event_type, count in self.db.query(
                models.AnalyticsEvent.offer_id,
                models.AnalyticsEvent.type,
                func.count(models.AnalyticsEvent.id),
            ).filter(
                models.AnalyticsEvent.offer_id.in_(offer_ids),
                models.AnalyticsEvent.created_at >= start,
                models.AnalyticsEvent.created_at < end,
            ).group_by(models.AnalyticsEvent.offer_id, models.AnalyticsEvent.type).all():
                event_counts[(offer_id, event_type)] = count

            favorites = dict(self.db.query(
                models.FavoriteOffer.offer_id, func.count(models.FavoriteOffer.id)
            ).filter(
                models.FavoriteOffer.offer_id.in_(offer_ids),
                models.FavoriteOffer.created_at >= start,
                models.FavoriteOffer.created_at < end,
            ).group_by(models.FavoriteOffer.offer_id).all())

            acceptances = dict(self.db.query(
                models.OfferAcceptance.offer_id, func.count(models.OfferAcceptance.id)
            ).filter(
                models.OfferAcceptance.offer_id.in_(offer_ids),
                models.OfferAcceptance.accepted_at >= start,
                models.OfferAcceptance.accepted_at < end,
            ).group_by(models.OfferAcceptance.offer_id).all())

        items = []
        for offer in offers:
            items.append({
                "offer_id": offer.id,
                "title": offer.title,
                "business_id": offer.business_id,
                "business_name": offer.business.business_name if offer.business else None,
                "status": offer.status,
                "views": event_counts.get((offer.id, models.AnalyticsEventType.OFFER_VIEW), 0),
                "impressions": event_counts.get((offer.id, models.AnalyticsEventType.OFFER_IMPRESSION), 0),
                "shares": event_counts.get((offer.id, models.AnalyticsEventType.OFFER_SHARE), 0),
                "favorites": favorites.get(offer.id, 0),
                "acceptances": acceptances.get(offer.id, 0),
            })
        items.sort(key=lambda item: (-item["views"], item["offer_id"]))

        visits_query = self.db.query(func.count(models.AnalyticsEvent.id)).filter(
            models.AnalyticsEvent.type == models.AnalyticsEventType.BUSINESS_VIEW,
            models.AnalyticsEvent.created_at >= start,
            models.AnalyticsEvent.created_at < end,
        )
        if business_id is not None:
            visits_query = visits_query.filter(models.AnalyticsEvent.business_id == business_id)

        totals = {
            key: sum(item[key] for item in items)
            for key in ("views", "impressions", "favorites", "acceptances", "shares")
        }
        totals["business_visits"] = visits_query.scalar() or 0

        return {
            "period": period,
            "start_date": start,
            "end_date": end,
            "items": items,
            "totals": totals,
        }
