from typing import Optional, List
from pydantic import BaseModel
from datetime import datetime
from app.models import AnalyticsEventType, OfferStatus


class TrackEvent(BaseModel):
    type: AnalyticsEventType
    offer_id: Optional[int] = None
    business_id: Optional[int] = None


class OfferMetrics(BaseModel):
    offer_id: int
    title: str
    business_id: int
    business_name: Optional[str] = None
    status: OfferStatus
    views: int = 0
    impressions: int = 0
    favorites: int = 0
    acceptances: int = 0
    shares: int = 0


class MetricsTotals(BaseModel):
    views: int = 0
    impressions: int = 0
    favorites: int = 0
    acceptances: int = 0
    shares: int = 0
    business_visits: int = 0


class OfferMetricsReport(BaseModel):
    period: str
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    items: List[OfferMetrics]
    totals: MetricsTotals
