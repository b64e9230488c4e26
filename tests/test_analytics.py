from datetime import datetime, timedelta

import pytest
from fastapi import HTTPException

from app import models
from app.services.analytics import resolve_period

from conftest import auth_headers, make_business, make_offer, make_user

NOW = datetime(2026, 10, 19, 15, 30, 0)


def test_resolve_period_windows():
    assert resolve_period("today", now=NOW) == (datetime(2026, 10, 19), NOW)
    assert resolve_period("week", now=NOW) == (NOW - timedelta(days=7), NOW)
    assert resolve_period("month", now=NOW) == (NOW - timedelta(days=30), NOW)

    start, end = NOW - timedelta(days=3), NOW - timedelta(days=1)
    assert resolve_period("custom", start, end, now=NOW) == (start, end)


@pytest.mark.parametrize("period,start,end", [
    ("custom", None, None),
    ("custom", NOW, NOW - timedelta(days=1)),
    ("year", None, None),
])
def test_resolve_period_rejects(period, start, end):
    with pytest.raises(HTTPException) as exc:
        resolve_period(period, start, end, now=NOW)
    assert exc.value.status_code == 400


def _track(client, event_type, headers=None, **ids):
    return client.post("/api/v1/analytics/track", json={"type": event_type, **ids}, headers=headers or {})


def test_track_view_increments_counter(client, db, business, customer, customer_headers):
    offer = make_offer(db, business)
    assert _track(client, "offer_view", offer_id=offer.id).json() == {"status": "success"}
    assert _track(client, "offer_view", customer_headers, offer_id=offer.id).json() == {"status": "success"}
    assert _track(client, "offer_impression", offer_id=offer.id).json() == {"status": "success"}

    db.expire_all()
    stored = db.get(models.Offer, offer.id)
    assert stored.view_count == 2
    assert stored.impression_count == 1

    events = db.query(models.AnalyticsEvent).order_by(models.AnalyticsEvent.id).all()
    assert [e.business_id for e in events] == [business.id] * 3
    assert [e.user_id for e in events] == [None, customer.id, None]


def test_track_ignores_unusable_events(client, db, business):
    assert _track(client, "offer_view", offer_id=9999).json() == {"status": "ignored"}
    assert _track(client, "offer_share").json() == {"status": "ignored"}
    assert _track(client, "business_view").json() == {"status": "ignored"}
    assert db.query(models.AnalyticsEvent).count() == 0

    assert _track(client, "business_view", business_id=business.id).json() == {"status": "success"}


def test_track_rejects_unknown_type(client):
    assert _track(client, "offer_click", offer_id=1).status_code == 422


def test_super_admin_report(client, db, business, customer_headers, super_admin_headers):
    popular = make_offer(db, business, title="Popular")
    quiet = make_offer(db, business, title="Quiet")
    for _ in range(3):
        _track(client, "offer_view", offer_id=popular.id)
    _track(client, "offer_view", offer_id=quiet.id)
    _track(client, "offer_share", offer_id=quiet.id)
    _track(client, "business_view", business_id=business.id)
    client.post(f"/api/v1/favorites/offers/{popular.id}", headers=customer_headers)
    client.post(f"/api/v1/offers/{quiet.id}/accept", headers=customer_headers)

    response = client.get("/api/v1/analytics/super-admin/offers", headers=super_admin_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["period"] == "week"
    assert [item["title"] for item in body["items"]] == ["Popular", "Quiet"]
    assert body["items"][0]["favorites"] == 1
    assert body["items"][1]["acceptances"] == 1
    assert body["items"][1]["shares"] == 1
    assert body["totals"] == {
        "views": 4,
        "impressions": 0,
        "favorites": 1,
        "acceptances": 1,
        "shares": 1,
        "business_visits": 1,
    }


def test_report_excludes_events_outside_window(client, db, business, super_admin_headers):
    offer = make_offer(db, business)
    db.add(models.AnalyticsEvent(
        type=models.AnalyticsEventType.OFFER_VIEW,
        offer_id=offer.id,
        business_id=business.id,
        created_at=datetime.utcnow() - timedelta(days=10),
    ))
    db.commit()
    _track(client, "offer_view", offer_id=offer.id)

    week = client.get("/api/v1/analytics/super-admin/offers", params={"period": "week"},
                      headers=super_admin_headers).json()
    month = client.get("/api/v1/analytics/super-admin/offers", params={"period": "month"},
                       headers=super_admin_headers).json()
    assert week["totals"]["views"] == 1
    assert month["totals"]["views"] == 2

    now = datetime.utcnow()
    custom = client.get("/api/v1/analytics/super-admin/offers", params={
        "period": "custom",
        "start_date": (now - timedelta(days=11)).isoformat(),
        "end_date": (now - timedelta(days=9)).isoformat(),
    }, headers=super_admin_headers).json()
    assert custom["totals"]["views"] == 1


def test_report_invalid_period(client, super_admin_headers):
    response = client.get("/api/v1/analytics/super-admin/offers", params={"period": "decade"},
                          headers=super_admin_headers)
    assert response.status_code == 400
    custom = client.get("/api/v1/analytics/super-admin/offers", params={"period": "custom"},
                        headers=super_admin_headers)
    assert custom.status_code == 400


def test_business_report_is_scoped(client, db, business, owner_headers):
    mine = make_offer(db, business)
    rival = make_business(db, make_user(db, "rival@example.com", role=models.UserRole.BUSINESS))
    theirs = make_offer(db, rival)
    _track(client, "offer_view", offer_id=mine.id)
    _track(client, "offer_view", offer_id=theirs.id)
    _track(client, "business_view", business_id=rival.id)

    response = client.get("/api/v1/analytics/business/offers", params={"period": "today"},
                          headers=owner_headers)
    assert response.status_code == 200
    body = response.json()
    assert [item["offer_id"] for item in body["items"]] == [mine.id]
    assert body["totals"]["views"] == 1
    assert body["totals"]["business_visits"] == 0


def test_reports_require_roles(client, db, customer_headers, owner_headers):
    assert client.get("/api/v1/analytics/super-admin/offers", headers=owner_headers).status_code == 403
    assert client.get("/api/v1/analytics/business/offers", headers=customer_headers).status_code == 403

    lonely = make_user(db, "lonely@example.com", role=models.UserRole.BUSINESS)
    assert client.get("/api/v1/analytics/business/offers", headers=auth_headers(lonely)).status_code == 404


def test_offer_events_are_filed_under_the_offers_business(client, db, business):
    offer = make_offer(db, business)
    rival = make_business(db, make_user(db, "rival@example.com", role=models.UserRole.BUSINESS))
    assert _track(client, "offer_view", offer_id=offer.id, business_id=rival.id).json() == {"status": "success"}

    event = db.query(models.AnalyticsEvent).one()
    assert event.business_id == business.id
