from datetime import datetime, timedelta, timezone

import pytest

from app import models
from app.services.offers import resolve_status

from conftest import auth_headers, make_business, make_offer, make_user

NOW = datetime(2026, 10, 19, 12, 0, 0)


@pytest.mark.parametrize("start,end,requested,expected", [
    (NOW - timedelta(hours=1), NOW + timedelta(hours=1), models.OfferStatus.DRAFT, models.OfferStatus.DRAFT),
    (NOW + timedelta(hours=1), NOW + timedelta(hours=2), models.OfferStatus.SCHEDULED, models.OfferStatus.SCHEDULED),
    (NOW - timedelta(hours=1), NOW + timedelta(hours=1), models.OfferStatus.SCHEDULED, models.OfferStatus.ACTIVE),
    (NOW, NOW + timedelta(hours=1), models.OfferStatus.SCHEDULED, models.OfferStatus.ACTIVE),
    (NOW - timedelta(hours=2), NOW, models.OfferStatus.ACTIVE, models.OfferStatus.EXPIRED),
])
def test_resolve_status(start, end, requested, expected):
    assert resolve_status(start, end, requested, NOW) == expected


def _payload(**overrides):
    now = datetime.utcnow()
    payload = {
        "title": "Half price pastries",
        "description": "After 3pm",
        "start_date_time": (now + timedelta(hours=1)).isoformat(),
        "end_date_time": (now + timedelta(days=2)).isoformat(),
    }
    payload.update(overrides)
    return payload


def test_create_offer_defaults_to_draft(client, business, owner_headers):
    response = client.post("/api/v1/offers/", json=_payload(), headers=owner_headers)
    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "draft"
    assert body["qr_validity_days"] == 1
    assert body["business"]["id"] == business.id


def test_create_scheduled_offer_resolves_status(client, business, owner_headers):
    future = client.post("/api/v1/offers/", json=_payload(status="scheduled"), headers=owner_headers)
    assert future.json()["status"] == "scheduled"

    now = datetime.utcnow()
    live = client.post("/api/v1/offers/", json=_payload(
        status="scheduled",
        start_date_time=(now - timedelta(minutes=5)).isoformat(),
    ), headers=owner_headers)
    assert live.json()["status"] == "active"


def test_create_offer_normalizes_timezones(client, business, owner_headers):
    start = datetime.now(timezone(timedelta(hours=10))) + timedelta(hours=3)
    response = client.post("/api/v1/offers/", json=_payload(
        start_date_time=start.isoformat(),
        end_date_time=(start + timedelta(hours=1)).isoformat(),
    ), headers=owner_headers)
    assert response.status_code == 201
    stored = datetime.fromisoformat(response.json()["start_date_time"])
    assert stored.tzinfo is None
    assert abs(stored - start.astimezone(timezone.utc).replace(tzinfo=None)) < timedelta(seconds=1)


def test_create_offer_validation(client, business, owner_headers):
    now = datetime.utcnow()
    backwards = _payload(start_date_time=(now + timedelta(days=2)).isoformat(),
                         end_date_time=(now + timedelta(days=1)).isoformat())
    assert client.post("/api/v1/offers/", json=backwards, headers=owner_headers).status_code == 422
    assert client.post("/api/v1/offers/", json=_payload(status="active"), headers=owner_headers).status_code == 422
    assert client.post("/api/v1/offers/", json=_payload(qr_validity_days=0), headers=owner_headers).status_code == 422

    past = _payload(status="scheduled",
                    start_date_time=(now - timedelta(days=2)).isoformat(),
                    end_date_time=(now - timedelta(days=1)).isoformat())
    assert client.post("/api/v1/offers/", json=past, headers=owner_headers).status_code == 400


def test_create_offer_requires_approved_business(client, db):
    owner = make_user(db, "new@example.com", role=models.UserRole.BUSINESS)
    make_business(db, owner, status=models.BusinessStatus.PENDING)
    response = client.post("/api/v1/offers/", json=_payload(), headers=auth_headers(owner))
    assert response.status_code == 403


def test_customer_cannot_create_offer(client, customer_headers):
    assert client.post("/api/v1/offers/", json=_payload(), headers=customer_headers).status_code == 403


def test_update_offer(client, db, business, owner_headers):
    offer = make_offer(db, business, status=models.OfferStatus.DRAFT)
    response = client.put(f"/api/v1/offers/{offer.id}", json={"title": "Updated"}, headers=owner_headers)
    assert response.status_code == 200
    assert response.json()["title"] == "Updated"
    assert response.json()["status"] == "draft"

    scheduled = client.put(f"/api/v1/offers/{offer.id}", json={"status": "scheduled"}, headers=owner_headers)
    assert scheduled.json()["status"] == "active"


def test_update_offer_rejects_inverted_window(client, db, business, owner_headers):
    offer = make_offer(db, business, status=models.OfferStatus.DRAFT)
    response = client.put(f"/api/v1/offers/{offer.id}", json={
        "end_date_time": (offer.start_date_time - timedelta(hours=1)).isoformat(),
    }, headers=owner_headers)
    assert response.status_code == 400


def test_update_offer_not_owner(client, db, business):
    offer = make_offer(db, business)
    other = make_user(db, "other@example.com", role=models.UserRole.BUSINESS)
    make_business(db, other)
    response = client.put(f"/api/v1/offers/{offer.id}", json={"title": "Mine"}, headers=auth_headers(other))
    assert response.status_code == 403


def test_update_expired_offer(client, db, business, owner_headers):
    offer = make_offer(db, business, status=models.OfferStatus.EXPIRED)
    response = client.put(f"/api/v1/offers/{offer.id}", json={"title": "Again"}, headers=owner_headers)
    assert response.status_code == 400


def test_publish_offer(client, db, business, owner_headers):
    now = datetime.utcnow()
    draft = make_offer(db, business, status=models.OfferStatus.DRAFT,
                       start=now + timedelta(hours=2), end=now + timedelta(days=1))
    response = client.post(f"/api/v1/offers/{draft.id}/publish", headers=owner_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "scheduled"

    again = client.post(f"/api/v1/offers/{draft.id}/publish", headers=owner_headers)
    assert again.status_code == 400


def test_publish_offer_past_end(client, db, business, owner_headers):
    now = datetime.utcnow()
    draft = make_offer(db, business, status=models.OfferStatus.DRAFT,
                       start=now - timedelta(days=2), end=now - timedelta(days=1))
    assert client.post(f"/api/v1/offers/{draft.id}/publish", headers=owner_headers).status_code == 400


def test_delete_offer(client, db, business, owner_headers, customer_headers):
    offer = make_offer(db, business)
    assert client.delete(f"/api/v1/offers/{offer.id}", headers=customer_headers).status_code == 403
    assert client.delete(f"/api/v1/offers/{offer.id}", headers=owner_headers).status_code == 200
    assert client.get(f"/api/v1/offers/{offer.id}").status_code == 404


def test_repost_offer(client, db, business, owner_headers):
    original = make_offer(db, business, status=models.OfferStatus.EXPIRED, qr_validity_days=3)
    response = client.post(f"/api/v1/offers/{original.id}/repost", headers=owner_headers)
    assert response.status_code == 201
    body = response.json()
    assert body["title"] == f"REPOST: {original.title}"
    assert body["status"] == "draft"
    assert body["reposted_from_offer_id"] == original.id
    assert body["qr_validity_days"] == 3

    start = datetime.fromisoformat(body["start_date_time"])
    end = datetime.fromisoformat(body["end_date_time"])
    assert end - start == timedelta(days=7)


def test_list_my_offers(client, db, business, owner_headers):
    first = make_offer(db, business)
    second = make_offer(db, business, status=models.OfferStatus.DRAFT)
    other_owner = make_user(db, "x@example.com", role=models.UserRole.BUSINESS)
    make_offer(db, make_business(db, other_owner))

    response = client.get("/api/v1/offers/mine", headers=owner_headers)
    assert [o["id"] for o in response.json()] == [second.id, first.id]


def test_get_offer_public(client, db, business):
    offer = make_offer(db, business)
    response = client.get(f"/api/v1/offers/{offer.id}")
    assert response.status_code == 200
    assert response.json()["business"]["business_name"] == business.business_name
    assert client.get("/api/v1/offers/9999").status_code == 404


def test_nearby_offers(client, db, business):
    now = datetime.utcnow()
    older = make_offer(db, business, start=now - timedelta(hours=5), title="Older")
    newer = make_offer(db, business, start=now - timedelta(hours=1), title="Newer")
    make_offer(db, business, status=models.OfferStatus.SCHEDULED, start=now + timedelta(hours=1))
    make_offer(db, business, status=models.OfferStatus.DRAFT)
    # Status not yet refreshed by the scheduler but already past its end
    make_offer(db, business, start=now - timedelta(days=2), end=now - timedelta(minutes=1))

    faraway = make_business(db, make_user(db, "perth@example.com", role=models.UserRole.BUSINESS),
                            latitude=-31.9505, longitude=115.8605)
    make_offer(db, faraway)

    response = client.get("/api/v1/offers/nearby", params={"latitude": -33.8688, "longitude": 151.2093})
    assert response.status_code == 200
    body = response.json()
    assert [o["id"] for o in body] == [newer.id, older.id]
    assert body[0]["distance_in_meters"] < 1
    assert body[0]["business"]["id"] == business.id
