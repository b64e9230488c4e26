from app import models
from app.core.config import settings

from conftest import PASSWORD, make_business, make_offer, make_user


def _pending_business(db, email="pending@example.com"):
    owner = make_user(db, email, role=models.UserRole.BUSINESS, password_hash=None)
    return make_business(db, owner, status=models.BusinessStatus.PENDING, business_name="Pending Bakery")


def test_list_pending_businesses(client, db, business, staff_headers):
    pending = _pending_business(db)
    response = client.get("/api/v1/admin/businesses", headers=staff_headers)
    assert response.status_code == 200
    body = response.json()
    assert [b["id"] for b in body] == [pending.id]
    assert body[0]["owner"]["email"] == "pending@example.com"

    approved = client.get("/api/v1/admin/businesses", params={"status": "approved"}, headers=staff_headers)
    assert [b["id"] for b in approved.json()] == [business.id]


def test_list_businesses_invalid_status(client, staff_headers):
    response = client.get("/api/v1/admin/businesses", params={"status": "banned"}, headers=staff_headers)
    assert response.status_code == 400


def test_approvals_forbidden_for_customers_and_owners(client, db, customer_headers, owner_headers):
    pending = _pending_business(db)
    for headers in (customer_headers, owner_headers):
        assert client.get("/api/v1/admin/businesses", headers=headers).status_code == 403
        assert client.post(f"/api/v1/admin/businesses/{pending.id}/approve", headers=headers).status_code == 403


def test_approve_sends_set_password_link(client, db, staff, staff_headers, outbox):
    pending = _pending_business(db)
    response = client.post(f"/api/v1/admin/businesses/{pending.id}/approve",
                           json={"review_note": "Looks good"}, headers=staff_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "approved"
    assert body["review_note"] == "Looks good"
    assert body["approved_at"] is not None

    db.refresh(pending)
    assert pending.approved_by == staff.id

    assert outbox[0]["template"] == "business_approved.html"
    token = outbox[0]["context"]["token"]
    assert f"{settings.FRONTEND_URL}/set-password?token={token}" in outbox[0]["html"]

    set_password = client.post("/api/v1/auth/reset-password", json={"token": token, "new_password": "owner123"})
    assert set_password.status_code == 200
    login = client.post("/api/v1/auth/login", data={"username": "pending@example.com", "password": "owner123"})
    assert login.status_code == 200


def test_approve_without_body(client, db, staff_headers):
    pending = _pending_business(db)
    response = client.post(f"/api/v1/admin/businesses/{pending.id}/approve", headers=staff_headers)
    assert response.status_code == 200
    again = client.post(f"/api/v1/admin/businesses/{pending.id}/approve", headers=staff_headers)
    assert again.status_code == 400


def test_reject_emails_reason(client, db, super_admin_headers, outbox):
    pending = _pending_business(db)
    response = client.post(f"/api/v1/admin/businesses/{pending.id}/reject",
                           json={"review_note": "Missing ABN"}, headers=super_admin_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "rejected"
    assert response.json()["approved_at"] is None

    assert outbox[0]["template"] == "business_rejected.html"
    assert "Missing ABN" in outbox[0]["html"]
    assert f"{settings.FRONTEND_URL}/help/business-guidelines" in outbox[0]["html"]


def test_email_failure_does_not_fail_approval(client, db, staff_headers, email_service):
    class Broken:
        async def send(self, *args, **kwargs):
            raise RuntimeError("smtp down")

    email_service.backend = Broken()
    pending = _pending_business(db)
    response = client.post(f"/api/v1/admin/businesses/{pending.id}/approve", headers=staff_headers)
    assert response.status_code == 200
    db.refresh(pending)
    assert pending.status == models.BusinessStatus.APPROVED


def test_get_business_for_review(client, db, staff_headers):
    pending = _pending_business(db)
    assert client.get(f"/api/v1/admin/businesses/{pending.id}", headers=staff_headers).status_code == 200
    assert client.get("/api/v1/admin/businesses/9999", headers=staff_headers).status_code == 404


def test_dashboard(client, db, business, customer, super_admin_headers, staff_headers):
    _pending_business(db)
    make_offer(db, business)
    make_offer(db, business, status=models.OfferStatus.DRAFT)

    assert client.get("/api/v1/admin/dashboard", headers=staff_headers).status_code == 403
    response = client.get("/api/v1/admin/dashboard", headers=super_admin_headers)
    assert response.json() == {
        "total_businesses": 2,
        "pending_businesses": 1,
        "approved_businesses": 1,
        "rejected_businesses": 0,
        "total_offers": 2,
        "active_offers": 1,
        "total_customers": 1,
    }


def test_offers_with_stats(client, db, business, customer, customer_headers, owner_headers, super_admin_headers):
    offer = make_offer(db, business)
    client.post(f"/api/v1/favorites/offers/{offer.id}", headers=customer_headers)
    code = client.post(f"/api/v1/offers/{offer.id}/accept", headers=customer_headers).json()["qr_code"]
    client.post("/api/v1/offers/redeem", json={"qr_code": code}, headers=owner_headers)
    other = make_user(db, "bob@example.com")
    db.add(models.OfferAcceptance(user_id=other.id, offer_id=offer.id, qr_code="pending-code",
                                  expires_at=offer.end_date_time))
    db.commit()

    response = client.get("/api/v1/admin/offers", headers=super_admin_headers)
    assert response.status_code == 200
    row = response.json()[0]
    assert row["business_name"] == business.business_name
    assert row["favorites_count"] == 1
    assert row["acceptances_count"] == 2
    assert row["redeemed_count"] == 1
    assert row["pending_count"] == 1


def test_businesses_with_stats_and_detail(client, db, business, super_admin_headers):
    make_offer(db, business)
    make_offer(db, business, status=models.OfferStatus.EXPIRED)
    for i, rating in enumerate((3, 4)):
        reviewer = make_user(db, f"r{i}@example.com")
        db.add(models.Review(user_id=reviewer.id, business_id=business.id, rating=rating, comment="ok"))
    db.commit()

    listing = client.get("/api/v1/admin/businesses/all", headers=super_admin_headers)
    assert listing.status_code == 200
    row = listing.json()[0]
    assert row["offer_count"] == 2
    assert row["active_offer_count"] == 1
    assert row["average_rating"] == 3.5
    assert row["review_count"] == 2

    detail = client.get(f"/api/v1/admin/businesses/{business.id}/detailed", headers=super_admin_headers)
    assert detail.status_code == 200
    body = detail.json()
    assert len(body["offers"]) == 2
    assert len(body["reviews"]) == 2
    assert body["reviews"][0]["user_name"]


def test_onboard_business_auto_approve(client, db, super_admin_headers, outbox):
    response = client.post("/api/v1/admin/businesses/onboard", json={
        "name": "Dan", "email": "dan@example.com", "business_name": "Dan's Deli",
        "auto_approve": True,
    }, headers=super_admin_headers)
    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "approved"
    assert body["owner"]["role"] == "business"
    assert outbox[0]["template"] == "business_approved.html"


def test_onboard_business_with_password(client, db, super_admin_headers, outbox):
    response = client.post("/api/v1/admin/businesses/onboard", json={
        "name": "Eve", "email": "eve@example.com", "business_name": "Eve's Eats",
        "password": "evepass1",
    }, headers=super_admin_headers)
    assert response.status_code == 201
    assert response.json()["status"] == "pending"
    assert outbox == []

    login = client.post("/api/v1/auth/login", data={"username": "eve@example.com", "password": "evepass1"})
    assert login.status_code == 200


def test_onboard_duplicate_owner(client, customer, super_admin_headers):
    response = client.post("/api/v1/admin/businesses/onboard", json={
        "name": "Dup", "email": customer.email, "business_name": "Dup Co",
    }, headers=super_admin_headers)
    assert response.status_code == 409


def test_create_owner_reassigns_business(client, db, business, super_admin_headers):
    response = client.post(f"/api/v1/admin/businesses/{business.id}/owner", json={
        "name": "New Owner", "email": "newowner@example.com", "password": "newpass1",
    }, headers=super_admin_headers)
    assert response.status_code == 200
    assert response.json()["owner"]["email"] == "newowner@example.com"

    login = client.post("/api/v1/auth/login", data={"username": "newowner@example.com", "password": "newpass1"})
    token = login.json()["access_token"]
    me = client.get("/api/v1/business/me", headers={"Authorization": f"Bearer {token}"})
    assert me.json()["id"] == business.id


def test_create_staff_account(client, super_admin_headers):
    response = client.post("/api/v1/admin/staff", json={
        "name": "Mod", "email": "mod@example.com", "password": PASSWORD,
    }, headers=super_admin_headers)
    assert response.status_code == 201
    assert response.json()["role"] == "staff"


def test_all_acceptances(client, db, business, customer_headers, super_admin_headers):
    offer = make_offer(db, business)
    client.post(f"/api/v1/offers/{offer.id}/accept", headers=customer_headers)
    response = client.get("/api/v1/admin/acceptances", headers=super_admin_headers)
    assert response.status_code == 200
    assert len(response.json()) == 1
