from datetime import datetime, timedelta

from app import models
from app.services import offer_scheduler
from app.workers.celery_app import celery_app
from app.workers.tasks import refresh_offer_statuses

from conftest import make_offer, make_user

NOW = datetime(2026, 10, 19, 12, 0, 0)


def _statuses(db, *offers):
    db.expire_all()
    return [db.get(models.Offer, offer.id).status for offer in offers]


def test_activate_offers(db, business):
    due = make_offer(db, business, status=models.OfferStatus.SCHEDULED,
                     start=NOW - timedelta(minutes=1), end=NOW + timedelta(hours=1))
    later = make_offer(db, business, status=models.OfferStatus.SCHEDULED,
                       start=NOW + timedelta(minutes=1), end=NOW + timedelta(hours=1))
    draft = make_offer(db, business, status=models.OfferStatus.DRAFT,
                       start=NOW - timedelta(minutes=1), end=NOW + timedelta(hours=1))

    assert offer_scheduler.activate_offers(db, NOW) == 1
    db.commit()
    assert _statuses(db, due, later, draft) == [
        models.OfferStatus.ACTIVE, models.OfferStatus.SCHEDULED, models.OfferStatus.DRAFT,
    ]


def test_expire_offers(db, business):
    ended = make_offer(db, business, status=models.OfferStatus.ACTIVE,
                       start=NOW - timedelta(hours=2), end=NOW)
    running = make_offer(db, business, status=models.OfferStatus.ACTIVE,
                         start=NOW - timedelta(hours=2), end=NOW + timedelta(seconds=1))
    never_started = make_offer(db, business, status=models.OfferStatus.SCHEDULED,
                               start=NOW - timedelta(hours=2), end=NOW - timedelta(hours=1))
    draft = make_offer(db, business, status=models.OfferStatus.DRAFT,
                       start=NOW - timedelta(hours=2), end=NOW - timedelta(hours=1))

    assert offer_scheduler.expire_offers(db, NOW) == 2
    db.commit()
    assert _statuses(db, ended, running, never_started, draft) == [
        models.OfferStatus.EXPIRED, models.OfferStatus.ACTIVE,
        models.OfferStatus.EXPIRED, models.OfferStatus.DRAFT,
    ]


def test_expire_acceptances(db, business):
    offer = make_offer(db, business)
    customer = make_user(db, "c@example.com")
    lapsed = models.OfferAcceptance(user_id=customer.id, offer_id=offer.id, qr_code="lapsed",
                                    accepted_at=NOW - timedelta(days=2), expires_at=NOW - timedelta(days=1))
    valid = models.OfferAcceptance(user_id=customer.id, offer_id=offer.id, qr_code="valid",
                                   accepted_at=NOW, expires_at=NOW + timedelta(days=1))
    redeemed = models.OfferAcceptance(user_id=customer.id, offer_id=offer.id, qr_code="used",
                                      status=models.AcceptanceStatus.REDEEMED,
                                      accepted_at=NOW - timedelta(days=2), expires_at=NOW - timedelta(days=1))
    db.add_all([lapsed, valid, redeemed])
    db.commit()

    assert offer_scheduler.expire_acceptances(db, NOW) == 1
    db.commit()
    db.expire_all()
    assert db.get(models.OfferAcceptance, lapsed.id).status == models.AcceptanceStatus.EXPIRED
    assert db.get(models.OfferAcceptance, valid.id).status == models.AcceptanceStatus.PENDING
    assert db.get(models.OfferAcceptance, redeemed.id).status == models.AcceptanceStatus.REDEEMED


def test_refresh_runs_all_transitions(db, business):
    make_offer(db, business, status=models.OfferStatus.SCHEDULED,
               start=NOW - timedelta(minutes=1), end=NOW + timedelta(hours=1))
    make_offer(db, business, status=models.OfferStatus.ACTIVE,
               start=NOW - timedelta(hours=2), end=NOW - timedelta(minutes=1))

    counts = offer_scheduler.refresh_offer_statuses(db=db, now=NOW)
    assert counts == {"activated": 1, "expired": 1, "acceptances_expired": 0}

    again = offer_scheduler.refresh_offer_statuses(db=db, now=NOW)
    assert again == {"activated": 0, "expired": 0, "acceptances_expired": 0}


def test_celery_task_uses_its_own_session(db, business):
    now = datetime.utcnow()
    offer = make_offer(db, business, status=models.OfferStatus.SCHEDULED,
                       start=now - timedelta(minutes=1), end=now + timedelta(hours=1))

    result = refresh_offer_statuses.apply()
    assert result.successful()
    assert result.get()["activated"] == 1
    assert _statuses(db, offer) == [models.OfferStatus.ACTIVE]


def test_beat_schedule_registered():
    entry = celery_app.conf.beat_schedule["refresh-offer-statuses"]
    assert entry["task"] == "app.workers.tasks.refresh_offer_statuses"
    assert entry["schedule"] == 60.0
