import os
import tempfile

os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ["EMAIL_BACKEND"] = "console"
os.environ["ENVIRONMENT"] = "test"
os.environ.setdefault("UPLOAD_DIR", os.path.join(tempfile.gettempdir(), "shout-test-uploads"))

from datetime import datetime, timedelta  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app import models  # noqa: E402
from app.main import app  # noqa: E402
from app.api.deps import get_db, get_email_service  # noqa: E402
from app.core.security import create_access_token, get_password_hash  # noqa: E402
from app.db.base import Base  # noqa: E402
from app.db.session import SessionLocal, engine  # noqa: E402
from app.services.email import ConsoleEmailBackend, EmailService  # noqa: E402

TestingSessionLocal = SessionLocal
PASSWORD = "secret123"
# Hashed once for the whole suite
PASSWORD_HASH = get_password_hash(PASSWORD)


def override_get_db():
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def setup_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def email_service():
    service = EmailService(backend=ConsoleEmailBackend(outbox=[]))
    app.dependency_overrides[get_email_service] = lambda: service
    yield service
    app.dependency_overrides.pop(get_email_service, None)


@pytest.fixture
def outbox(email_service):
    return email_service.backend.outbox


@pytest.fixture
def client(email_service):
    return TestClient(app)


@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


def make_user(db, email, role=models.UserRole.CUSTOMER, password_hash=PASSWORD_HASH, **kwargs):
    user = models.User(
        email=email,
        name=kwargs.pop("name", email.split("@")[0].title()),
        password_hash=password_hash,
        role=role,
        is_active=kwargs.pop("is_active", True),
        **kwargs,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_business(
    db,
    owner,
    status=models.BusinessStatus.APPROVED,
    latitude=-33.8688,
    longitude=151.2093,
    **kwargs,
):
    business = models.Business(
        owner_id=owner.id,
        business_name=kwargs.pop("business_name", f"{owner.name}'s Cafe"),
        category=kwargs.pop("category", "food"),
        address=kwargs.pop("address", "1 George St, Sydney"),
        latitude=latitude,
        longitude=longitude,
        status=status,
        **kwargs,
    )
    db.add(business)
    db.commit()
    db.refresh(business)
    return business


def make_offer(db, business, status=models.OfferStatus.ACTIVE, start=None, end=None, **kwargs):
    now = datetime.utcnow()
    offer = models.Offer(
        business_id=business.id,
        creator_id=business.owner_id,
        title=kwargs.pop("title", "Two for one coffee"),
        description=kwargs.pop("description", "Bring a friend"),
        start_date_time=start or now - timedelta(hours=1),
        end_date_time=end or now + timedelta(days=1),
        status=status,
        qr_validity_days=kwargs.pop("qr_validity_days", 1),
        **kwargs,
    )
    db.add(offer)
    db.commit()
    db.refresh(offer)
    return offer


def auth_headers(user):
    token = create_access_token(user.id, role=user.role.value)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def customer(db):
    return make_user(db, "alice@example.com")


@pytest.fixture
def customer_headers(customer):
    return auth_headers(customer)


@pytest.fixture
def owner(db):
    return make_user(db, "owner@example.com", role=models.UserRole.BUSINESS)


@pytest.fixture
def business(db, owner):
    return make_business(db, owner)


@pytest.fixture
def owner_headers(owner):
    return auth_headers(owner)


@pytest.fixture
def staff(db):
    return make_user(db, "staff@example.com", role=models.UserRole.STAFF)


@pytest.fixture
def staff_headers(staff):
    return auth_headers(staff)


@pytest.fixture
def super_admin(db):
    return make_user(db, "root@example.com", role=models.UserRole.SUPER_ADMIN)


@pytest.fixture
def super_admin_headers(super_admin):
    return auth_headers(super_admin)
