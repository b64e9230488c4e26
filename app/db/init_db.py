import logging

from sqlalchemy.orm import Session

from app import models
from app.core.config import settings
from app.core.security import get_password_hash
from app.db import base
from app.db.session import engine

logger = logging.getLogger(__name__)


def init_db() -> None:
    base.Base.metadata.create_all(bind=engine)


def seed_superadmin(db: Session) -> models.User:
    """Create the platform super admin if it does not exist yet."""
    user = db.query(models.User).filter(
        models.User.email == settings.SUPERADMIN_EMAIL
    ).first()
    if user:
        logger.info("Super admin already present")
        return user

    user = models.User(
        email=settings.SUPERADMIN_EMAIL,
        name="Super Admin",
        password_hash=get_password_hash(settings.SUPERADMIN_PASSWORD),
        role=models.UserRole.SUPER_ADMIN,
        is_active=True,
        is_verified=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"Super admin created: {user.email}")
    return user
