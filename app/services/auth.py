import logging
from datetime import datetime, timedelta
from typing import Optional, Tuple

from fastapi import HTTPException
from jose import JWTError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app import models, schemas
from app.core import security
from app.core.config import settings
from app.core.monitoring import metrics

logger = logging.getLogger(__name__)


def ensure_user_available(db: Session, email: str, mobile_number: Optional[str] = None) -> None:
    """Raise 409 when the email or mobile number already belongs to someone."""
    if db.query(models.User).filter(models.User.email == email).first():
        raise HTTPException(status_code=409, detail="User with this email already exists")
    if mobile_number and db.query(models.User).filter(
        models.User.mobile_number == mobile_number
    ).first():
        raise HTTPException(status_code=409, detail="User with this mobile number already exists")


def create_business_owner(
    db: Session, data: schemas.BusinessRegister, password: Optional[str] = None
) -> models.Business:
    """Stage an owner account plus its pending business on the session."""
    ensure_user_available(db, data.email, data.mobile_number)

    owner = models.User(
        email=data.email,
        name=data.name,
        mobile_number=data.mobile_number,
        password_hash=security.get_password_hash(password) if password else None,
        role=models.UserRole.BUSINESS,
    )
    business_fields = data.model_dump(
        include=set(schemas.BusinessUpdate.model_fields.keys())
    )
    business = models.Business(
        owner=owner, status=models.BusinessStatus.PENDING, **business_fields
    )
    db.add(owner)
    db.add(business)
    return business


class AuthService:
    def __init__(self, db: Session):
        self.db = db

    def _commit(self) -> None:
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(status_code=409, detail="User already exists")
        except SQLAlchemyError:
            self.db.rollback()
            raise

    def register_customer(self, user_in: schemas.UserCreate) -> Tuple[models.User, str]:
        ensure_user_available(self.db, user_in.email, user_in.mobile_number)

        user = models.User(
            email=user_in.email,
            name=user_in.name,
            mobile_number=user_in.mobile_number,
            password_hash=security.get_password_hash(user_in.password),
            role=models.UserRole.CUSTOMER,
        )
        self.db.add(user)
        self._commit()
        self.db.refresh(user)

        metrics.increment("users.registered", tags={"role": user.role.value})
        return user, security.create_access_token(user.id, role=user.role.value)

    def register_business(self, business_in: schemas.BusinessRegister) -> models.Business:
        business = create_business_owner(self.db, business_in)
        self._commit()
        self.db.refresh(business)

        metrics.increment("users.registered", tags={"role": models.UserRole.BUSINESS.value})
        logger.info(f"Business application received: {business.business_name} ({business.id})")
        return business

    def authenticate(self, email: str, password: str) -> str:
        user = self.db.query(models.User).filter(models.User.email == email).first()

        if user and not user.password_hash:
            raise HTTPException(status_code=400, detail="Password has not been set for this account")
        if not user or not security.verify_password(password, user.password_hash):
            raise HTTPException(status_code=400, detail="Incorrect email or password")
        elif not user.is_active:
            raise HTTPException(status_code=400, detail="Inactive user")

        access_token = security.create_access_token(
            user.id,
            expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
            role=user.role.value,
        )

        # Update last login
        user.last_login = datetime.utcnow()
        self._commit()

        metrics.increment("auth.login", tags={"role": user.role.value})
        return access_token

    def create_reset_token(self, user: models.User, expires_delta: timedelta) -> str:
        return security.create_password_reset_token(user.id, user.password_hash, expires_delta)

    def request_password_reset(self, email: str) -> Optional[Tuple[models.User, str]]:
        user = self.db.query(models.User).filter(models.User.email == email).first()
        if not user or not user.is_active:
            logger.info("Password reset requested for unknown or inactive account")
            return None
        token = self.create_reset_token(
            user, timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES)
        )
        return user, token

    def reset_password(self, token: str, new_password: str) -> models.User:
        try:
            payload = security.decode_token(token, security.RESET_TOKEN_TYPE)
            user_id = int(payload["sub"])
        except (JWTError, KeyError, ValueError):
            raise HTTPException(status_code=400, detail="Invalid or expired token")

        user = self.db.query(models.User).filter(models.User.id == user_id).first()
        if not user:
            raise HTTPException(status_code=400, detail="Invalid or expired token")
        if payload.get("pwd") != security.password_fingerprint(user.password_hash):
            raise HTTPException(status_code=400, detail="Token has already been used")

        user.password_hash = security.get_password_hash(new_password)
        # Following an emailed link proves ownership of the address
        user.is_verified = True
        self._commit()
        self.db.refresh(user)

        metrics.increment("auth.password_reset")
        return user

    def issue_otp(self, user: models.User) -> str:
        now = datetime.utcnow()
        self.db.query(models.EmailOtp).filter(
            models.EmailOtp.user_id == user.id,
            models.EmailOtp.consumed_at.is_(None),
        ).update({models.EmailOtp.consumed_at: now}, synchronize_session=False)

        code = security.generate_otp()
        self.db.add(models.EmailOtp(
            user_id=user.id,
            code_hash=security.get_password_hash(code),
            expires_at=now + timedelta(minutes=settings.OTP_EXPIRE_MINUTES),
            created_at=now,
        ))
        self._commit()
        return code

    def verify_otp(self, user: models.User, code: str) -> models.User:
        otp = self.db.query(models.EmailOtp).filter(
            models.EmailOtp.user_id == user.id,
            models.EmailOtp.consumed_at.is_(None),
        ).order_by(models.EmailOtp.id.desc()).first()

        if not otp:
            raise HTTPException(status_code=400, detail="No verification code requested")

        now = datetime.utcnow()
        if otp.expires_at <= now:
            otp.consumed_at = now
            self._commit()
            raise HTTPException(status_code=400, detail="Verification code has expired")

        if not security.verify_password(code, otp.code_hash):
            otp.attempts += 1
            if otp.attempts >= settings.OTP_MAX_ATTEMPTS:
                otp.consumed_at = now
            self._commit()
            raise HTTPException(status_code=400, detail="Invalid verification code")

        otp.consumed_at = now
        user.is_verified = True
        self._commit()
        self.db.refresh(user)
        return user

    def save_fcm_token(self, user: models.User, fcm_token: str) -> models.User:
        user.fcm_token = fcm_token
        self._commit()
        self.db.refresh(user)
        return user
