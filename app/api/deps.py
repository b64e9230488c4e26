from typing import Callable, Generator, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from pydantic import ValidationError
from sqlalchemy.orm import Session

from app import models
from app.core import security
from app.core.config import settings
from app.db.session import SessionLocal
from app.schemas.token import TokenPayload
from app.services.email import EmailService, email_service

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/login")
optional_oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_V1_STR}/auth/login", auto_error=False
)


def get_db() -> Generator:
    try:
        db = SessionLocal()
        yield db
    finally:
        db.close()


def get_email_service() -> EmailService:
    return email_service


def _user_from_token(db: Session, token: str) -> models.User:
    try:
        payload = security.decode_token(token, security.ACCESS_TOKEN_TYPE)
        token_data = TokenPayload(**payload)
    except (JWTError, ValidationError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    user = db.query(models.User).filter(models.User.id == token_data.sub).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


def get_current_user(
    db: Session = Depends(get_db),
    token: str = Depends(oauth2_scheme)
) -> models.User:
    return _user_from_token(db, token)


def get_current_active_user(
    current_user: models.User = Depends(get_current_user),
) -> models.User:
    if not current_user.is_active:
        raise HTTPException(status_code=400, detail="Inactive user")
    return current_user


def get_optional_user(
    db: Session = Depends(get_db),
    token: Optional[str] = Depends(optional_oauth2_scheme),
) -> Optional[models.User]:
    """Anonymous callers get ``None``; a bad token is ignored the same way."""
    if not token:
        return None
    try:
        user = _user_from_token(db, token)
    except HTTPException:
        return None
    return user if user.is_active else None


def require_roles(*roles: models.UserRole) -> Callable[..., models.User]:
    def checker(
        current_user: models.User = Depends(get_current_active_user),
    ) -> models.User:
        if current_user.role not in roles:
            raise HTTPException(status_code=403, detail="Not enough permissions")
        return current_user
    return checker


get_customer = require_roles(models.UserRole.CUSTOMER)
get_business_owner = require_roles(models.UserRole.BUSINESS)
get_moderator = require_roles(models.UserRole.STAFF, models.UserRole.SUPER_ADMIN)
get_super_admin = require_roles(models.UserRole.SUPER_ADMIN)
