from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Union
import secrets

from jose import jwt, JWTError
from passlib.context import CryptContext
from app.core.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ACCESS_TOKEN_TYPE = "access"
RESET_TOKEN_TYPE = "reset"


def create_access_token(
    subject: Union[str, Any], expires_delta: timedelta = None, role: Optional[str] = None
) -> str:
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(
            minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
        )
    to_encode = {"exp": expire, "sub": str(subject), "type": ACCESS_TOKEN_TYPE}
    if role:
        to_encode["role"] = role
    encoded_jwt = jwt.encode(
        to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM
    )
    return encoded_jwt


def password_fingerprint(password_hash: Optional[str]) -> str:
    # Changes whenever the password does, which retires outstanding reset tokens.
    return (password_hash or "")[-12:]


def create_password_reset_token(
    user_id: int, password_hash: Optional[str], expires_delta: timedelta
) -> str:
    to_encode = {
        "exp": datetime.utcnow() + expires_delta,
        "sub": str(user_id),
        "type": RESET_TOKEN_TYPE,
        "pwd": password_fingerprint(password_hash),
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str, expected_type: str) -> Dict[str, Any]:
    """Decode a signed token and check its ``type`` claim.

    Raises ``JWTError`` for bad signatures, expiry or a type mismatch.
    """
    payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    if payload.get("type") != expected_type:
        raise JWTError("Unexpected token type")
    return payload


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def generate_otp(length: int = 6) -> str:
    return "".join(secrets.choice("0123456789") for _ in range(length))


def generate_redemption_code() -> str:
    return secrets.token_urlsafe(24)
