import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from app import models, schemas
from app.api import deps
from app.services.auth import AuthService
from app.services.email import EmailService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/register", response_model=schemas.UserRegistered, status_code=201)
def register(
    *,
    db: Session = Depends(deps.get_db),
    user_in: schemas.UserCreate,
) -> Any:
    """Register new customer"""
    user, access_token = AuthService(db).register_customer(user_in)
    return {"user": user, "access_token": access_token, "token_type": "bearer"}


@router.post("/register-business", response_model=schemas.Business, status_code=201)
async def register_business(
    *,
    db: Session = Depends(deps.get_db),
    email: EmailService = Depends(deps.get_email_service),
    business_in: schemas.BusinessRegister,
) -> Any:
    """Submit a business application for review"""
    business = AuthService(db).register_business(business_in)
    try:
        await email.send_application_received(business.owner, business)
    except Exception as e:
        logger.error(f"Failed to send application email for business {business.id}: {e}")
    return business


@router.post("/login", response_model=schemas.Token)
def login(
    db: Session = Depends(deps.get_db),
    form_data: OAuth2PasswordRequestForm = Depends()
) -> Any:
    """OAuth2 compatible token login"""
    access_token = AuthService(db).authenticate(form_data.username, form_data.password)
    return {
        "access_token": access_token,
        "token_type": "bearer",
    }


@router.get("/me", response_model=schemas.User)
def read_users_me(
    current_user: models.User = Depends(deps.get_current_active_user),
) -> Any:
    """Get current user"""
    return current_user


@router.post("/forgot-password", response_model=schemas.Message)
async def forgot_password(
    *,
    db: Session = Depends(deps.get_db),
    email: EmailService = Depends(deps.get_email_service),
    body: schemas.ForgotPassword,
) -> Any:
    """Email a password reset link; the answer is the same for unknown addresses"""
    result = AuthService(db).request_password_reset(body.email)
    if result:
        user, token = result
        try:
            await email.send_password_reset(user, token)
        except Exception as e:
            logger.error(f"Failed to send password reset email to user {user.id}: {e}")
    return {"message": "If that account exists, a reset link has been sent"}


@router.post("/reset-password", response_model=schemas.Message)
def reset_password(
    *,
    db: Session = Depends(deps.get_db),
    body: schemas.ResetPassword,
) -> Any:
    """Set a new password using a reset or invite token"""
    AuthService(db).reset_password(body.token, body.new_password)
    return {"message": "Password updated successfully"}


@router.post("/send-otp", response_model=schemas.Message)
async def send_otp(
    db: Session = Depends(deps.get_db),
    email: EmailService = Depends(deps.get_email_service),
    current_user: models.User = Depends(deps.get_current_active_user),
) -> Any:
    """Email a one-time verification code"""
    code = AuthService(db).issue_otp(current_user)
    try:
        await email.send_otp(current_user, code)
    except Exception as e:
        logger.error(f"Failed to send OTP to user {current_user.id}: {e}")
        raise HTTPException(status_code=502, detail="Could not send verification code")
    return {"message": "Verification code sent"}


@router.post("/verify-otp", response_model=schemas.User)
def verify_otp(
    *,
    db: Session = Depends(deps.get_db),
    body: schemas.OtpVerify,
    current_user: models.User = Depends(deps.get_current_active_user),
) -> Any:
    """Confirm the emailed code and mark the account verified"""
    return AuthService(db).verify_otp(current_user, body.code)


@router.post("/fcm-token", response_model=schemas.Message)
def save_fcm_token(
    *,
    db: Session = Depends(deps.get_db),
    body: schemas.FcmTokenUpdate,
    current_user: models.User = Depends(deps.get_current_active_user),
) -> Any:
    """Store the device token used for push notifications"""
    AuthService(db).save_fcm_token(current_user, body.fcm_token)
    return {"message": "FCM token saved"}
