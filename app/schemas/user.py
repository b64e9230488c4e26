from typing import Optional
from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from app.models import UserRole


class UserBase(BaseModel):
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=255)
    mobile_number: Optional[str] = Field(None, max_length=20)


class UserCreate(UserBase):
    password: str = Field(..., min_length=6)


class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    mobile_number: Optional[str] = Field(None, max_length=20)
    password: Optional[str] = Field(None, min_length=6)


class UserInDBBase(UserBase):
    id: int
    role: UserRole
    is_active: bool
    is_verified: bool
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class User(UserInDBBase):
    pass


class UserInDB(UserInDBBase):
    password_hash: Optional[str] = None


class UserRegistered(BaseModel):
    user: User
    access_token: str
    token_type: str = "bearer"


class ForgotPassword(BaseModel):
    email: EmailStr


class ResetPassword(BaseModel):
    token: str
    new_password: str = Field(..., min_length=6)


class OtpVerify(BaseModel):
    code: str = Field(..., min_length=4, max_length=10)


class FcmTokenUpdate(BaseModel):
    fcm_token: str = Field(..., min_length=1, max_length=500)
