import re
from datetime import datetime
from typing import Literal, Optional

from pydantic import EmailStr, Field, field_validator

from app.core.config import settings
from app.schemas.base import CamelModel

OtpPurpose = Literal["signup", "reset"]


def _validate_password_strength(password: str) -> str:
    if len(password) < settings.password_min_length:
        raise ValueError(
            f"Password must be at least {settings.password_min_length} characters"
        )
    if not re.search(r'[!@#$%^&*(),.?":{}|<>_\-\[\]\\/+=~`;\']', password):
        raise ValueError("Password must contain at least one special character")
    return password


# One-time code schemas
class SendOtpRequest(CamelModel):
    email: EmailStr
    purpose: OtpPurpose = "signup"

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower()


class VerifyOtpRequest(SendOtpRequest):
    otp: str = Field(..., min_length=4, max_length=12)


# Registration / password reset
class UserRegistrationRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., max_length=100)
    otp: str = Field(..., min_length=4, max_length=12)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower()

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        return _validate_password_strength(v)


class ForgotPasswordRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., max_length=100)
    otp: str = Field(..., min_length=4, max_length=12)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower()

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        return _validate_password_strength(v)


# Login schemas
class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower()


class UserResponse(CamelModel):
    id: int
    name: str
    email: str
    is_admin: bool
    created_at: datetime
    last_login: Optional[datetime] = None


class AuthResponse(CamelModel):
    success: bool = True
    message: str
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse


class UserEnvelope(CamelModel):
    success: bool = True
    user: UserResponse
