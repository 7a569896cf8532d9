# app/routers/auth.py
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db
from app.core.dependencies import get_current_user
from app.core.limiter import limiter
from app.models.user import User
from app.schemas.auth import (
    AuthResponse,
    ForgotPasswordRequest,
    LoginRequest,
    SendOtpRequest,
    UserEnvelope,
    UserRegistrationRequest,
    VerifyOtpRequest,
)
from app.schemas.base import MessageResponse
from app.services.auth import AuthService
from app.services.otp import OtpService

router = APIRouter(prefix="/api", tags=["auth"])


@router.post("/send-otp", response_model=MessageResponse)
@limiter.limit(settings.otp_rate_limit)
def send_otp(
    request: Request, payload: SendOtpRequest, db: Session = Depends(get_db)
):
    """
    Step 1: Email a one-time code for signup or password reset.
    The code is generated and stored on the server.
    """
    OtpService(db).send_code(payload.email, payload.purpose)
    return {"success": True, "message": "OTP sent successfully"}


@router.post("/auth/verify-otp", response_model=MessageResponse)
@limiter.limit(settings.otp_rate_limit)
def verify_otp(
    request: Request, payload: VerifyOtpRequest, db: Session = Depends(get_db)
):
    """Step 2: Check a code before asking for the new password."""
    if not OtpService(db).verify_code(payload.email, payload.purpose, payload.otp):
        return {"success": False, "message": "Invalid or expired verification code"}
    return {"success": True, "message": "Code verified"}


@router.post("/register", response_model=AuthResponse)
def register_user(
    payload: UserRegistrationRequest, db: Session = Depends(get_db)
) -> AuthResponse:
    """Step 3: Create the account; the signup code is consumed here."""
    return AuthService(db).register_user(payload)


@router.post("/auth/login", response_model=AuthResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)) -> AuthResponse:
    return AuthService(db).login(payload)


@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(
    payload: ForgotPasswordRequest, db: Session = Depends(get_db)
):
    """Reset the password with an emailed code. Existing sessions are revoked."""
    AuthService(db).reset_password(payload)
    return {"success": True, "message": "Password updated successfully"}


@router.get("/auth/me", response_model=UserEnvelope)
def me(current_user: Annotated[User, Depends(get_current_user)]):
    return {"success": True, "user": current_user}
