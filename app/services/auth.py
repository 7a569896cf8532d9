# app/services/auth.py
import logging

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.core.hasher import PasswordHelper
from app.core.security import jwt_manager
from app.models.user import User
from app.schemas.auth import (
    AuthResponse,
    ForgotPasswordRequest,
    LoginRequest,
    UserRegistrationRequest,
    UserResponse,
)
from app.services.otp import OtpService
from app.utils.datetime_utils import utcnow

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, db: Session):
        self.db = db
        self.otp_service = OtpService(db)

    def _auth_response(self, user: User, message: str) -> AuthResponse:
        login_time = utcnow()
        token = jwt_manager.create_access_token(user=user, login_time=login_time)

        user.last_login = login_time
        self.db.commit()
        self.db.refresh(user)

        return AuthResponse(
            success=True,
            message=message,
            access_token=token,
            expires_in=jwt_manager.expires_in,
            user=UserResponse.model_validate(user),
        )

    def register_user(self, request: UserRegistrationRequest) -> AuthResponse:
        """Create an account once the emailed signup code checks out."""
        if self.db.query(User).filter(User.email == request.email).first():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="An account with this email already exists",
            )

        self.otp_service.consume_code(request.email, "signup", request.otp)

        user = User(
            name=request.name,
            email=request.email,
            hashed_password=PasswordHelper.hash_password(request.password),
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)

        logger.info(f"User registered: {user.id} ({user.email})")
        return self._auth_response(user, "Account created successfully")

    def login(self, request: LoginRequest) -> AuthResponse:
        user = self.db.query(User).filter(User.email == request.email).first()

        if not user or not PasswordHelper.check_password(
            request.password, user.hashed_password
        ):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid email or password",
            )
        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Account not found or deactivated",
            )

        logger.info(f"User login successful: {user.id}")
        return self._auth_response(user, "Login successful")

    def reset_password(self, request: ForgotPasswordRequest) -> bool:
        """Set a new password with an emailed reset code; revokes older tokens."""
        user = self.db.query(User).filter(User.email == request.email).first()
        if not user:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid or expired verification code",
            )

        self.otp_service.consume_code(request.email, "reset", request.otp)

        user.hashed_password = PasswordHelper.hash_password(request.password)
        user.password_changed_at = utcnow()
        self.db.commit()

        logger.info(f"Password reset for user {user.id}")
        return True
