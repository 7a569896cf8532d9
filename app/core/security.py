# core/security.py
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from fastapi import HTTPException, status
from jose import JWTError, jwt

from app.core.config import settings
from app.models.user import User
from app.utils.datetime_utils import ensure_utc, utcnow

logger = logging.getLogger(__name__)


class JWTManager:
    """JWT token management for authentication"""

    def __init__(self):
        self.secret_key = settings.jwt_secret
        self.algorithm = settings.jwt_algorithm
        self.user_token_expire = timedelta(days=settings.jwt_user_expiration)
        self.issuer = settings.jwt_issuer

    @property
    def expires_in(self) -> int:
        return int(self.user_token_expire.total_seconds())

    def create_access_token(
        self,
        user: User,
        custom_expiration: Optional[timedelta] = None,
        login_time: Optional[datetime] = None,
    ) -> str:
        """
        Create JWT access token for user

        Args:
            user: User model instance
            custom_expiration: Override default expiration
            login_time: Issue time to embed; defaults to now

        Returns:
            JWT access token string
        """
        try:
            issued_at = login_time or utcnow()
            expire = issued_at + (custom_expiration or self.user_token_expire)

            payload = {
                "sub": str(user.id),
                "user_id": user.id,
                "email": user.email,
                "admin": bool(user.is_admin),
                "exp": int(expire.timestamp()),
                "iat": int(issued_at.timestamp()),
                "iss": self.issuer,
                "type": "access",
                "pwd": password_stamp(user),
            }

            token = jwt.encode(payload, self.secret_key, algorithm=self.algorithm)
            logger.info(f"Access token created for user: {user.id}")

            return token

        except Exception as e:
            logger.error(f"Failed to create access token: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to create access token",
            )

    def verify_token(self, token: str, token_type: str = "access") -> Dict[str, Any]:
        """
        Verify and decode JWT token
        """
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                options={"verify_exp": True},
            )
        except JWTError as e:
            logger.warning(f"JWT verification failed: {e}")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid or expired token",
                headers={"WWW-Authenticate": "Bearer"},
            )

        if payload.get("type") != token_type:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail=f"Invalid token type. Expected {token_type}",
                headers={"WWW-Authenticate": "Bearer"},
            )

        return payload


def password_stamp(user: User) -> int:
    """Millisecond stamp of the last password change, 0 if never changed."""
    changed_at = ensure_utc(user.password_changed_at)
    return int(changed_at.timestamp() * 1000) if changed_at else 0


# Global instance
jwt_manager = JWTManager()
