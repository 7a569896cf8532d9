import logging
from typing import Optional

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.security import jwt_manager, password_stamp
from app.models.user import User

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

UNAUTHORIZED_MESSAGE = "Unauthorized. Please sign in."


def _unauthorized(detail: str = UNAUTHORIZED_MESSAGE) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _resolve_user(payload: dict, db: Session) -> Optional[User]:
    """Load the active user a verified token points at, or None."""
    user_id = payload.get("user_id")
    if user_id is None:
        return None

    user = db.query(User).filter(User.id == user_id).first()
    if not user or not user.is_active:
        return None

    # Tokens issued before the last password change are revoked
    if payload.get("pwd", 0) != password_stamp(user):
        return None

    return user


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Security(security),
    db: Session = Depends(get_db),
) -> User:
    """
    Dependency that requires a valid Bearer token and returns the active user.
    Raises 401 Unauthorized if the token is missing, invalid, revoked, or the
    user is not found. Nothing is written to storage before this passes.
    """
    if not credentials:
        raise _unauthorized()

    payload = jwt_manager.verify_token(credentials.credentials, "access")
    user = _resolve_user(payload, db)
    if not user:
        raise _unauthorized()

    return user


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """
    Dependency that returns a user if a valid user token is provided, or None
    otherwise. Invalid or expired tokens are treated as anonymous.
    """
    if not credentials:
        return None

    try:
        payload = jwt_manager.verify_token(credentials.credentials, "access")
    except HTTPException:
        return None

    return _resolve_user(payload, db)
