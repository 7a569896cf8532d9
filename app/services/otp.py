# app/services/otp.py
import hmac
import logging
from datetime import timedelta

from fastapi import HTTPException, status
from sqlalchemy import and_
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.hasher import generate_numeric_code
from app.models.email_verification import EmailVerification
from app.models.user import User
from app.utils import mailer
from app.utils.datetime_utils import ensure_utc, utcnow

logger = logging.getLogger(__name__)

SUBJECTS = {
    "signup": f"Your {settings.app_name} Verification Code 🎓",
    "reset": f"Your {settings.app_name} Password Reset Code 🔒",
}


class OtpService:
    """Server-generated one-time codes delivered by email."""

    def __init__(self, db: Session):
        self.db = db

    def send_code(self, email: str, purpose: str) -> bool:
        """
        Issue a fresh code for (email, purpose) and email it.
        Earlier unused codes for the same pair stop working.

        Returns False when nothing was sent because no account exists for a
        reset request; callers report success either way.
        """
        exists = self.db.query(User.id).filter(User.email == email).first() is not None

        if purpose == "signup" and exists:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="An account with this email already exists",
            )
        if purpose == "reset" and not exists:
            logger.info(f"Password reset requested for unknown email {email}")
            return False

        self.db.query(EmailVerification).filter(
            and_(
                EmailVerification.email == email,
                EmailVerification.purpose == purpose,
            )
        ).delete(synchronize_session=False)

        code = generate_numeric_code(settings.otp_length)
        verification = EmailVerification(
            email=email,
            purpose=purpose,
            code=code,
            expires_at=utcnow() + timedelta(minutes=settings.otp_expiration_minutes),
        )
        self.db.add(verification)
        self.db.commit()

        try:
            mailer.send_email(
                to_addr=email,
                subject=SUBJECTS[purpose],
                html_body=mailer.render_otp_email(
                    code, settings.otp_expiration_minutes, utcnow().year
                ),
                text_body=f"Your verification code is {code}. "
                f"It expires in {settings.otp_expiration_minutes} minutes.",
            )
        except mailer.MailError:
            # Clean up the code if sending failed
            self.db.delete(verification)
            self.db.commit()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to send OTP",
            )

        logger.info(f"OTP ({purpose}) sent to {email}")
        return True

    def _find_valid(self, email: str, purpose: str, code: str):
        verification = (
            self.db.query(EmailVerification)
            .filter(
                and_(
                    EmailVerification.email == email,
                    EmailVerification.purpose == purpose,
                    EmailVerification.consumed_at.is_(None),
                )
            )
            .order_by(EmailVerification.id.desc())
            .first()
        )
        if not verification:
            return None
        if ensure_utc(verification.expires_at) < utcnow():
            return None
        if not hmac.compare_digest(verification.code, str(code).strip()):
            return None
        return verification

    def verify_code(self, email: str, purpose: str, code: str) -> bool:
        """Check a code without using it up."""
        return self._find_valid(email, purpose, code) is not None

    def consume_code(self, email: str, purpose: str, code: str) -> None:
        """
        Mark a code as used. Raises 400 when the code is wrong or expired.
        The caller commits together with the change the code authorizes.
        """
        verification = self._find_valid(email, purpose, code)
        if not verification:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid or expired verification code",
            )
        verification.consumed_at = utcnow()
