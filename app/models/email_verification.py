# app/models/email_verification.py
from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.sql import func

from app.core.database import Base


class EmailVerification(Base):
    """One-time code sent to an address for signup or password reset."""

    __tablename__ = "email_verifications"

    id = Column(Integer, primary_key=True, index=True)

    email = Column(String(255), nullable=False, index=True)
    purpose = Column(String(20), nullable=False)  # 'signup' or 'reset'
    code = Column(String(12), nullable=False)

    expires_at = Column(DateTime(timezone=True), nullable=False)
    consumed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    def __repr__(self):
        return f"<EmailVerification(email='{self.email}', purpose='{self.purpose}')>"
