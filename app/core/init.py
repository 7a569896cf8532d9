"""
Application initialization module
Handles initial setup tasks like creating the default admin account
"""

import logging

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.hasher import PasswordHelper
from app.models.user import User

logger = logging.getLogger(__name__)


def init_admin(db: Session) -> None:
    """
    Create the default admin account if no admin exists yet.

    Admins can edit and delete any post and always see the author of
    anonymous posts. Credentials come from settings.
    """
    try:
        existing_admin = db.query(User).filter(User.is_admin.is_(True)).first()

        if existing_admin:
            logger.info(
                f"✅ Admin user already exists (ID: {existing_admin.id}, Email: {existing_admin.email})"
            )
            return

        admin = User(
            name=settings.admin_default_name,
            email=settings.admin_default_email.lower(),
            hashed_password=PasswordHelper.hash_password(settings.admin_default_password),
            is_admin=True,
        )

        db.add(admin)
        db.commit()
        db.refresh(admin)

        logger.info("=" * 60)
        logger.info("🎉 ADMIN ACCOUNT CREATED")
        logger.info("=" * 60)
        logger.info(f"Email: {admin.email}")
        logger.info("=" * 60)
        logger.warning("⚠️  IMPORTANT: Change the default password immediately!")
        logger.info("=" * 60)

    except Exception as e:
        logger.error(f"❌ Failed to initialize admin account: {e}")
        db.rollback()
        raise


def initialize_application(db: Session) -> None:
    """Run all application initialization tasks."""
    logger.info("🚀 Starting application initialization...")

    init_admin(db)

    logger.info("✅ Application initialization completed!")
