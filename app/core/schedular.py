import logging
from datetime import datetime, timezone
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from app.core.config import settings
from app.core.database import SessionLocal
from app.services.post import PostService

logger = logging.getLogger(__name__)


def purge_expired_posts(retention_days: Optional[int] = None) -> int:
    """
    Scheduled task that deletes posts expired for longer than the
    retention window, together with their stored images.
    """
    if retention_days is None:
        retention_days = settings.cleanup_retention_days

    db = SessionLocal()
    try:
        deleted_count = PostService(db).purge_expired(retention_days)
        logger.info(
            f"[{datetime.now(timezone.utc)}] Expired post cleanup completed. "
            f"Deleted {deleted_count} posts."
        )
        return deleted_count
    except Exception as e:
        db.rollback()
        logger.error(f"Error during expired post cleanup: {e}")
        return 0
    finally:
        db.close()


def start_scheduler() -> AsyncIOScheduler:
    """
    Initialize and start the APScheduler for expired post cleanup.
    """
    scheduler = AsyncIOScheduler()

    scheduler.add_job(
        purge_expired_posts,
        trigger=IntervalTrigger(minutes=settings.cleanup_interval_minutes),
        id="expired_post_cleanup",
        name="Purge long-expired posts",
        replace_existing=True,
    )

    scheduler.start()
    logger.info(
        f"Cleanup scheduler started. Running every {settings.cleanup_interval_minutes} minutes."
    )

    return scheduler


def shutdown_scheduler(scheduler: Optional[AsyncIOScheduler]):
    """
    Gracefully shutdown the scheduler.
    """
    if scheduler:
        scheduler.shutdown()
        logger.info("Cleanup scheduler shut down.")
